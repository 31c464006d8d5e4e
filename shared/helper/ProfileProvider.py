"""Search profile configuration.

A profile names one search target (e.g. an Obsidian vault) together with its
base URL and token. Profiles are configured through environment variables:

    SEARCH_OBSIDIAN_PROFILES=[AMM,Sleep,Anki]
    SEARCH_OBSIDIAN_DEFAULT_PROFILE=AMM
    SEARCH_OBSIDIAN_AMM_BASE_URL=http://127.0.0.1:27123
    SEARCH_OBSIDIAN_AMM_API_KEY=...

A profile without a base URL listens on port 27123 minus its position in the
list, so [AMM,Sleep,Anki] default to 27123, 27122 and 27121.
"""

from shared.helper.HelperConfig import HelperConfig
from shared.models.config import SearchProfile

DEFAULT_HOST = "http://127.0.0.1"
DEFAULT_PORT = 27123


class ProfileProvider:
    """Resolves the active search profile from configuration and an optional override."""

    def __init__(self, helper_config: HelperConfig, engine: str = "obsidian") -> None:
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self._engine = engine.strip().lower()

    def _get_key(self, raw_key: str) -> str:
        return f"SEARCH_{self._engine.upper()}_{raw_key.upper()}"

    def get_profile_names(self) -> list[str]:
        """
        Returns the configured profile names.

        Raises:
            ValueError: If no profiles are configured.
        """
        names = self._helper_config.get_list_val(self._get_key("PROFILES"))
        if not names:
            raise ValueError(f"No search profiles configured in '{self._get_key('PROFILES')}'.")
        return names

    def get_default_profile_name(self) -> str:
        """
        Returns the default profile name, or the first configured profile if no default is set.

        Raises:
            ValueError: If the configured default is not one of the profiles.
        """
        names = self.get_profile_names()
        default = self._helper_config.get_string_val(self._get_key("DEFAULT_PROFILE"), default=names[0])
        if default not in names:
            raise ValueError(f"Default search profile '{default}' is not one of {names}.")
        return default

    def _get_default_base_url(self, name: str) -> str:
        names = self.get_profile_names()
        index = names.index(name) if name in names else 0
        return f"{DEFAULT_HOST}:{DEFAULT_PORT - index}"

    def _warn_on_shared_base_urls(self) -> None:
        seen: dict[str, str] = {}
        for name in self.get_profile_names():
            base_url = self.get_profile(name).base_url.rstrip("/")
            if base_url in seen:
                self.logging.warning("Search profiles '%s' and '%s' share the base URL %s.", seen[base_url], name, base_url)
            seen.setdefault(base_url, name)

    def get_profile(self, name: str) -> SearchProfile:
        """
        Builds the profile with the given name from configuration.

        Args:
            name (str): A configured profile name.

        Returns:
            SearchProfile: The profile.
        """
        return SearchProfile(
            name=name,
            base_url=self._helper_config.get_string_val(self._get_key(f"{name}_BASE_URL"), default=self._get_default_base_url(name)),
            token=self._helper_config.get_string_val(self._get_key(f"{name}_API_KEY"), default=""),
        )

    def get_active_profile(self, override: str | None = None) -> SearchProfile:
        """
        Returns the profile to use for this run.

        An override naming a configured profile wins. An empty or unknown override falls back
        to the default profile.

        Args:
            override (str | None): Profile name chosen by the caller, e.g. from the CLI or a request.

        Returns:
            SearchProfile: The active profile.
        """
        names = self.get_profile_names()
        choice = (override or "").strip()
        self._warn_on_shared_base_urls()
        if choice in names:
            return self.get_profile(choice)
        if choice:
            self.logging.warning("Unknown search profile '%s'. Falling back to default profile.", choice)
        return self.get_profile(self.get_default_profile_name())
