from shared.helper.HelperConfig import HelperConfig
from shared.helper.ProfileProvider import ProfileProvider
from shared.clients.search.SearchClientInterface import SearchClientInterface


class SearchClientManager:
    """
    Manager class to instantiate search clients for the configured engine and profile.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.engine = self._get_engine_from_env()
        self.profile_provider = ProfileProvider(helper_config=helper_config, engine=self.engine)
        self.client_class = self._load_client_class()

    def _get_engine_from_env(self) -> str:
        """
        Reads the search engine from ENV configuration.

        Returns:
            str: The search engine name, capitalized (e.g. "Obsidian").
        """
        engine = self.helper_config.get_string_val("SEARCH_ENGINE", default="obsidian")
        return engine.strip().lower().capitalize()

    def _load_client_class(self) -> type[SearchClientInterface]:
        """
        Imports the client class for the configured engine.

        Raises:
            ValueError: If the configured engine is not supported.
        """
        className = f"SearchClient{self.engine}"
        try:
            module = __import__(
                f"shared.clients.search.{self.engine.lower()}.{className}",
                fromlist=[className],
            )
            return getattr(module, className)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported search engine specified: '{self.engine}'. Error: {e}")

    def get_client(self, profile_override: str | None = None) -> SearchClientInterface:
        """
        Instantiates a search client for the active profile.

        Args:
            profile_override (str | None): Profile chosen by the caller. Unknown names fall back to the default profile.

        Returns:
            SearchClientInterface: A new, not yet booted, search client.
        """
        profile = self.profile_provider.get_active_profile(profile_override)
        self.logging.debug(f"Instantiated search client for engine: {self.engine}, profile: {profile.name}")
        return self.client_class(helper_config=self.helper_config, profile=profile)
