from shared.helper.HelperConfig import HelperConfig
from shared.clients.library.LibraryClientInterface import LibraryClientInterface


class LibraryClientManager:
    """
    Manager class to instantiate the library client based on configuration.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """
        Reads the library engine from ENV configuration.

        Returns:
            str: The library engine name, capitalized (e.g. "Zotero").
        """
        engine = self.helper_config.get_string_val("LIBRARY_ENGINE", default="zotero")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> LibraryClientInterface:
        """
        Instantiates the library client for the configured engine.

        Returns:
            LibraryClientInterface: The library client.

        Raises:
            ValueError: If the configured engine is not supported.
        """
        engine = self._get_engine_from_env()
        className = f"LibraryClient{engine}"
        try:
            module = __import__(
                f"shared.clients.library.{engine.lower()}.{className}",
                fromlist=[className],
            )
            client_class = getattr(module, className)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported library engine specified: '{engine}'. Error: {e}")
        client = client_class(helper_config=self.helper_config)
        self.logging.debug(f"Instantiated library client for engine: {engine}")
        return client

    def get_client(self) -> LibraryClientInterface:
        """
        Returns the instantiated library client.

        Returns:
            LibraryClientInterface: The library client instance.
        """
        return self.client
