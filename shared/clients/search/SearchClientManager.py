from shared.helper.HelperConfig import HelperConfig
from shared.clients.search.SearchClientInterface import SearchClientInterface


class SearchClientManager:
    """
    Instantiates the search client for the engine named in the configuration.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """
        Reads the search engine name from SEARCH_ENGINE, e.g. "opensearch".

        Returns:
            str: The engine name with its first letter capitalised, matching the client class suffix.
        """
        engine = self.helper_config.get_string_val("SEARCH_ENGINE", default="opensearch")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> SearchClientInterface:
        """
        Imports and instantiates the search client of the configured engine.

        Raises:
            ValueError: If the engine is unknown.
        """
        engine = self._get_engine_from_env()
        class_name = f"SearchClient{engine}"
        try:
            module = __import__(
                f"shared.clients.search.{engine.lower()}.{class_name}",
                fromlist=[class_name],
            )
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported search engine specified: '{engine}'. Error: {e}")
        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated search client for engine: %s", engine)
        return client

    def get_client(self) -> SearchClientInterface:
        return self.client
