from shared.helper.HelperConfig import HelperConfig
from shared.clients.backend.BackendClientInterface import BackendClientInterface


class BackendClientManager:
    """
    Manager class to instantiate the configured backend gateway client.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """
        Reads the backend engine name from ENV configuration.

        Returns:
            str: Capitalised engine name (e.g. "Rest").
        """
        engine = self.helper_config.get_string_val("BACKEND_ENGINE", default="rest")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> BackendClientInterface:
        """
        Instantiates the backend client for the configured engine.

        Returns:
            BackendClientInterface: The instantiated client.

        Raises:
            ValueError: If the engine is unsupported or cannot be imported.
        """
        engine = self._get_engine_from_env()
        class_name = f"BackendClient{engine}"
        try:
            module = __import__(
                f"shared.clients.backend.{engine.lower()}.{class_name}",
                fromlist=[class_name],
            )
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported backend engine specified: '{engine}'. Error: {e}")
        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated backend client for engine: %s", engine)
        return client

    def get_client(self) -> BackendClientInterface:
        """
        Returns the instantiated backend client.
        """
        return self.client
