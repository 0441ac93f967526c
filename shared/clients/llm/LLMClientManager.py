from shared.helper.HelperConfig import HelperConfig
from shared.clients.llm.LLMClientInterface import LLMClientInterface


class LLMClientManager:
    """Builds the completion client behind the chat route from LLM_ENGINE."""

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        engine = self.helper_config.get_string_val("LLM_ENGINE", default="openai")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> LLMClientInterface:
        """Import shared.clients.llm.<engine>.LLMClient<Engine> and instantiate it.

        A client without credentials is still returned; the chat route answers
        with a configuration error instead of refusing to start.

        Raises:
            ValueError: If no client class exists for the engine.
        """
        engine = self._get_engine_from_env()
        class_name = f"LLMClient{engine}"
        try:
            module = __import__(f"shared.clients.llm.{engine.lower()}.{class_name}", fromlist=[class_name])
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported LLM engine specified: '{engine}'. Error: {e}")

        client: LLMClientInterface = client_class(helper_config=self.helper_config)
        if not client.has_credentials():
            self.logging.warning("No API key configured for LLM engine '%s'; chat requests will be answered with a configuration error.", engine)
        self.logging.debug("Instantiated LLM client for engine %s with model %s", engine, client.chat_model)
        return client

    def get_client(self) -> LLMClientInterface:
        return self.client
