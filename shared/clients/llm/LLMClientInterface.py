from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.models.chat import ChatRole, ConversationMessage
from shared.helper.HelperConfig import HelperConfig


class LLMClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # chat / completion config
        self.chat_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_CHAT_MODEL", default="gpt-3.5-turbo")
        self.temperature = helper_config.get_number_val(f"{self.get_client_type().upper()}_TEMPERATURE", default=0.3)
        self.max_tokens = helper_config.get_number_val(f"{self.get_client_type().upper()}_MAX_TOKENS", default=500)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "llm"

    def has_credentials(self) -> bool:
        """Whether an API key is configured. The chat route refuses to answer without one."""
        return bool(self._get_auth_header())

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_chat(self) -> str:
        """Returns the endpoint path for chat/completion requests (e.g. "/chat/completions")."""
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_chat_payload(self, messages: list[dict]) -> dict:
        """Build the backend-specific request body for a chat/completion request.

        Args:
            messages (list[dict]): OpenAI-format messages
                (e.g. [{"role": "user", "content": "..."}]).

        Returns:
            dict: JSON-serialisable request body.
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_chat_response(self, response_data: dict) -> str:
        """Extract the assistant reply text from a raw chat API response.

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            str: The assistant reply text.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_chat(self, system_prompt: str, history: list[ConversationMessage], message: str) -> str:
        """Answer one chat turn.

        The completion service receives the system prompt first, then the
        conversation so far in order, then the new user message.

        Raises:
            ApiError: If the HTTP request fails.
        """
        messages = [{"role": ChatRole.SYSTEM.value, "content": system_prompt}]
        messages.extend({"role": turn.role.value, "content": turn.content} for turn in history)
        messages.append({"role": ChatRole.USER.value, "content": message})

        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_chat(),
            json=self.get_chat_payload(messages),
            raise_on_error=True,
        )
        answer = self.extract_chat_response(response.json())
        self.logging.debug("%s answered with %d characters using %s", self.get_engine_name(), len(answer), self.chat_model)
        return answer
