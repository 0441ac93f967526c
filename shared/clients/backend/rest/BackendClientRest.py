from shared.clients.backend.BackendClientInterface import BackendClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.chat import ChatCompletionResponse, ChatMessageRecord
from shared.models.config import EnvConfig
from shared.models.document import DocumentRecord
from shared.models.errors import ApiError, ApiErrorKind
from shared.models.search import SearchResultSet


class BackendClientRest(BackendClientInterface):
    """Client for the paperless REST gateway (versioned under e.g. http://nginx/api/v1)."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Rest"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/files"

    def _get_endpoint_files(self) -> str:
        return "/files"

    def _get_endpoint_file_details(self, document_id: int) -> str:
        return f"/files/{document_id}"

    def _get_endpoint_file_download(self, document_id: int) -> str:
        return f"/files/{document_id}/download"

    def _get_endpoint_search(self) -> str:
        return "/documents/search"

    def _get_endpoint_chat_messages(self) -> str:
        return "/chat-messages"

    def _get_endpoint_chat(self) -> str:
        return "/chat"

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def _parse_endpoint_file(self, response: dict) -> DocumentRecord:
        return DocumentRecord.model_validate(response)

    def _parse_endpoint_search(self, response: dict) -> SearchResultSet:
        return SearchResultSet.model_validate(response)

    def _parse_endpoint_chat_message(self, response: dict) -> ChatMessageRecord:
        return ChatMessageRecord.model_validate(response)

    def _parse_endpoint_chat(self, response: dict) -> str:
        answer = ChatCompletionResponse.model_validate(response)
        if answer.error or answer.message is None:
            raise ApiError(kind=ApiErrorKind.NETWORK, message=answer.error or "Chat completion returned no message.")
        return answer.message
