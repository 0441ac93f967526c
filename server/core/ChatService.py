from shared.clients.backend.BackendClientInterface import BackendClientInterface
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.chat import ChatCompletionRequest
from shared.models.document import DocumentRecord
from shared.models.errors import ApiError

SYSTEM_PROMPT = (
    "You are a helpful assistant for a document management system called Paperless. "
    "You help users find information about their documents, answer questions about file metadata, "
    "and provide assistance with document management tasks."
)

SNAPSHOT_UNAVAILABLE = "\n\nNote: Could not fetch document database information. Please try again later."

INSTRUCTIONS = """CRITICAL INSTRUCTIONS:
- You have READ-ONLY access to this data
- ALWAYS base your answers on the data above - DO NOT hallucinate or make up information
- If a user asks about documents, authors, or statistics, count and reference the data above
- When asked "how many", count from the lists above
- When asked about specific files or authors, search in the lists above
- If information is not in the data above, say "I don't have information about that in the current database"
- You CANNOT execute SQL queries or modify the database
- All data is pre-fetched and sanitized for security

Remember this information for the entire conversation. Use it to answer all questions about documents."""


class ChatServiceError(Exception):
    """A chat request that cannot be answered. The message is safe to return to the caller."""


class ChatService:
    """Answers chat questions grounded in a fresh snapshot of the document metadata."""

    def __init__(
        self,
        helper_config: HelperConfig,
        backend_client: BackendClientInterface,
        llm_client: LLMClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._backend = backend_client
        self._llm_client = llm_client

    ##########################################
    ############### CORE #####################
    ##########################################

    async def answer(self, request: ChatCompletionRequest) -> str:
        """Generate the assistant reply for one chat turn.

        The message list sent to the completion service is the system prompt,
        then the conversation history, then the new user message.

        Args:
            request (ChatCompletionRequest): The new message and the conversation so far.

        Returns:
            str: The assistant reply.

        Raises:
            ChatServiceError: If no completion API key is configured or the completion call fails.
        """
        if not self._llm_client.has_credentials():
            raise ChatServiceError(f"{self._llm_client.get_engine_name()} API key is not configured")

        system_prompt = await self._build_system_prompt()

        self.logging.info("Chat request with %d history message(s): %r", len(request.conversation_history), request.message[:80])
        try:
            return await self._llm_client.do_chat(system_prompt, request.conversation_history, request.message)
        except ApiError as e:
            self.logging.error("Completion request failed: %s", e.message)
            raise ChatServiceError("Failed to get response from the completion service") from e

    ##########################################
    ############### HELPERS ##################
    ##########################################

    async def _build_system_prompt(self) -> str:
        try:
            documents = await self._backend.do_fetch_files()
        except ApiError as e:
            self.logging.warning("Failed to fetch file metadata for the chat prompt: %s", e.message)
            return SYSTEM_PROMPT + SNAPSHOT_UNAVAILABLE
        return SYSTEM_PROMPT + self._format_snapshot(documents)

    def _format_snapshot(self, documents: list[DocumentRecord]) -> str:
        authors = sorted({document.author for document in documents})
        file_types: dict[str, int] = {}
        for document in documents:
            file_types[document.file_type or "unknown"] = file_types.get(document.file_type or "unknown", 0) + 1
        total_size = sum(document.size for document in documents)

        lines = [
            "",
            "",
            "=== DOCUMENT DATABASE INFORMATION ===",
            "This information represents the COMPLETE and ACCURATE state of the document database. "
            "You MUST use ONLY this data to answer questions. DO NOT make up or hallucinate any information.",
            "",
            "STATISTICS:",
            f"- Total Documents: {len(documents)}",
            f"- Total Authors: {len(authors)}",
            f"- Total Storage Used: {total_size / (1024 * 1024):.2f} MB",
            "",
            "AUTHORS LIST (Complete):",
            *(f"{i}. {author}" for i, author in enumerate(authors, start=1)),
            "",
            "FILE TYPES DISTRIBUTION:",
            *(f"- {file_type}: {count} file(s)" for file_type, count in file_types.items()),
            "",
            "COMPLETE DOCUMENT LIST:",
            *(self._format_document(i, document) for i, document in enumerate(documents, start=1)),
            "",
            INSTRUCTIONS,
        ]
        return "\n".join(lines)

    @staticmethod
    def _format_document(index: int, document: DocumentRecord) -> str:
        uploaded = document.upload_time.date().isoformat() if document.upload_time else "unknown"
        return f'{index}. "{document.filename}" by {document.author} ({document.file_type or "unknown"}, {document.size / 1024:.2f} KB, uploaded: {uploaded})'
