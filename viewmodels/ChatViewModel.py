"""Chat session viewmodel.

Owns the current session id (persisted through an injected storage) and the
ordered transcript of that session. User messages are appended before any
request is made; failures while sending end up in the transcript as an
assistant message rather than as an exception.
"""

import random
import string
import time
from datetime import datetime, timedelta, timezone

from shared.clients.backend.BackendClientInterface import BackendClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.chat import ChatCompletionRequest, ChatMessage, ChatMessageRecord, ChatRole, ConversationMessage
from shared.models.errors import ApiError
from shared.storage.StorageInterface import StorageInterface
from viewmodels.cache.CacheKey import ChatSessionKey
from viewmodels.cache.FetchCache import FetchCache

_BASE36 = string.digits + string.ascii_lowercase


def generate_session_id() -> str:
    """Return a new id of the form session-<epoch ms>-<9 base36 chars>."""
    suffix = "".join(random.choices(_BASE36, k=9))
    return f"session-{int(time.time() * 1000)}-{suffix}"


class ChatViewModel:
    def __init__(
        self,
        helper_config: HelperConfig,
        backend_client: BackendClientInterface,
        storage: StorageInterface,
        cache: FetchCache,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._backend = backend_client
        self._storage = storage
        self._cache = cache
        self._storage_key = helper_config.get_string_val("WEBUI_CHAT_SESSION_STORAGE_KEY", default="paperless-chat-session-id")

        self.session_id = self._restore_session_id()
        self.messages: list[ChatMessage] = []
        self.is_loading_history = False
        self.history_loaded = False
        self.is_sending = False
        self.error: str | None = None
        self._message_counter = 0

    ##########################################
    ################ SESSION #################
    ##########################################

    def _restore_session_id(self) -> str:
        session_id = self._storage.get(self._storage_key)
        if session_id:
            self.logging.debug("Reusing chat session %s", session_id)
            return session_id
        return self._rotate_session_id()

    def _rotate_session_id(self) -> str:
        session_id = generate_session_id()
        self._storage.set(self._storage_key, session_id)
        self.logging.info("Started chat session %s", session_id)
        return session_id

    ##########################################
    ################# LOAD ###################
    ##########################################

    async def load(self) -> list[ChatMessage]:
        """Hydrate the transcript from the backend.

        A failing fetch leaves the transcript empty; history_loaded is set either
        way so an empty history can be told apart from one not loaded yet.
        Messages sent while the history was loading stay after the hydrated ones.
        """
        session_id = self.session_id
        known = len(self.messages)
        key = ChatSessionKey(session_id=session_id)
        self.is_loading_history = True
        try:
            state = await self._cache.request(key, lambda: self._backend.do_fetch_chat_messages(session_id))
        finally:
            self.is_loading_history = False

        if session_id != self.session_id:
            # cleared while loading; the old session's history is gone
            return self.messages
        if state.error is not None:
            self.logging.warning("Could not load history of chat session %s: %s", session_id, state.error.message)
        elif state.data:
            self.messages = [self._from_record(record) for record in state.data] + self.messages[known:]
        self.history_loaded = True
        return self.messages

    ##########################################
    ################# SEND ###################
    ##########################################

    async def send_message(self, content: str) -> ChatMessage | None:
        """Send a user message and append the assistant's answer.

        Returns:
            ChatMessage | None: The appended assistant message (an error message
            if anything failed), or None if content was blank or a send is running.
        """
        content = (content or "").strip()
        if not content or self.is_sending:
            return None

        history = [ConversationMessage(role=message.role, content=message.content) for message in self.messages]
        session_id = self.session_id
        self._append(ChatRole.USER, content)
        self.is_sending = True
        self.error = None
        try:
            await self._backend.do_save_chat_message(ChatRole.USER, content, session_id)
            answer = await self._backend.do_generate_chat_completion(
                ChatCompletionRequest(message=content, conversation_history=history)
            )
            reply = self._append(ChatRole.ASSISTANT, answer)
            await self._backend.do_save_chat_message(ChatRole.ASSISTANT, answer, session_id)
            return reply
        except Exception as e:
            message = e.message if isinstance(e, ApiError) else str(e) or e.__class__.__name__
            self.logging.error("Sending chat message in session %s failed: %s", session_id, message)
            self.error = message
            return self._append(ChatRole.ASSISTANT, f"Sorry, I encountered an error: {message}")
        finally:
            self.is_sending = False

    ##########################################
    ################ CLEAR ###################
    ##########################################

    async def clear(self) -> str:
        """Delete the session's history and switch to a new session id.

        Returns:
            str: The new session id.

        Raises:
            ApiError: If the backend delete fails; messages and session id are kept then.
        """
        old_session_id = self.session_id
        try:
            await self._backend.do_delete_chat_messages(old_session_id)
        except ApiError as e:
            self.error = e.message
            self.logging.error("Clearing chat session %s failed: %s", old_session_id, e.message)
            raise

        self._cache.evict(ChatSessionKey(session_id=old_session_id))
        self.messages = []
        self.error = None
        self.history_loaded = True
        self.session_id = self._rotate_session_id()
        return self.session_id

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _next_timestamp(self) -> datetime:
        now = datetime.now(timezone.utc)
        if self.messages and now <= self.messages[-1].timestamp:
            now = self.messages[-1].timestamp + timedelta(microseconds=1)
        return now

    def _append(self, role: ChatRole, content: str) -> ChatMessage:
        self._message_counter += 1
        message = ChatMessage(
            id=f"{self.session_id}-{self._message_counter}",
            role=role,
            content=content,
            timestamp=self._next_timestamp(),
            session_id=self.session_id,
        )
        self.messages.append(message)
        return message

    def _from_record(self, record: ChatMessageRecord) -> ChatMessage:
        timestamp = record.timestamp or datetime.now(timezone.utc)
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return ChatMessage(
            id=str(record.id),
            role=record.role,
            content=record.content,
            timestamp=timestamp,
            session_id=record.session_id or self.session_id,
        )
