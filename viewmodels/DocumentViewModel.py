"""Document detail viewmodel.

Holds one document's authoritative record (through the fetch cache) plus an
optional optimistic projection shown while an author edit is being saved.

States:
  viewing: showing the authoritative (or cached) record.
  editing: the user opened the metadata form; nothing is sent yet.
  saving: an update request is in flight.

While the backend has not produced a summary yet, the record is refetched on a
fixed interval. The first non-empty summary ends polling for good.
"""

from datetime import datetime, timezone
from enum import Enum

from shared.clients.backend.BackendClientInterface import BackendClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import DocumentRecord, UploadFile
from shared.models.errors import ApiError
from viewmodels.cache.CacheKey import DocumentKey
from viewmodels.cache.CacheSubscription import CacheSubscription
from viewmodels.cache.FetchCache import FetchCache

NOT_FOUND_MESSAGE = "Document not found"


class DocumentSyncState(str, Enum):
    VIEWING = "viewing"
    EDITING = "editing"
    SAVING = "saving"


class DocumentViewModel:
    def __init__(
        self,
        helper_config: HelperConfig,
        backend_client: BackendClientInterface,
        cache: FetchCache,
        document_id: int,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._backend = backend_client
        self._key = DocumentKey(document_id=document_id)
        self._subscription = CacheSubscription(cache)
        self._poll_interval = helper_config.get_duration_val("WEBUI_DOCUMENT_POLL_INTERVAL_MS", default_ms=5000)

        self.document_id = document_id
        self.sync_state = DocumentSyncState.VIEWING
        self._optimistic: DocumentRecord | None = None
        self._polling_started = False
        self._deleted = False

    ##########################################
    ################ GETTER ##################
    ##########################################

    @property
    def document(self) -> DocumentRecord | None:
        """The record to render: the optimistic projection if one is active, else the cached authoritative record."""
        if self._deleted:
            return None
        if self._optimistic is not None:
            return self._optimistic
        return self.authoritative

    @property
    def authoritative(self) -> DocumentRecord | None:
        return self._subscription.state.data

    @property
    def is_loading(self) -> bool:
        state = self._subscription.state
        return state.is_loading and state.data is None

    @property
    def error(self) -> str | None:
        """Message for the detail page; not-found errors read "Document not found"."""
        if self._deleted:
            return NOT_FOUND_MESSAGE
        error = self._subscription.state.error
        if error is None:
            return None
        return NOT_FOUND_MESSAGE if error.is_not_found else error.message

    @property
    def is_optimistic(self) -> bool:
        return self._optimistic is not None

    @property
    def is_polling(self) -> bool:
        return self._subscription.is_polling

    @property
    def is_deleted(self) -> bool:
        return self._deleted

    ##########################################
    ################# LOAD ###################
    ##########################################

    async def load(self) -> DocumentRecord | None:
        """Fetch the record and start summary polling if the summary is still missing."""
        await self._subscription.set_key(self._key, self._fetch)
        if not self._polling_started:
            self._polling_started = True
            self._subscription.start_polling(self._refresh_interval)
        return self.document

    async def refresh(self) -> DocumentRecord | None:
        await self._subscription.revalidate()
        return self.document

    async def close(self) -> None:
        await self._subscription.close()

    ##########################################
    ################# EDIT ###################
    ##########################################

    def start_editing(self) -> None:
        if self.sync_state == DocumentSyncState.SAVING:
            raise RuntimeError("Cannot edit while a save is in progress.")
        self.sync_state = DocumentSyncState.EDITING

    def cancel_editing(self) -> None:
        if self.sync_state == DocumentSyncState.EDITING:
            self.sync_state = DocumentSyncState.VIEWING

    async def update_metadata(self, author: str | None = None, file: UploadFile | None = None) -> DocumentRecord | None:
        """Save an edit and replace the cached record with the server's answer.

        An author-only edit is shown immediately as an optimistic record with
        the new author and last_edited set to now. An edit that replaces the file
        publishes nothing optimistic; size, type and summary are unknown until the
        server answers.

        Args:
            author (str | None): New author, or None to keep it.
            file (UploadFile | None): Replacement content, or None to keep it.

        Returns:
            DocumentRecord | None: The authoritative record after the update, or
            None if there is no record loaded to edit.

        Raises:
            RuntimeError: If the form is not open (call start_editing first).
            ApiError: validation for an empty edit (nothing is sent, the form
            stays open), otherwise the failure of the update request after the
            optimistic record was dropped.
        """
        baseline = self.authoritative
        if baseline is None or self._deleted:
            return None
        if self.sync_state != DocumentSyncState.EDITING:
            raise RuntimeError(f"Cannot save from state {self.sync_state.value}; start editing first.")

        if author is not None:
            author = author.strip()
            if not author:
                raise ApiError.validation("Author must not be empty.")
        if not author and file is None:
            raise ApiError.validation("Nothing to update: provide an author or a file.")

        self.sync_state = DocumentSyncState.SAVING
        if author and file is None:
            self._optimistic = baseline.model_copy(update={"author": author, "last_edited": datetime.now(timezone.utc)})
            self.logging.debug("Showing optimistic author '%s' for document %d", author, self.document_id)

        try:
            updated = await self._backend.do_update_file(self.document_id, author=author, file=file)
        except Exception as e:
            self._optimistic = None
            self.sync_state = DocumentSyncState.VIEWING
            self.logging.error("Updating document %d failed: %s", self.document_id, e)
            raise

        self._optimistic = None
        self._subscription.mutate(updated)
        self.sync_state = DocumentSyncState.VIEWING
        self.logging.info("Document %d updated", self.document_id)
        return updated

    ##########################################
    ################ DELETE ##################
    ##########################################

    async def delete_document(self) -> None:
        """Delete the document. Once this returns, document is None for good.

        Raises:
            ApiError: If the delete request fails; nothing changes locally then.
        """
        await self._backend.do_delete_file(self.document_id)
        self._deleted = True
        self._optimistic = None
        await self._subscription.stop_polling()
        self._subscription.mutate(None)
        self.logging.info("Document %d deleted", self.document_id)

    ##########################################
    ############### HELPERS ##################
    ##########################################

    async def _fetch(self) -> DocumentRecord:
        return await self._backend.do_fetch_file(self.document_id)

    def _refresh_interval(self, record: DocumentRecord | None) -> float:
        if self._deleted or (record is not None and record.has_summary):
            return 0
        return self._poll_interval
