"""Upload viewmodel with duplicate detection.

Normal flow: uploading → processing → success.

When the backend rejects an upload with 409 because the (filename, author)
pair already exists, the session moves to error with a DuplicateConflict and
the existing record's id is looked up. The user then either replaces the
existing document (an in-place update against that id) or selects another
file. A rejected pair is remembered after "select new" so picking the same
file again for the same author shows the conflict again without a request.
"""

import asyncio

from pydantic import ValidationError

from shared.clients.backend.BackendClientInterface import BackendClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import DocumentRecord, UploadFile
from shared.models.errors import ApiError
from shared.models.upload import ALLOWED_TRANSITIONS, DuplicateConflict, UploadSession, UploadStatus


class UploadViewModel:
    def __init__(self, helper_config: HelperConfig, backend_client: BackendClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._backend = backend_client
        self._processing_delay = helper_config.get_duration_val("WEBUI_UPLOAD_PROCESSING_DELAY_MS", default_ms=500)

        self.session = UploadSession()
        self.selected_file: UploadFile | None = None
        self.author: str = ""
        self._rejected: DuplicateConflict | None = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    @property
    def status(self) -> UploadStatus:
        return self.session.status

    @property
    def conflict(self) -> DuplicateConflict | None:
        return self.session.conflict

    @property
    def error(self) -> str | None:
        return self.session.message if self.session.status == UploadStatus.ERROR else None

    @property
    def can_submit(self) -> bool:
        """A finished upload has to be reset (or another file selected) before the next one."""
        if self.session.is_busy or self.session.status == UploadStatus.SUCCESS:
            return False
        return self.selected_file is not None and bool(self.author.strip())

    @property
    def can_replace(self) -> bool:
        """Replacing needs a conflict whose existing document id is known."""
        conflict = self.session.conflict
        return conflict is not None and conflict.is_resolved and self.selected_file is not None and not self.session.is_busy

    ##########################################
    ############### SELECTION ################
    ##########################################

    def select_file(self, file: UploadFile) -> None:
        """Pick a file. Re-picking a file rejected for the current author re-shows its conflict.

        Ignored while an upload or replace is running.
        """
        if self._ignore_while_busy("File selection"):
            return
        self.selected_file = file
        if self._matches_rejected(file.filename, self.author):
            self._show_remembered_conflict()
            return
        self._rejected = None
        self._set_session(UploadSession())

    def set_author(self, author: str) -> None:
        self.author = author

    def select_new(self) -> None:
        """Drop the conflicting file and go back to an empty form, keeping the rejected pair in mind."""
        if self._ignore_while_busy("Select new"):
            return
        if self.session.conflict is not None:
            self._rejected = self.session.conflict
        self.selected_file = None
        self._set_session(UploadSession())

    def reset(self) -> None:
        """Forget everything, including a remembered conflict."""
        if self._ignore_while_busy("Reset"):
            return
        self.selected_file = None
        self.author = ""
        self._rejected = None
        self._set_session(UploadSession())

    ##########################################
    ################ ACTIONS #################
    ##########################################

    async def upload(self) -> DocumentRecord | None:
        """Upload the selected file for the current author.

        Failures end in status error rather than an exception; a 409 additionally
        attaches a DuplicateConflict.

        Returns:
            DocumentRecord | None: The created record, or None if nothing was
            uploaded (invalid form, conflict, failure).
        """
        if not self.can_submit:
            self.logging.debug("Upload ignored: file or author missing, or an upload is running")
            return None
        file = self.selected_file
        author = self.author.strip()

        if self._matches_rejected(file.filename, author):
            self._show_remembered_conflict()
            return None
        self._rejected = None

        self._set_session(UploadSession(status=UploadStatus.UPLOADING, progress=30, message="Uploading file..."))
        try:
            document = await self._backend.do_upload_file(file, author)
        except ApiError as e:
            if e.is_conflict:
                await self._handle_conflict(file, author)
            else:
                self._fail(e.message)
            return None
        except ValidationError as e:
            self._fail(f"Unexpected upload response: {e.error_count()} invalid field(s)")
            return None

        return await self._finish(document, processing_message="Processing document...", success_message="Upload complete!")

    async def replace(self) -> DocumentRecord | None:
        """Overwrite the conflicting document with the selected file.

        If the existing id is still unknown the lookup is retried once; without
        an id no update is sent and the session stays in error.

        Returns:
            DocumentRecord | None: The updated record, or None if nothing was replaced.
        """
        conflict = self.session.conflict
        if conflict is None or self.selected_file is None or self.session.is_busy:
            self.logging.debug("Replace ignored: no pending conflict")
            return None

        if not conflict.is_resolved:
            existing_id = await self._lookup_existing_id(conflict.filename, conflict.author)
            if self.session.conflict != conflict:
                self.logging.debug("Replace dropped: the selection changed during the lookup")
                return None
            conflict = conflict.model_copy(update={"existing_document_id": existing_id})
            if not conflict.is_resolved:
                self._set_session(self.session.model_copy(update={
                    "conflict": conflict,
                    "message": f"Could not find the existing '{conflict.filename}' by {conflict.author}; it cannot be replaced. Select a new file instead.",
                }))
                return None

        file = self.selected_file
        self._set_session(UploadSession(status=UploadStatus.UPLOADING, progress=30, message="Replacing file...", conflict=conflict))
        try:
            document = await self._backend.do_update_file(conflict.existing_document_id, author=conflict.author, file=file)
        except ApiError as e:
            self._fail(f"Replace failed: {e.message}", conflict=conflict)
            return None
        except ValidationError as e:
            self._fail(f"Replace failed: unexpected response, {e.error_count()} invalid field(s)", conflict=conflict)
            return None

        self._rejected = None
        return await self._finish(document, processing_message="Processing replaced document...", success_message="File replaced successfully!")

    ##########################################
    ############### HELPERS ##################
    ##########################################

    async def _finish(self, document: DocumentRecord, processing_message: str, success_message: str) -> DocumentRecord:
        self._set_session(UploadSession(status=UploadStatus.PROCESSING, progress=70, message=processing_message))
        # grace period for backend post-processing to pick the file up
        await asyncio.sleep(self._processing_delay)
        self._set_session(UploadSession(status=UploadStatus.SUCCESS, progress=100, message=success_message, document=document))
        self.logging.info("%s (document %d)", success_message, document.id)
        return document

    async def _handle_conflict(self, file: UploadFile, author: str) -> None:
        self.logging.info("Upload of '%s' by '%s' conflicts with an existing document", file.filename, author)
        message = self._duplicate_message(file.filename, author)
        conflict = DuplicateConflict(filename=file.filename, author=author)
        self._set_session(UploadSession(status=UploadStatus.ERROR, progress=0, message=message, conflict=conflict))

        existing_id = await self._lookup_existing_id(file.filename, author)
        if existing_id and self.session.conflict == conflict:
            self._set_session(self.session.model_copy(update={"conflict": conflict.model_copy(update={"existing_document_id": existing_id})}))

    async def _lookup_existing_id(self, filename: str, author: str) -> int:
        """Find the id of the record holding (filename, author); 0 if it cannot be found."""
        try:
            candidates = await self._backend.do_fetch_files(search=filename, author=author)
        except ApiError as e:
            self.logging.warning("Looking up existing '%s' by '%s' failed: %s", filename, author, e.message)
            return 0
        for candidate in candidates:
            if candidate.filename == filename and candidate.author == author:
                return candidate.id
        self.logging.warning("No existing document '%s' by '%s' found among %d candidate(s)", filename, author, len(candidates))
        return 0

    def _ignore_while_busy(self, action: str) -> bool:
        if self.session.is_busy:
            self.logging.debug("%s ignored: %s is running", action, self.session.status.value)
            return True
        return False

    def _matches_rejected(self, filename: str, author: str) -> bool:
        rejected = self._rejected
        return rejected is not None and rejected.filename == filename and rejected.author == author.strip()

    def _show_remembered_conflict(self) -> None:
        rejected = self._rejected
        self.logging.debug("Re-showing remembered conflict for '%s' by '%s'", rejected.filename, rejected.author)
        self._set_session(UploadSession(
            status=UploadStatus.ERROR,
            progress=0,
            message=self._duplicate_message(rejected.filename, rejected.author),
            conflict=rejected,
        ))

    def _fail(self, message: str, conflict: DuplicateConflict | None = None) -> None:
        self.logging.error("Upload failed: %s", message)
        self._set_session(UploadSession(status=UploadStatus.ERROR, progress=0, message=message, conflict=conflict))

    def _set_session(self, session: UploadSession) -> None:
        current = self.session.status
        if session.status != UploadStatus.IDLE and session.status != current and session.status not in ALLOWED_TRANSITIONS[current]:
            raise RuntimeError(f"Invalid upload transition {current.value} -> {session.status.value}")
        self.session = session

    @staticmethod
    def _duplicate_message(filename: str, author: str) -> str:
        return f"A file named '{filename}' by {author} already exists. Replace it or select a different file."
