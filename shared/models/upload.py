"""Pydantic models for the upload / replace workflow."""

from enum import Enum

from pydantic import BaseModel, ConfigDict

from shared.models.document import DocumentRecord


class UploadStatus(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"


# Forward-only transitions; any state may additionally go back to IDLE on reset.
ALLOWED_TRANSITIONS: dict[UploadStatus, set[UploadStatus]] = {
    UploadStatus.IDLE: {UploadStatus.UPLOADING, UploadStatus.ERROR},
    UploadStatus.UPLOADING: {UploadStatus.PROCESSING, UploadStatus.ERROR},
    UploadStatus.PROCESSING: {UploadStatus.SUCCESS, UploadStatus.ERROR},
    UploadStatus.SUCCESS: set(),
    UploadStatus.ERROR: {UploadStatus.UPLOADING, UploadStatus.ERROR},
}


class DuplicateConflict(BaseModel):
    """A (filename, author) pair the backend already holds.

    existing_document_id is 0 while the existing record could not be looked up.
    """

    model_config = ConfigDict(frozen=True)

    existing_document_id: int = 0
    filename: str
    author: str

    @property
    def is_resolved(self) -> bool:
        return self.existing_document_id > 0


class UploadSession(BaseModel):
    """Observable state of the upload form."""

    model_config = ConfigDict(frozen=True)

    status: UploadStatus = UploadStatus.IDLE
    progress: int = 0
    message: str | None = None
    document: DocumentRecord | None = None
    conflict: DuplicateConflict | None = None

    @property
    def is_busy(self) -> bool:
        return self.status in (UploadStatus.UPLOADING, UploadStatus.PROCESSING)
