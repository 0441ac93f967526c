"""Pydantic models for document data.

Hierarchy:
  DocumentRecord: file metadata as held by the backend of record.
  UploadFile: a file picked on the client, not yet known to the backend.
  DashboardStats: figures derived from the full document listing.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DocumentRecord(BaseModel):
    """File metadata as returned by the backend gateway.

    Field names follow Python conventions; the camelCase wire names
    (fileType, uploadTime, lastEdited) are accepted and produced through aliases.
    The summary stays None until backend post-processing has finished.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int
    filename: str
    author: str
    file_type: str | None = None
    size: int = 0
    upload_time: datetime | None = None
    last_edited: datetime | None = None
    summary: str | None = None

    @property
    def has_summary(self) -> bool:
        return bool(self.summary and self.summary.strip())


class UploadFile(BaseModel):
    """A file selected for upload or replacement."""

    model_config = ConfigDict(frozen=True)

    filename: str
    content: bytes = Field(repr=False)
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


class DashboardStats(BaseModel):
    """Overview figures for the start page."""

    total_documents: int
    total_size: int
    file_types: dict[str, int] = {}
    recent_documents: list[DocumentRecord] = []
