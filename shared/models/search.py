"""Pydantic models for search requests and responses."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

MATCH_ALL = "*"
DEFAULT_SEARCH_FIELD = "all"


class SearchFilters(BaseModel):
    """Raw filter state as the user edits it, before debouncing and normalisation."""

    model_config = ConfigDict(frozen=True)

    text: str | None = None
    author: str | None = None
    file_type: str | None = None
    search_field: str | None = None

    @property
    def is_active(self) -> bool:
        """True if any filter deviates from its default."""
        return bool(
            (self.text and self.text.strip())
            or self.author
            or self.file_type
            or (self.search_field and self.search_field != DEFAULT_SEARCH_FIELD)
        )


class SearchQuery(BaseModel):
    """Normalised search request sent to POST /documents/search.

    Frozen so it can be part of a cache key: two queries are the same
    cache slot iff all fields are equal.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    query: str = MATCH_ALL
    author: str | None = None
    file_type: str | None = None
    search_field: str | None = None
    page: int = 0
    size: int = 100
    sort_by: str = "uploadTime"
    sort_order: str = "desc"

    @classmethod
    def from_filters(cls, filters: SearchFilters, page_size: int = 100) -> "SearchQuery":
        """Build the request for a filter state.

        Blank text becomes the match-all wildcard, empty filters are left unset,
        and the first page is requested since results are not paginated.
        """
        text = (filters.text or "").strip()
        search_field = filters.search_field if filters.search_field and filters.search_field != DEFAULT_SEARCH_FIELD else None
        return cls(
            query=text or MATCH_ALL,
            author=filters.author or None,
            file_type=filters.file_type or None,
            search_field=search_field,
            page=0,
            size=page_size,
        )

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class SearchResultItem(BaseModel):
    """A single hit returned by the search backend."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    document_id: int
    filename: str
    author: str
    file_type: str | None = None
    size: int = 0
    object_key: str | None = None
    upload_time: datetime | None = None
    summary: str | None = None
    score: float | None = None
    highlighted_text: str | None = None


class SearchResultSet(BaseModel):
    """Search response. Result order is decided by the server and never changed locally."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    results: list[SearchResultItem] = []
    total_hits: int = 0
    page: int = 0
    size: int = 0
    total_pages: int = 0
    search_time_ms: int = 0
