"""Composite cache keys.

A key identifies one logical request. Keys are frozen pydantic models, so
equality and hashing are structural: two DocumentKey(document_id=7) built
independently address the same cache slot, and a SearchKey changes as soon as
any field of its normalised query changes.
"""

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict

from shared.models.search import SearchQuery


class _CacheKeyBase(BaseModel):
    model_config = ConfigDict(frozen=True)


class DocumentKey(_CacheKeyBase):
    kind: Literal["document"] = "document"
    document_id: int


class SearchKey(_CacheKeyBase):
    kind: Literal["search"] = "search"
    query: SearchQuery


class ChatSessionKey(_CacheKeyBase):
    kind: Literal["chat-session"] = "chat-session"
    session_id: str


class DashboardKey(_CacheKeyBase):
    kind: Literal["dashboard"] = "dashboard"


CacheKey = Union[DocumentKey, SearchKey, ChatSessionKey, DashboardKey]
