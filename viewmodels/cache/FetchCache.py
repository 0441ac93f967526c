"""Keyed request cache with in-flight deduplication.

Every viewmodel reads remote state through a FetchCache. An entry per cache
key remembers the last resolved value, the last error and whether a request is
running. Requests are never aborted: a result always lands in the slot of the
key it was requested for, so a slow answer for an old key cannot overwrite the
answer for a newer one.
"""

import asyncio
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, ConfigDict, Field

from shared.helper.HelperConfig import HelperConfig
from shared.models.errors import ApiError, ApiErrorKind
from viewmodels.cache.CacheKey import CacheKey

Fetcher = Callable[[], Awaitable[Any]]


class CacheState(BaseModel):
    """Read-only snapshot of one cache slot, as handed to rendering."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    data: Any = None
    error: ApiError | None = None
    is_loading: bool = False
    is_previous_data: bool = False

    @property
    def error_message(self) -> str | None:
        return self.error.message if self.error else None


class CacheEntry(BaseModel):
    """Mutable slot for one key. Lives as long as the cache unless evicted."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    key: Any
    data: Any = None
    error: ApiError | None = None
    is_loading: bool = False
    fetcher: Fetcher | None = Field(default=None, repr=False)
    # bumped by mutate(); fetches started under an older generation are discarded
    generation: int = 0

    def snapshot(self) -> CacheState:
        return CacheState(data=self.data, error=self.error, is_loading=self.is_loading)


class FetchCache:
    """Keyed fetch cache. Never revalidates on its own; callers decide when to refetch."""

    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._inflight: dict[CacheKey, asyncio.Task] = {}

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_state(self, key: CacheKey) -> CacheState:
        """Return the current snapshot for a key, an empty state if it was never requested."""
        entry = self._entries.get(key)
        return entry.snapshot() if entry else CacheState()

    def is_inflight(self, key: CacheKey) -> bool:
        return key in self._inflight

    def keys(self) -> list[CacheKey]:
        return list(self._entries.keys())

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def request(self, key: CacheKey, fetcher: Fetcher) -> CacheState:
        """Fetch the value for a key, joining a request that is already running for it.

        Errors are not raised; they are stored on the entry and returned in the
        snapshot. The previous value of the entry is kept when a fetch fails.

        Args:
            key (CacheKey): The structural key of the logical request.
            fetcher (Fetcher): Zero-argument coroutine function producing the value.

        Returns:
            CacheState: The entry's snapshot once the (possibly shared) request resolved.
        """
        entry = self._entries.get(key)
        if entry is None:
            entry = CacheEntry(key=key)
            self._entries[key] = entry
        entry.fetcher = fetcher

        task = self._inflight.get(key)
        if task is None:
            entry.is_loading = True
            task = asyncio.ensure_future(self._run(key, entry, fetcher))
            self._inflight[key] = task
        else:
            self.logging.debug("Joining in-flight request for %r", key)

        # a cancelled caller must not cancel the request other callers wait for
        await asyncio.shield(task)
        return self.get_state(key)

    async def revalidate(self, key: CacheKey) -> CacheState:
        """Re-run the last fetcher registered for a key."""
        entry = self._entries.get(key)
        if entry is None or entry.fetcher is None:
            self.logging.debug("Nothing to revalidate for %r", key)
            return self.get_state(key)
        return await self.request(key, entry.fetcher)

    def mutate(self, key: CacheKey, data: Any) -> None:
        """Replace the cached value locally, without a request.

        A fetch for the key that is still running was started against the old
        value and will not overwrite this one.
        """
        entry = self._entries.get(key)
        if entry is None:
            entry = CacheEntry(key=key)
            self._entries[key] = entry
        entry.data = data
        entry.error = None
        entry.generation += 1

    def evict(self, key: CacheKey) -> None:
        """Forget a key. A request still running for it resolves into the detached entry."""
        self._entries.pop(key, None)
        self._inflight.pop(key, None)

    ##########################################
    ############### HELPERS ##################
    ##########################################

    async def _run(self, key: CacheKey, entry: CacheEntry, fetcher: Fetcher) -> None:
        generation = entry.generation
        try:
            data = await fetcher()
        except ApiError as e:
            self.logging.debug("Request for %r failed: %s", key, e.message)
            if entry.generation == generation:
                entry.error = e
        except Exception as e:
            self.logging.exception("Unexpected failure while fetching %r", key)
            if entry.generation == generation:
                entry.error = ApiError(kind=ApiErrorKind.NETWORK, message=str(e) or e.__class__.__name__)
        else:
            if entry.generation == generation:
                entry.data = data
                entry.error = None
            else:
                self.logging.debug("Discarding result for %r, the entry was mutated meanwhile", key)
        finally:
            entry.is_loading = False
            if self._inflight.get(key) is asyncio.current_task():
                del self._inflight[key]
