"""The presentation side of the fetch cache.

A subscription follows exactly one current key. Whatever happens to other
keys, state always reflects the current one (last key wins), optionally
falling back to the previous key's value while the current key has none yet.
"""

import asyncio
from contextlib import suppress
from typing import Any, Callable

from viewmodels.cache.CacheKey import CacheKey
from viewmodels.cache.FetchCache import CacheState, FetchCache, Fetcher

RefreshInterval = Callable[[Any], float]


class CacheSubscription:
    def __init__(self, cache: FetchCache, keep_previous_data: bool = False) -> None:
        self.logging = cache.logging
        self._cache = cache
        self._keep_previous_data = keep_previous_data
        self._key: CacheKey | None = None
        self._previous_data: Any = None
        self._poller: asyncio.Task | None = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    @property
    def key(self) -> CacheKey | None:
        return self._key

    @property
    def state(self) -> CacheState:
        """Snapshot for the current key, or the previous key's value while this one has none."""
        if self._key is None:
            return CacheState()
        state = self._cache.get_state(self._key)
        if state.data is None and self._keep_previous_data and self._previous_data is not None:
            return state.model_copy(update={"data": self._previous_data, "is_previous_data": True})
        return state

    @property
    def is_polling(self) -> bool:
        return self._poller is not None and not self._poller.done()

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def set_key(self, key: CacheKey, fetcher: Fetcher) -> CacheState:
        """Make key the current one and request it.

        The returned state belongs to whatever key is current when the request
        resolves, which is not key if a newer one was set meanwhile.
        """
        if key != self._key:
            if self._key is not None:
                current = self._cache.get_state(self._key).data
                if current is not None:
                    self._previous_data = current
            self._key = key
        await self._cache.request(key, fetcher)
        return self.state

    async def revalidate(self) -> CacheState:
        if self._key is not None:
            await self._cache.revalidate(self._key)
        return self.state

    def mutate(self, data: Any) -> None:
        if self._key is not None:
            self._cache.mutate(self._key, data)

    ##########################################
    ################ POLLING #################
    ##########################################

    def start_polling(self, refresh_interval: RefreshInterval) -> None:
        """Refetch the current key until refresh_interval returns 0.

        refresh_interval receives the latest resolved value before every tick and
        returns the delay in seconds until the next refetch. Once it returns 0
        (or less) the poller ends. Polling also ends if the current key changes.
        """
        if self.is_polling:
            return
        self._poller = asyncio.ensure_future(self._poll(self._key, refresh_interval))

    async def stop_polling(self) -> None:
        if self._poller is None:
            return
        self._poller.cancel()
        with suppress(asyncio.CancelledError):
            await self._poller
        self._poller = None

    async def close(self) -> None:
        await self.stop_polling()

    async def _poll(self, key: CacheKey | None, refresh_interval: RefreshInterval) -> None:
        while key is not None and key == self._key:
            interval = refresh_interval(self._cache.get_state(key).data)
            if not interval or interval <= 0:
                self.logging.debug("Polling for %r finished", key)
                return
            await asyncio.sleep(interval)
            if key != self._key:
                return
            self.logging.debug("Polling %r", key)
            await self._cache.revalidate(key)
