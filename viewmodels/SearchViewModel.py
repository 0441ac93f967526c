"""Search viewmodel.

Filter edits are debounced, normalised into a SearchQuery and executed
through the fetch cache keyed by that query. Only the result for the current
query is rendered; the previous result stays visible while a new query loads.
"""

from shared.clients.backend.BackendClientInterface import BackendClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.search import SearchFilters, SearchQuery, SearchResultItem, SearchResultSet
from viewmodels.cache.CacheKey import SearchKey
from viewmodels.cache.CacheSubscription import CacheSubscription
from viewmodels.cache.FetchCache import FetchCache
from viewmodels.helper.Debouncer import Debouncer


class SearchViewModel:
    def __init__(
        self,
        helper_config: HelperConfig,
        backend_client: BackendClientInterface,
        cache: FetchCache,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._backend = backend_client
        self._subscription = CacheSubscription(cache, keep_previous_data=True)
        self._page_size = int(helper_config.get_number_val("WEBUI_SEARCH_PAGE_SIZE", default=100))
        self._debouncer: Debouncer[SearchFilters] = Debouncer(
            delay=helper_config.get_duration_val("WEBUI_SEARCH_DEBOUNCE_MS", default_ms=300),
            callback=self._dispatch,
        )

        self._filters = SearchFilters()

    ##########################################
    ################ GETTER ##################
    ##########################################

    @property
    def filters(self) -> SearchFilters:
        """The filter state as typed, possibly not dispatched yet."""
        return self._filters

    @property
    def current_query(self) -> SearchQuery | None:
        """The normalised query whose result is rendered."""
        key = self._subscription.key
        return key.query if isinstance(key, SearchKey) else None

    @property
    def result_set(self) -> SearchResultSet | None:
        return self._subscription.state.data

    @property
    def documents(self) -> list[SearchResultItem]:
        result_set = self.result_set
        return list(result_set.results) if result_set else []

    @property
    def authors(self) -> list[str]:
        """Distinct authors of the displayed results, sorted."""
        return sorted({item.author for item in self.documents if item.author})

    @property
    def file_types(self) -> list[str]:
        """Distinct file types of the displayed results, sorted."""
        return sorted({item.file_type for item in self.documents if item.file_type})

    @property
    def has_active_filters(self) -> bool:
        return self._filters.is_active

    @property
    def is_loading(self) -> bool:
        return self._subscription.state.is_loading

    @property
    def error(self) -> str | None:
        return self._subscription.state.error_message

    ##########################################
    ################ ACTIONS #################
    ##########################################

    async def load(self) -> SearchResultSet | None:
        """Run the search for the current filters right away, without debouncing."""
        self._debouncer.cancel()
        await self._dispatch(self._filters)
        return self.result_set

    def update_search(self, text: str) -> None:
        self._set_filters(self._filters.model_copy(update={"text": text or None}))

    def update_author(self, author: str) -> None:
        self._set_filters(self._filters.model_copy(update={"author": author or None}))

    def update_file_type(self, file_type: str) -> None:
        self._set_filters(self._filters.model_copy(update={"file_type": file_type or None}))

    def update_search_field(self, search_field: str) -> None:
        self._set_filters(self._filters.model_copy(update={"search_field": search_field or None}))

    def clear_filters(self) -> None:
        self._set_filters(SearchFilters())

    async def settle(self) -> SearchResultSet | None:
        """Wait for the pending debounce window and the search it triggers."""
        await self._debouncer.wait_idle()
        return self.result_set

    async def refresh(self) -> SearchResultSet | None:
        await self._subscription.revalidate()
        return self.result_set

    async def close(self) -> None:
        self._debouncer.cancel()
        await self._subscription.close()

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _set_filters(self, filters: SearchFilters) -> None:
        self._filters = filters
        self._debouncer.call(filters)

    async def _dispatch(self, filters: SearchFilters) -> None:
        query = SearchQuery.from_filters(filters, page_size=self._page_size)
        self.logging.debug("Dispatching search %r", query)

        async def fetch() -> SearchResultSet:
            return await self._backend.do_search_documents(query)

        await self._subscription.set_key(SearchKey(query=query), fetch)
