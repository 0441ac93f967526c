from collections import Counter

from shared.clients.backend.BackendClientInterface import BackendClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import DashboardStats, DocumentRecord
from viewmodels.cache.CacheKey import DashboardKey
from viewmodels.cache.CacheSubscription import CacheSubscription
from viewmodels.cache.FetchCache import FetchCache

RECENT_DOCUMENTS = 5


class DashboardViewModel:
    """Start page figures derived from the full document listing."""

    def __init__(self, helper_config: HelperConfig, backend_client: BackendClientInterface, cache: FetchCache) -> None:
        self.logging = helper_config.get_logger()
        self._backend = backend_client
        self._subscription = CacheSubscription(cache)

    @property
    def documents(self) -> list[DocumentRecord]:
        return self._subscription.state.data or []

    @property
    def stats(self) -> DashboardStats:
        documents = self.documents
        file_types = Counter(document.file_type or "unknown" for document in documents)
        return DashboardStats(
            total_documents=len(documents),
            total_size=sum(document.size for document in documents),
            file_types=dict(file_types),
            recent_documents=documents[:RECENT_DOCUMENTS],
        )

    @property
    def is_loading(self) -> bool:
        return self._subscription.state.is_loading

    @property
    def error(self) -> str | None:
        return self._subscription.state.error_message

    async def load(self) -> DashboardStats:
        await self._subscription.set_key(DashboardKey(), self._backend.do_fetch_files)
        return self.stats

    async def refresh(self) -> DashboardStats:
        await self._subscription.revalidate()
        return self.stats
