import asyncio
import json

import httpx
import pytest

from shared.models.search import SearchFilters, SearchQuery
from viewmodels.SearchViewModel import SearchViewModel

pytestmark = pytest.mark.anyio


def _bodies(fake_backend) -> list[dict]:
    return [json.loads(request.content) for request in fake_backend.calls("POST", "/documents/search")]


async def test_burst_of_edits_issues_one_search_with_the_final_state(helper_config, fake_backend, backend_client, cache) -> None:
    fake_backend.add_document(filename="report.pdf", author="Alice")
    fake_backend.add_document(filename="report.docx", author="Bob", file_type="docx")
    vm = SearchViewModel(helper_config, backend_client, cache)

    vm.update_search("r")
    vm.update_search("re")
    vm.update_search("rep")
    vm.update_author("Alice")
    await vm.settle()

    assert _bodies(fake_backend) == [
        {"query": "rep", "author": "Alice", "page": 0, "size": 100, "sortBy": "uploadTime", "sortOrder": "desc"},
    ]
    assert [item.filename for item in vm.documents] == ["report.pdf"]
    await vm.close()


async def test_empty_search_equals_match_all(helper_config, fake_backend, backend_client, cache) -> None:
    fake_backend.add_document(filename="a.pdf")
    fake_backend.add_document(filename="b.pdf")
    vm = SearchViewModel(helper_config, backend_client, cache)

    first = await vm.load()
    vm.update_search("   ")
    second = await vm.settle()

    assert SearchQuery.from_filters(SearchFilters(text="   ")) == SearchQuery(query="*")
    assert vm.current_query == SearchQuery(query="*")
    bodies = _bodies(fake_backend)
    assert len(bodies) == 2
    assert bodies[0] == bodies[1]
    assert first == second
    await vm.close()


async def test_facets_are_sorted_and_distinct(helper_config, fake_backend, backend_client, cache) -> None:
    fake_backend.add_document(filename="a.pdf", author="Bob", file_type="pdf")
    fake_backend.add_document(filename="b.docx", author="Alice", file_type="docx")
    fake_backend.add_document(filename="c.pdf", author="Bob", file_type="pdf")
    vm = SearchViewModel(helper_config, backend_client, cache)

    await vm.load()

    assert vm.authors == ["Alice", "Bob"]
    assert vm.file_types == ["docx", "pdf"]

    vm.update_file_type("docx")
    await vm.settle()

    assert vm.authors == ["Alice"]
    assert vm.file_types == ["docx"]
    await vm.close()


async def test_active_filters_ignore_default_values(helper_config, backend_client, cache) -> None:
    vm = SearchViewModel(helper_config, backend_client, cache)
    assert not vm.has_active_filters

    vm.update_search_field("all")
    assert not vm.has_active_filters

    vm.update_search_field("filename")
    assert vm.has_active_filters

    vm.update_search_field("all")
    vm.update_author("Alice")
    assert vm.has_active_filters

    vm.clear_filters()
    assert not vm.has_active_filters
    await vm.close()


async def test_slow_superseded_search_does_not_overwrite_newer_results(helper_config, fake_backend, backend_client, cache, wait_until) -> None:
    fake_backend.add_document(filename="slow.pdf")
    fake_backend.add_document(filename="fast.pdf")
    release = asyncio.Event()

    async def search(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if body["query"] == "slow":
            await release.wait()
        hits = [{"documentId": 1 if body["query"] == "slow" else 2, "filename": f"{body['query']}.pdf", "author": "Alice"}]
        return httpx.Response(200, json={"results": hits, "totalHits": 1})

    fake_backend.override("POST", "/documents/search", search)
    vm = SearchViewModel(helper_config, backend_client, cache)

    vm.update_search("slow")
    await wait_until(lambda: len(fake_backend.calls("POST", "/documents/search")) == 1)
    vm.update_search("fast")
    await wait_until(lambda: vm.current_query.query == "fast" and not vm.is_loading)

    assert [item.filename for item in vm.documents] == ["fast.pdf"]

    release.set()
    await vm.settle()

    assert vm.current_query.query == "fast"
    assert [item.filename for item in vm.documents] == ["fast.pdf"]
    await vm.close()


async def test_failed_search_exposes_the_error(helper_config, fake_backend, backend_client, cache) -> None:
    fake_backend.override("POST", "/documents/search", lambda request: httpx.Response(503))
    vm = SearchViewModel(helper_config, backend_client, cache)

    await vm.load()

    assert vm.documents == []
    assert vm.error == "HTTP 503: Service Unavailable"
    await vm.close()
