import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from shared.models.document import DocumentRecord, UploadFile
from shared.models.errors import ApiError, ApiErrorKind
from viewmodels.DocumentViewModel import NOT_FOUND_MESSAGE, DocumentSyncState, DocumentViewModel
from tests.fakes import error_response

pytestmark = pytest.mark.anyio


async def test_author_edit_is_visible_before_the_update_resolves(helper_config, fake_backend, backend_client, cache) -> None:
    doc = fake_backend.add_document(filename="report.pdf", author="Alice", summary="Quarterly figures")
    release = asyncio.Event()

    async def slow_patch(request: httpx.Request) -> httpx.Response:
        await release.wait()
        return httpx.Response(200, json={**doc, "author": "Bob", "size": 2048, "lastEdited": "2024-06-01T12:00:00Z"})

    fake_backend.override("PATCH", f"/files/{doc['id']}", slow_patch)
    vm = DocumentViewModel(helper_config, backend_client, cache, doc["id"])
    await vm.load()

    vm.start_editing()
    task = asyncio.ensure_future(vm.update_metadata(author="  Bob "))
    await asyncio.sleep(0)

    assert vm.sync_state == DocumentSyncState.SAVING
    assert vm.is_optimistic
    assert vm.document.author == "Bob"
    assert vm.document.last_edited > datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
    assert vm.authoritative.author == "Alice"

    release.set()
    updated = await task

    assert not vm.is_optimistic
    assert vm.sync_state == DocumentSyncState.VIEWING
    assert vm.document == updated
    assert vm.document.size == 2048
    assert vm.document.last_edited == datetime(2024, 6, 1, 12, tzinfo=timezone.utc)
    await vm.close()


async def test_failed_edit_restores_the_previous_record(helper_config, fake_backend, backend_client, cache) -> None:
    doc = fake_backend.add_document(filename="report.pdf", author="Alice", summary="Quarterly figures")
    fake_backend.override("PATCH", f"/files/{doc['id']}", lambda request: error_response(500, "Database unavailable"))
    vm = DocumentViewModel(helper_config, backend_client, cache, doc["id"])
    before = await vm.load()
    vm.start_editing()

    with pytest.raises(ApiError) as exc_info:
        await vm.update_metadata(author="Bob")

    assert exc_info.value.status_code == 500
    assert vm.document == before
    assert vm.document == DocumentRecord.model_validate(doc)
    assert not vm.is_optimistic
    assert vm.sync_state == DocumentSyncState.VIEWING
    await vm.close()


async def test_file_replacement_is_not_shown_optimistically(helper_config, fake_backend, backend_client, cache) -> None:
    doc = fake_backend.add_document(filename="report.pdf", author="Alice", summary="Quarterly figures")
    release = asyncio.Event()

    async def slow_patch(request: httpx.Request) -> httpx.Response:
        await release.wait()
        return httpx.Response(200, json={**doc, "filename": "report-v2.pdf", "size": 4096})

    fake_backend.override("PATCH", f"/files/{doc['id']}", slow_patch)
    vm = DocumentViewModel(helper_config, backend_client, cache, doc["id"])
    await vm.load()

    vm.start_editing()
    task = asyncio.ensure_future(vm.update_metadata(file=UploadFile(filename="report-v2.pdf", content=b"%PDF-1.7", content_type="application/pdf")))
    await asyncio.sleep(0)

    assert vm.sync_state == DocumentSyncState.SAVING
    assert not vm.is_optimistic
    assert vm.document.filename == "report.pdf"

    release.set()
    await task

    assert vm.document.filename == "report-v2.pdf"
    assert vm.document.size == 4096
    await vm.close()


async def test_blank_author_is_rejected_before_any_request(helper_config, fake_backend, backend_client, cache) -> None:
    doc = fake_backend.add_document(summary="Quarterly figures")
    vm = DocumentViewModel(helper_config, backend_client, cache, doc["id"])
    await vm.load()
    vm.start_editing()

    with pytest.raises(ApiError) as exc_info:
        await vm.update_metadata(author="   ")

    assert exc_info.value.kind == ApiErrorKind.VALIDATION
    assert fake_backend.calls("PATCH", f"/files/{doc['id']}") == []
    assert vm.sync_state == DocumentSyncState.EDITING
    await vm.close()


async def test_polling_runs_until_the_summary_arrives(helper_config, fake_backend, backend_client, cache, wait_until) -> None:
    doc = fake_backend.add_document(filename="scan.pdf", summary=None)
    vm = DocumentViewModel(helper_config, backend_client, cache, doc["id"])
    await vm.load()
    assert vm.is_polling

    await wait_until(lambda: len(fake_backend.calls("GET", f"/files/{doc['id']}")) >= 3)
    fake_backend.documents[doc["id"]]["summary"] = "A scanned invoice."
    await wait_until(lambda: not vm.is_polling)

    polls = len(fake_backend.calls("GET", f"/files/{doc['id']}"))
    await asyncio.sleep(0.1)

    assert vm.document.summary == "A scanned invoice."
    assert len(fake_backend.calls("GET", f"/files/{doc['id']}")) == polls

    # reloading the page model does not resume polling
    await vm.load()
    assert not vm.is_polling
    await vm.close()


async def test_document_with_summary_is_never_polled(helper_config, fake_backend, backend_client, cache) -> None:
    doc = fake_backend.add_document(summary="Already summarised")
    vm = DocumentViewModel(helper_config, backend_client, cache, doc["id"])
    await vm.load()
    await asyncio.sleep(0.06)

    assert not vm.is_polling
    assert len(fake_backend.calls("GET", f"/files/{doc['id']}")) == 1
    await vm.close()


async def test_missing_document_reads_as_not_found(helper_config, fake_backend, backend_client, cache) -> None:
    vm = DocumentViewModel(helper_config, backend_client, cache, 999)
    await vm.load()

    assert vm.document is None
    assert vm.error == NOT_FOUND_MESSAGE
    await vm.close()


async def test_delete_clears_the_document_and_stops_polling(helper_config, fake_backend, backend_client, cache) -> None:
    doc = fake_backend.add_document(summary=None)
    vm = DocumentViewModel(helper_config, backend_client, cache, doc["id"])
    await vm.load()

    await vm.delete_document()

    assert vm.is_deleted
    assert vm.document is None
    assert vm.error == NOT_FOUND_MESSAGE
    assert not vm.is_polling
    assert len(fake_backend.calls("DELETE", f"/files/{doc['id']}")) == 1
    assert await vm.update_metadata(author="Bob") is None


async def test_poll_during_save_updates_only_the_authoritative_record(helper_config, fake_backend, backend_client, cache, wait_until) -> None:
    doc = fake_backend.add_document(filename="scan.pdf", author="Alice", summary=None)
    release = asyncio.Event()

    async def held_patch(request: httpx.Request) -> httpx.Response:
        await release.wait()
        return httpx.Response(200, json={**fake_backend.documents[doc["id"]], "author": "Bob"})

    fake_backend.override("PATCH", f"/files/{doc['id']}", held_patch)
    vm = DocumentViewModel(helper_config, backend_client, cache, doc["id"])
    await vm.load()
    assert vm.is_polling

    vm.start_editing()
    task = asyncio.ensure_future(vm.update_metadata(author="Bob"))
    await asyncio.sleep(0)
    polls = len(fake_backend.calls("GET", f"/files/{doc['id']}"))

    fake_backend.documents[doc["id"]]["summary"] = "A scanned invoice."
    await wait_until(lambda: vm.authoritative.summary == "A scanned invoice.")

    assert len(fake_backend.calls("GET", f"/files/{doc['id']}")) > polls
    assert vm.sync_state == DocumentSyncState.SAVING
    assert vm.is_optimistic
    assert vm.document.author == "Bob"
    assert vm.document.summary is None
    assert vm.authoritative.author == "Alice"

    release.set()
    await task

    assert not vm.is_optimistic
    assert vm.document.author == "Bob"
    assert vm.document.summary == "A scanned invoice."
    await vm.close()


async def test_save_requires_an_open_editor(helper_config, fake_backend, backend_client, cache) -> None:
    doc = fake_backend.add_document(summary="Quarterly figures")
    vm = DocumentViewModel(helper_config, backend_client, cache, doc["id"])
    await vm.load()

    with pytest.raises(RuntimeError):
        await vm.update_metadata(author="Bob")

    assert fake_backend.calls("PATCH", f"/files/{doc['id']}") == []
    assert vm.sync_state == DocumentSyncState.VIEWING
    assert not vm.is_optimistic

    vm.start_editing()
    vm.cancel_editing()
    assert vm.sync_state == DocumentSyncState.VIEWING
    await vm.close()
