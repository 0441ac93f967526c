"""Shared pytest fixtures: environment defaults, a fake REST gateway and booted clients."""

import asyncio
import logging
from typing import Callable

import httpx
import pytest

from shared.clients.backend.rest.BackendClientRest import BackendClientRest
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger
from viewmodels.cache.FetchCache import FetchCache
from tests.fakes import BASE_URL, FakeBackend


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def helper_config(monkeypatch: pytest.MonkeyPatch) -> HelperConfig:
    monkeypatch.setenv("BACKEND_REST_BASE_URL", BASE_URL)
    monkeypatch.setenv("WEBUI_SEARCH_DEBOUNCE_MS", "20")
    monkeypatch.setenv("WEBUI_DOCUMENT_POLL_INTERVAL_MS", "20")
    monkeypatch.setenv("WEBUI_UPLOAD_PROCESSING_DELAY_MS", "0")
    for key in ("BACKEND_ENGINE", "BACKEND_REST_API_KEY", "LLM_ENGINE", "LLM_OPENAI_API_KEY", "WEBUI_STORAGE_PATH", "WEBUI_SEARCH_PAGE_SIZE", "WEBUI_CHAT_SESSION_STORAGE_KEY"):
        monkeypatch.delenv(key, raising=False)
    return HelperConfig(logger=ColorLogger(logging.getLogger("webui.tests")))


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
async def backend_client(helper_config: HelperConfig, fake_backend: FakeBackend):
    client = BackendClientRest(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(fake_backend))
    yield client
    await client.close()


@pytest.fixture
def cache(helper_config: HelperConfig) -> FetchCache:
    return FetchCache(helper_config=helper_config)


@pytest.fixture
def wait_until() -> Callable:
    async def _wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not reached in time")
            await asyncio.sleep(0.005)

    return _wait_until
