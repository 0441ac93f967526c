"""FastAPI application entry point for the paperless web client's chat route."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.clients.backend.BackendClientInterface import BackendClientInterface
from shared.clients.backend.BackendClientManager import BackendClientManager
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.models.errors import ApiError
from server.core.ChatService import ChatService
from server.routers.ChatRouter import router as chat_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)

    backend_client = BackendClientManager(helper_config=app.state.helper_config).get_client()
    llm_client = LLMClientManager(helper_config=app.state.helper_config).get_client()

    logging.info("Booting all clients...")
    for client in [backend_client, llm_client]:
        await client.boot()
    logging.info("All clients booted successfully.")

    app.state.backend_client = backend_client
    app.state.llm_client = llm_client
    app.state.chat_service = ChatService(
        helper_config=app.state.helper_config,
        backend_client=backend_client,
        llm_client=llm_client,
    )

    await check_connections(backend_client)

    # while the app is running...
    yield

    # when the app shuts down, close all client connections
    logging.info("Shutting down, closing all clients...")
    for client in [backend_client, llm_client]:
        await client.close()
    logging.info("All clients closed.")


app = FastAPI(
    title="paperless_webui",
    description=(
        "Chat-completion route of the Paperless web client. "
        "Answers questions about the document collection via POST /api/chat, "
        "grounded in a fresh snapshot of the document metadata."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat_router)


async def check_connections(backend_client: BackendClientInterface) -> None:
    """Check the backend gateway on startup.

    Failures are non-fatal: the chat route still answers, with a prompt noting
    that the document database is unavailable.
    """
    try:
        await backend_client.do_healthcheck()
    except ApiError as e:
        logging.warning(
            "Backend client '%s' is not reachable (%s). Chat answers will lack document context.",
            backend_client.__class__.__name__,
            e.message,
        )


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting paperless_webui API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
