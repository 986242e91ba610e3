"""FastAPI application entry point for journal_insight."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.errors.AppError import AppError, ProviderError, ProvisioningError
from shared.clients.inference.InferenceClientManager import InferenceClientManager
from shared.clients.store.StoreClientManager import StoreClientManager
from services.journal_index.IndexService import IndexService
from server.core.JournalService import JournalService
from server.core.QueryService import QueryService
from server.core.SentimentService import SentimentService
from server.routers.HealthRouter import router as health_router
from server.routers.JournalRouter import router as journal_router
from server.routers.SearchRouter import router as search_router
from server.routers.SentimentRouter import router as sentiment_router
from server.routers.UserRouter import router as user_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


def create_app(inference_transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    """Build the API application.

    Args:
        inference_transport: Optional transport for the inference HTTP client,
            e.g. an ``httpx.MockTransport``.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        # when the app starts
        app.state.logging = logging
        app.state.helper_config = HelperConfig(logger=logging)

        store_client = StoreClientManager(helper_config=app.state.helper_config).get_client()
        inference_client = InferenceClientManager(helper_config=app.state.helper_config).get_client()

        logging.info("Booting all clients...")
        await store_client.boot()
        await inference_client.boot(transport=inference_transport)

        # nothing may query the store before the schema is in place
        try:
            await store_client.do_provision_schema()
        except ProvisioningError as e:
            logging.critical("Schema provisioning failed, refusing to serve: %s", e.message)
            await inference_client.close()
            await store_client.close()
            raise
        logging.info("All clients booted successfully.")

        if not await inference_client.do_healthcheck():
            logging.warning(
                "Inference client '%s' is not reachable. Journals will be stored without embeddings.",
                inference_client.get_engine_name(),
            )

        app.state.store_client = store_client
        app.state.inference_client = inference_client

        app.state.index_service = IndexService(
            helper_config=app.state.helper_config,
            store_client=store_client,
            inference_client=inference_client,
        )
        app.state.journal_service = JournalService(
            helper_config=app.state.helper_config,
            store_client=store_client,
            index_service=app.state.index_service,
        )
        app.state.query_service = QueryService(
            helper_config=app.state.helper_config,
            store_client=store_client,
            inference_client=inference_client,
        )
        app.state.sentiment_service = SentimentService(
            helper_config=app.state.helper_config,
            inference_client=inference_client,
        )

        # while the app is running...
        yield

        # when the app shuts down, close all client connections
        logging.info("Shutting down — closing all clients...")
        await inference_client.close()
        await store_client.close()
        logging.info("All clients closed.")

    app = FastAPI(
        title="journal_insight",
        description=(
            "Journaling backend with semantic search over a user's entries and "
            "sentiment classification. Entries are embedded via a remote inference "
            "provider and stored next to their vectors in postgres/pgvector."
        ),
        version=app_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[os.getenv("API_SERVER_CORS_ORIGIN", "*")],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logging.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
        content: dict = {"error": exc.message, "status": exc.status_code}
        if isinstance(exc, ProviderError) and exc.upstream_status is not None:
            content["upstream_status"] = exc.upstream_status
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.get("/")
    async def root() -> dict:
        return {"name": "journal_insight", "status": "ok"}

    for router in (health_router, user_router, journal_router, search_router, sentiment_router):
        app.include_router(router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("API_SERVER_PORT", "5000"))
    logging.info(
        "Starting journal_insight API Server v%s from root dir: %s on port %d...",
        app_version,
        os.getenv("ROOT_DIR", os.getcwd()),
        port,
    )
    uvicorn.run(app, host="0.0.0.0", port=port)
