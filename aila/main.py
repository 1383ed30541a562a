"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from aila.api.v1.chat_router import router as chat_router
from aila.api.v1.render_router import router as render_router
from aila.core.config import settings
from aila.core.exceptions import (
    AppException,
    app_exception_handler,
    validation_exception_handler,
)
from aila.core.logging import configure_logging
from aila.dependencies import get_llm
from aila.schemas.response_schema import ApiResponse, success_response
from aila.services.chat_store import ChatStore

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the chat store on startup and close it on shutdown."""
    configure_logging(settings.app)
    logger.info(
        "Starting application",
        app_name=settings.app.name,
        environment=settings.app.env,
        llm_provider=settings.llm.provider,
        database=str(settings.database.path),
    )
    try:
        get_llm()
    except AppException as exc:
        logger.error("Cannot start without a completion model", error=exc.message)
        raise

    store = ChatStore(settings.database.async_url)
    await store.init()
    app.state.chat_store = store
    try:
        yield
    finally:
        await store.close()
        app.state.chat_store = None
        logger.info("Shutting down application")


app = FastAPI(
    title=settings.app.name,
    description="Local chat backend: saved conversations and model replies",
    version="0.1.0",
    lifespan=lifespan,
    debug=settings.app.debug,
)

# Exception handlers
app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]


@app.get("/health", response_model=ApiResponse[dict])
async def health_check() -> dict:
    """Health check endpoint."""
    return success_response({"status": "healthy"})


@app.get("/", response_model=ApiResponse[dict])
async def root() -> dict:
    """Root endpoint."""
    return success_response(
        {
            "app": settings.app.name,
            "version": "0.1.0",
            "docs": "/docs",
        }
    )


# Register routers
app.include_router(chat_router)
app.include_router(render_router)


def run() -> None:
    """Serve the API on the configured local address."""
    uvicorn.run(
        "aila.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.app.is_development,
        log_level="debug" if settings.app.debug else "info",
    )


if __name__ == "__main__":
    run()
