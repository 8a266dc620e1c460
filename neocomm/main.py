"""Application entry point for the FastAPI backend."""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .database import init_db
from .routers import (
    auth_router,
    friends_router,
    messages_router,
    profiles_router,
    realtime_router,
)
from .services import ChatServiceError, ConnectionRegistry, DeliveryDispatcher

logger = logging.getLogger(__name__)


async def _chat_service_error_handler(request: Request, exc: ChatServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def create_app() -> FastAPI:
    """Build the application together with its connection registry and dispatcher.

    The registry lives on ``app.state`` so each application instance owns
    its own live connections.
    """

    settings = get_settings()
    app = FastAPI(title=settings.app_name, version=settings.api_version)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    registry = ConnectionRegistry()
    app.state.connections = registry
    app.state.dispatcher = DeliveryDispatcher(registry, send_timeout=settings.dispatch_send_timeout)

    app.add_exception_handler(ChatServiceError, _chat_service_error_handler)

    app.include_router(auth_router)
    app.include_router(friends_router)
    app.include_router(messages_router)
    app.include_router(profiles_router)
    app.include_router(realtime_router)

    @app.on_event("startup")
    async def _startup() -> None:
        """Ensure the database schema exists before serving."""

        try:
            init_db()
        except Exception:
            logger.exception("Database initialisation failed")
            raise
        logger.info("%s %s ready", settings.app_name, settings.api_version)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await app.state.dispatcher.aclose()
        dropped = len(registry)
        await registry.clear()
        logger.info("Released %d live connection(s) on shutdown", dropped)

    @app.get("/", tags=["system"])
    def index() -> str:
        return "Hello, NeoComm Chat!"

    @app.get("/api", tags=["system"])
    def api_info() -> dict[str, str]:
        return {"service": settings.app_name, "version": settings.api_version}

    @app.get("/health", tags=["system"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
