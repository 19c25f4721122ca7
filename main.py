"""
FastAPI application entry point.
"""
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import vipps as vipps_routes
from api.middleware import RequestIDMiddleware, LoggingMiddleware
from core.config import settings
from core.exceptions import register_exception_handlers
from core.response import success_response
from core.logging_config import get_logger
from infrastructure.plugin import VippsPlugin


logger = get_logger(__name__)


def create_app(plugin: Optional[VippsPlugin] = None) -> FastAPI:
    """Build the app around a plugin wired by the host's composition root."""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        debug=settings.DEBUG,
    )
    app.state.vipps_plugin = plugin

    # Starlette runs the last added middleware first: request id binds context before logging
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(vipps_routes.router, prefix=settings.API_PREFIX)

    @app.get("/health", tags=["Health"])
    async def health():
        return success_response(data={"status": "ok", "plugin_configured": app.state.vipps_plugin is not None})

    if plugin is None:
        logger.warning("vipps_plugin_missing", message="routes will answer 503 until a plugin is attached")
    return app
