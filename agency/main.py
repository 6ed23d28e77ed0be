"""ASGI entry point: ``uvicorn agency.main:app``."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agency.api.v1 import api_router
from agency.core.config import get_settings
from agency.core.exception_handlers import register_exception_handlers
from agency.core.lifespan import create_lifespan
from agency.middleware import RequestIDMiddleware


def create_app() -> FastAPI:
    """Build the app from current settings.

    Tests that change the backend clear the get_settings cache first; the
    store itself is resolved per request from ``app.state``.
    """
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Team staffing, workflow progress and lead outreach sequences.",
        debug=settings.debug,
        lifespan=create_lifespan,
    )
    register_exception_handlers(app)

    # Last added runs first: request ids are assigned before CORS answers preflights.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[settings.request_id_header],
    )
    app.add_middleware(RequestIDMiddleware, header_name=settings.request_id_header)

    app.include_router(api_router, prefix="/api/v1")
    return app


app = create_app()
