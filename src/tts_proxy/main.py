"""
FastAPI Application Entry Point.

This module creates the FastAPI application for the tts-proxy service.

Usage:
    # Run with uvicorn
    uvicorn tts_proxy.main:app --host 0.0.0.0 --port 8000

    # Or use the module directly
    python -m uvicorn tts_proxy.main:app --reload
"""

from __future__ import annotations

from fastapi import FastAPI

from tts_proxy import __version__
from tts_proxy.api.routes import register_exception_handlers, router
from tts_proxy.core.logging import configure_logging, get_logger, info


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance ready to serve requests.
    """
    # Reads TTS_PROXY_LOG_LEVEL / TTS_PROXY_LOG_DIR
    configure_logging()

    app = FastAPI(title="tts-proxy", version=__version__)
    app.include_router(router)
    register_exception_handlers(app)

    info(get_logger("tts-proxy.main"), "app_created", version=__version__)
    return app


# Global application instance for ASGI servers (uvicorn, gunicorn, etc.)
app = create_app()
