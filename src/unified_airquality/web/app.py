"""FastAPI application exposing the latest derived values."""

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from unified_airquality import __version__

if TYPE_CHECKING:
    from unified_airquality.context import AppContext

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan.

    The AppContext is created and started by the CLI before the web app
    starts; this only logs web-specific startup/shutdown.
    """
    context = app.state.context
    logger.info("Web application starting...")
    if not context.is_started:
        logger.warning("AppContext provided but not started - values will stay empty")

    yield

    logger.info("Web application shutting down...")


def create_app(context: "AppContext") -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        context: Application context whose values are served

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Unified Air Quality",
        description="Aggregated temperature, humidity and air quality readings",
        version=__version__,
        lifespan=lifespan,
    )

    # Store context in app.state for access in request handlers
    app.state.context = context

    from unified_airquality.web.routes import router

    app.include_router(router)
    logger.info("FastAPI application created")
    return app
