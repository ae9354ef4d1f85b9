"""FastAPI application entry point.

Local bridge between the ticket scanning core and whatever renders it.
"""

import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from loto_client.config import settings

# Configure loguru
settings.LOG_DIR.mkdir(parents=True, exist_ok=True)
logger.remove()
logger.add(sys.stderr, level="DEBUG" if settings.DEBUG else "INFO")
logger.add(settings.LOG_DIR / "app.log", rotation="10 MB", retention="7 days", level="INFO")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    logger.info("Starting {} ...", settings.APP_NAME)

    from loto_client.scanner.scheduler import start_scheduler
    start_scheduler()

    yield

    # Shutdown: the session goes first so its timers are cancelled
    from loto_client.api.deps import close_session
    from loto_client.scanner.scheduler import stop_scheduler
    close_session()
    stop_scheduler()
    logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="Lô Tô ticket scanning and marking",
    lifespan=lifespan,
)

# Include API routers
from loto_client.api.v1.router import api_router  # noqa: E402
app.include_router(api_router, prefix="/api/v1")
