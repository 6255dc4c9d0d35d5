"""
FastAPI application for the hash run email gateway.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from runs_gateway import __version__
from runs_gateway.config import ensure_webhook_secret, settings
from runs_gateway.core.database import Database
from runs_gateway.core.logging import configure_logging, get_logger
from runs_gateway.routers.webhook import router as webhook_router

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    configure_logging(log_level=settings.log_level, json_output=settings.json_logs)
    log.info("application_starting", version=__version__)

    db = Database()
    db.init_schema()
    ensure_webhook_secret(db)

    yield

    log.info("application_stopped")


app = FastAPI(
    title="Hash Run Email Gateway",
    description="Turns inbound emails into published hash run records",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(webhook_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


# Run with: uvicorn runs_gateway.main:app --host 0.0.0.0 --port 8001
