"""FastAPI application entry point: wires everything together.

Usage:
    python -m src.main

Serves the public analysis/confirmation API and the admin API, and runs the
staged-upload retention sweep at boot and on a fixed interval.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.admin.web import router as admin_router
from src.analysis.analyzer import DocumentAnalyzer
from src.analysis.rasterizer import PyMuPdfRasterizer
from src.api.errors import register_exception_handlers
from src.api.public import router as public_router
from src.config import settings
from src.db.engine import db_lifespan
from src.notifications.whatsapp import OrderNotifier
from src.storage.artifacts import ArtifactStore
from src.storage.retention import enforce_temp_retention, run_periodic_sweep

# ── Logging setup ────────────────────────────────────────────────────

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    stream=sys.stdout,
)
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = logging.getLogger(__name__)

# ── FastAPI lifespan ─────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application startup and shutdown lifecycle."""
    logger.info("Starting NitiPrint (env=%s)", settings.environment)

    # 1. Database
    async with db_lifespan():
        logger.info("Database initialized")

        # 2. Storage roots and collaborators
        store = ArtifactStore(settings.storage.storage_root)
        store.ensure_roots()
        logger.info("Storage ready at %s", store.root)

        notifier = OrderNotifier(settings.notifier)
        if not notifier.is_configured:
            logger.warning("FONNTE_TOKEN / ADMIN_WHATSAPP_NUMBER not set; order alerts disabled")

        app.state.store = store
        app.state.analyzer = DocumentAnalyzer(
            PyMuPdfRasterizer(dpi=settings.analysis.render_dpi), store
        )
        app.state.notifier = notifier

        # 3. Retention: once at boot, then periodically
        await enforce_temp_retention(store)
        sweep_task: asyncio.Task[None] | None = None
        if settings.storage.sweep_interval_hours > 0:
            interval = timedelta(hours=settings.storage.sweep_interval_hours)
            sweep_task = asyncio.create_task(run_periodic_sweep(store, interval))
            logger.info("Retention sweep scheduled every %s", interval)

        try:
            yield
        finally:
            logger.info("Shutting down NitiPrint...")

            if sweep_task is not None:
                sweep_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await sweep_task
                logger.info("Retention sweep stopped")

            await notifier.drain()

    logger.info("NitiPrint shutdown complete")


# ── FastAPI app ──────────────────────────────────────────────────────

app = FastAPI(
    title="NitiPrint API",
    description="Print-order intake: color page analysis, manual payment confirmation, admin",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)
app.include_router(public_router)
app.include_router(admin_router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {
        "status": "ok",
        "environment": settings.environment,
    }


# ── Entry point ──────────────────────────────────────────────────────

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=settings.app_port,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower(),
    )
