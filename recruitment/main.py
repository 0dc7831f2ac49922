"""
Main FastAPI application.

This is the entry point for the API server.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from recruitment.core.config import settings
from recruitment.errors import AppError, app_error_handler
from recruitment.routers import (
    compatibility,
    health,
    invitations,
    selection_processes,
    stages,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for the FastAPI app.

    Starts the outbox worker inside the API process when
    EMBEDDED_WORKER_ENABLED is set; otherwise run it standalone.
    """
    logger.info("Starting %s...", settings.APP_NAME)

    worker = None
    worker_task = None
    if settings.EMBEDDED_WORKER_ENABLED:
        from recruitment.workers.outbox_worker import get_default_worker

        worker = get_default_worker()
        worker_task = asyncio.create_task(worker.run_forever())

    yield

    if worker is not None:
        worker.request_stop()
        await worker_task
    logger.info("Shutting down %s...", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    description="Selection pipeline API: stages, processes, invitations and compatibility scores",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_exception_handler(AppError, app_error_handler)

# Include routers (API endpoints)
app.include_router(health.router, tags=["Health"])
app.include_router(stages.router)
app.include_router(selection_processes.router)
app.include_router(invitations.router)
app.include_router(compatibility.router)
