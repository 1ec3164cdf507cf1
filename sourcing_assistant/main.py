"""Main application entry point."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from sourcing_assistant.api.deps import init_session
from sourcing_assistant.api.routes import alerts, calculations, history, images, proposals
from sourcing_assistant.config import settings
from sourcing_assistant.ai.llm_service import llm_service
from sourcing_assistant.notify.lead_capture import lead_capture_client

# Configure structured logging
from sourcing_assistant.logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting Sourcing Assistant...")

    session = init_session()
    logger.info(
        f"Loaded {len(session.history.entries)} history entries, "
        f"{len(session.alerts.all_alerts())} products with price alerts"
    )

    yield

    # Shutdown
    logger.info("Shutting down...")

    await session.images.wait_for_scoring()
    await llm_service.close()
    await lead_capture_client.close()

    logger.info("Shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Sourcing Assistant",
    description="Turn product photos into landed-cost sourcing proposals",
    version="0.1.0",
    lifespan=lifespan,
)

# Add Prometheus instrumentation
instrumentator = Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    should_respect_env_var=True,
    should_instrument_requests_inprogress=True,
    excluded_handlers=["/metrics", "/health"],
    inprogress_name="http_requests_inprogress",
    inprogress_labels=True,
)
instrumentator.instrument(app).expose(app, include_in_schema=True, tags=["monitoring"])

# Include API routes
app.include_router(images.router)
app.include_router(proposals.router)
app.include_router(history.router)
app.include_router(alerts.router)
app.include_router(calculations.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    # Run with uvicorn
    uvicorn.run(
        "sourcing_assistant.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
