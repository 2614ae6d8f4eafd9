"""Axle API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map AxleError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, reasoning client and scheduler initialized in the lifespan;
      the scheduler timer is stopped (and an in-flight tick awaited) on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Scheduler autostart is a setting: tests and one-off tools run without a timer
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from axle.api.error_handlers import register_error_handlers
from axle.api.routes import agent, budget, health, tasks
from axle.config import get_settings
from axle.infrastructure.anthropic_client import AnthropicReasoningClient
from axle.infrastructure.database import init_db
from axle.infrastructure.observability import setup_logging
from axle.services.scheduler_loop import init_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    reasoning = AnthropicReasoningClient(
        settings.anthropic_api_key,
        model=settings.anthropic_model,
        max_tokens=settings.anthropic_max_tokens,
    )
    scheduler = init_scheduler(db.session, reasoning, settings)
    if settings.agent_autostart:
        scheduler.start()
    logger.info("Axle API started")
    yield
    logger.info("Axle API shutting down")
    await scheduler.shutdown()
    await db.dispose()


app = FastAPI(title="Axle Agent API", version="0.1.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(tasks.router)
app.include_router(agent.router)
app.include_router(budget.router)

register_error_handlers(app)
