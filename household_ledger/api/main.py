"""FastAPI application factory"""

from contextlib import asynccontextmanager
from datetime import timedelta
from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from household_ledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from household_ledger.api.v1 import expenses, households, settlements
from household_ledger.domain.reminders import ReminderCooldownStore
from household_ledger.infrastructure.clients.push import PushNotificationClient
from household_ledger.infrastructure.database.session import SessionLocal
from household_ledger.infrastructure.observability.logging import setup_logging
from household_ledger.infrastructure.scheduler import DebtReminderScheduler
from household_ledger.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def build_reminder_scheduler() -> DebtReminderScheduler:
    """Scheduler wired to the configured database, push service and cool-down"""
    return DebtReminderScheduler(
        session_factory=SessionLocal,
        push_client=PushNotificationClient(),
        cooldown_store=ReminderCooldownStore(ttl=timedelta(days=settings.debt_reminder_cooldown_days)),
        interval_seconds=settings.reminder_check_interval_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = None
    if settings.reminder_scheduler_enabled:
        scheduler = build_reminder_scheduler()
        scheduler.start()
    app.state.reminder_scheduler = scheduler
    try:
        yield
    finally:
        if scheduler is not None:
            await scheduler.stop()


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Household Ledger",
        description="Shared-household expenses, settlements, balances and spending insights",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(households.router, prefix="/v1", tags=["households"])
    app.include_router(expenses.router, prefix="/v1", tags=["expenses"])
    app.include_router(settlements.router, prefix="/v1", tags=["settlements"])

    return app


app = create_app()
