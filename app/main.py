from contextlib import asynccontextmanager, contextmanager
from datetime import timedelta
import asyncio

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config.settings import settings
from app.db.db import create_tables
from app.db.session import session_scope
from app.utils.logging import get_logger
from app.routers import main_router
from app.utils.errors import setup_error_handlers
from app.middlewares import RequestIDMiddleware
from app.services.reminders import create_reminder_service
from app.worker import ReminderScheduler

# Initialize the logger
logger = get_logger()


@contextmanager
def reminder_service_scope():
    """ReminderService bound to a fresh session, for one scheduler run"""
    with session_scope() as db_session:
        yield create_reminder_service(db_session)


def build_reminder_scheduler() -> ReminderScheduler:
    return ReminderScheduler(
        service_factory=reminder_service_scope,
        interval=timedelta(minutes=settings.REMINDER_INTERVAL_MINUTES),
        window=timedelta(hours=settings.REMINDER_WINDOW_HOURS),
    )


@asynccontextmanager
async def lifespan(_: FastAPI):
    logger.info("Task Tracker is starting up...")
    create_tables()

    scheduler = None
    scheduler_task = None
    if settings.REMINDER_SCHEDULER_ENABLED:
        scheduler = build_reminder_scheduler()
        scheduler_task = asyncio.create_task(scheduler.run())

    yield

    if scheduler is not None and scheduler_task is not None:
        scheduler.stop()
        await scheduler_task
    logger.info("Task Tracker is shutting down...")


def create_application() -> FastAPI:
    """Initialize the FastAPI application with settings and lifespan events."""
    application = FastAPI(
        title=settings.NAME, version=settings.VERSION, lifespan=lifespan
    )

    # Setup error handlers
    setup_error_handlers(application)

    # Add CORS middleware
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_HOSTS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "authorization"],
    )

    application.add_middleware(RequestIDMiddleware)

    # Routers
    application.include_router(main_router, prefix=settings.API_PREFIX, tags=["APIs"])

    return application


app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_config=None,
        log_level=None,
    )
