from datetime import timedelta
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.db.session import get_sync_session
from app.schemas.reminder_schemas import (
    PendingReminderResponse,
    ReminderProcessingResultResponse,
)
from app.services.reminders import ReminderService, create_reminder_service
from app.utils.logging import get_logger
from app.utils.responses import ResponseBuilder

reminders_router = APIRouter()
logger = get_logger()


def get_reminder_service(
    db: Annotated[Session, Depends(get_sync_session)],
) -> ReminderService:
    return create_reminder_service(db)


@reminders_router.get("/pending")
async def get_pending_reminders(
    request: Request,
    reminder_service: Annotated[ReminderService, Depends(get_reminder_service)],
    window_hours: Optional[int] = Query(
        default=None,
        alias="windowHours",
        ge=1,
        le=168,
        description="Reminder window in hours (defaults to REMINDER_WINDOW_HOURS)",
    ),
):
    """
    Get tasks due within the reminder window, classified by urgency.

    Includes reminders that were already sent; check hasReminderBeenSent.
    """
    logger.info("Fetching pending reminders")

    window = timedelta(hours=window_hours) if window_hours else None
    pending_reminders = await reminder_service.get_pending_reminders(window)

    data = [
        PendingReminderResponse.from_pending(pending).model_dump(by_alias=True)
        for pending in pending_reminders
    ]

    logger.info(f"Found {len(data)} pending reminders")
    return ResponseBuilder.success(
        request=request,
        data=data,
        message=f"Retrieved {len(data)} pending reminders",
    )


@reminders_router.post("/process")
async def process_pending_reminders(
    request: Request,
    reminder_service: Annotated[ReminderService, Depends(get_reminder_service)],
):
    """
    Process all pending reminders on demand.

    Safe to call repeatedly: reminders already recorded for a task's current
    due date are counted as skipped.
    """
    logger.info("Processing pending reminders on-demand")

    result = await reminder_service.process_pending_reminders()
    response = ReminderProcessingResultResponse.from_result(result)

    logger.info(
        f"Processed {response.processed_count} reminders. Success: {response.successful_count}, "
        f"Failed: {response.failed_count}, Skipped: {response.skipped_count}"
    )
    return ResponseBuilder.success(
        request=request,
        data=response.model_dump(by_alias=True),
        message=f"Processed {response.processed_count} reminders",
    )
