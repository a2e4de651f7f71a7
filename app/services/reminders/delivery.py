from abc import ABC, abstractmethod
from typing import Optional
import asyncio
import random

from app.utils.logging import get_logger

from .reminder_models import DeliveryOutcome, PendingReminder

logger = get_logger()

DELIVERY_SUCCESS_DETAILS = "Reminder sent successfully"
DELIVERY_FAILURE_DETAILS = "Failed to send reminder"


class ReminderNotifier(ABC):
    """Sends a reminder to a task owner"""

    @abstractmethod
    async def deliver(self, reminder: PendingReminder) -> DeliveryOutcome:
        """Attempt delivery; failures are reported in the outcome, not raised"""
        pass


class SimulatedReminderNotifier(ReminderNotifier):
    """
    Stand-in for an email/SMS channel.

    Waits ``delay_ms`` to mimic network latency, then succeeds with
    probability ``success_rate``. Pass a seeded ``random.Random`` to make
    the outcome sequence reproducible.
    """

    def __init__(
        self,
        success_rate: float = 0.95,
        delay_ms: int = 100,
        rng: Optional[random.Random] = None,
    ):
        if not 0.0 <= success_rate <= 1.0:
            raise ValueError("success_rate must be between 0 and 1")
        self.success_rate = success_rate
        self.delay_ms = delay_ms
        self.rng = rng or random.Random()

    async def deliver(self, reminder: PendingReminder) -> DeliveryOutcome:
        if self.delay_ms > 0:
            await asyncio.sleep(self.delay_ms / 1000)

        successful = self.rng.random() < self.success_rate

        logger.debug(
            f"Simulated sending {reminder.reminder_type.value} reminder to {reminder.owner_email} "
            f"for task '{reminder.task_title}' - {'SUCCESS' if successful else 'FAILED'}"
        )
        return DeliveryOutcome(
            successful=successful,
            details=DELIVERY_SUCCESS_DETAILS if successful else DELIVERY_FAILURE_DETAILS,
        )
