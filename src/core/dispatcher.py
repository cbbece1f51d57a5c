"""
PLANIO Reminders — Reminder Dispatcher.

One invocation = one short-lived run:
1. select tasks whose reminder is enabled, unsent and due,
2. render and send one email per task, concurrently,
3. mark each task `reminder_sent` only after its email was accepted,
4. return a summary.

Only a selection failure aborts the run. Send and update failures are
recorded per task; the task stays eligible and the next scheduled run
retries it (at-least-once delivery).

This module is provider-agnostic: it depends on TaskStorePort and
NotificationPort protocols, not on specific implementations.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from src.core.renderer import render_reminder
from src.data.models import DueReminder, ReminderResult, RunSummary

if TYPE_CHECKING:
    from src.ports.notification_port import NotificationPort
    from src.ports.task_store_port import TaskStorePort

logger = logging.getLogger(__name__)

NO_REMINDERS_MESSAGE = "No reminders to send"
COMPLETED_MESSAGE = "Reminders processing completed"


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


def select_due_reminders(store: TaskStorePort, now: datetime) -> list[DueReminder]:
    """Fetch every task eligible for a reminder at `now`.

    Store errors propagate: a failed selection aborts the whole run.
    """
    reminders = store.fetch_due_reminders(now)
    logger.info("Found %d tasks that need reminders", len(reminders))
    return reminders


# ---------------------------------------------------------------------------
# Per-task send + update
# ---------------------------------------------------------------------------


async def _process_reminder(
    reminder: DueReminder,
    store: TaskStorePort,
    notifier: NotificationPort,
    semaphore: asyncio.Semaphore,
    sender: str,
    tz_name: str,
) -> ReminderResult:
    """Send one reminder and mark it sent. Never raises."""
    try:
        message = render_reminder(reminder, sender=sender, timezone=tz_name)
        async with semaphore:
            message_id = await notifier.send_email(message)
        logger.info("Email sent for task %s: %s", reminder.id, message_id)
    except Exception as exc:
        logger.error("Error sending reminder for task %s: %s", reminder.id, exc)
        return ReminderResult(task_id=reminder.id, success=False, error=str(exc))

    try:
        await asyncio.to_thread(store.mark_reminder_sent, reminder.id)
    except Exception as exc:
        # Email already delivered; the next run will send it again.
        logger.error("Error updating task %s after send: %s", reminder.id, exc)
        return ReminderResult(task_id=reminder.id, success=False, error=str(exc))

    return ReminderResult(task_id=reminder.id, success=True)


async def dispatch_reminders(
    reminders: list[DueReminder],
    store: TaskStorePort,
    notifier: NotificationPort,
    *,
    sender: str,
    timezone: str = "UTC",
    max_concurrency: int = 5,
) -> list[ReminderResult]:
    """Process all reminders concurrently, at most `max_concurrency` sends in flight."""
    semaphore = asyncio.Semaphore(max(1, max_concurrency))
    return list(
        await asyncio.gather(
            *(
                _process_reminder(r, store, notifier, semaphore, sender, timezone)
                for r in reminders
            )
        )
    )


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


def summarize(results: list[ReminderResult]) -> RunSummary:
    successful = sum(1 for r in results if r.success)
    failed = len(results) - successful
    logger.info("Reminders sent: %d successful, %d failed", successful, failed)
    return RunSummary(
        message=COMPLETED_MESSAGE,
        total=len(results),
        successful=successful,
        failed=failed,
        results=results,
    )


# ---------------------------------------------------------------------------
# Invocation
# ---------------------------------------------------------------------------


class ReminderDispatcher:
    """Runs one reminder invocation against injected store and notifier."""

    def __init__(
        self,
        store: TaskStorePort,
        notifier: NotificationPort,
        *,
        sender: str,
        timezone: str = "UTC",
        max_concurrency: int = 5,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._sender = sender
        self._timezone = timezone
        self._max_concurrency = max_concurrency

    async def run(self, now: datetime | None = None) -> dict:
        """Run once and return the JSON-ready summary.

        Raises:
            StoreError (or any other exception) from the selection stage.
        """
        if now is None:
            now = datetime.now(timezone.utc)

        logger.info("Starting reminder run at %s", now.isoformat())
        reminders = await asyncio.to_thread(select_due_reminders, self._store, now)

        if not reminders:
            return {"message": NO_REMINDERS_MESSAGE, "count": 0}

        results = await dispatch_reminders(
            reminders,
            self._store,
            self._notifier,
            sender=self._sender,
            timezone=self._timezone,
            max_concurrency=self._max_concurrency,
        )
        return summarize(results).to_dict()
