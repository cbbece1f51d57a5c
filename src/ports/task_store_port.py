"""Task store port — the narrow slice of the task store the dispatcher needs.

Core modules depend on this protocol, never on a specific database.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.data.models import DueReminder


class StoreError(Exception):
    """Raised when any task store read or write fails."""


class TaskStorePort(Protocol):
    """Abstract task store interface used by the reminder dispatcher."""

    def fetch_due_reminders(self, now: datetime) -> list[DueReminder]:
        """Tasks with reminders enabled, unsent and due at `now`.

        Only tasks whose owning profile exists are returned.
        """
        ...

    def mark_reminder_sent(self, task_id: str) -> None:
        """Set `reminder_sent = true` for a single task."""
        ...
