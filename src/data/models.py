"""
PLANIO Reminders — Data Models.

Tasks, projects and categories are written by the web app; the reminder
dispatcher only reads due reminders and flips `reminder_sent`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ReminderOffset(str, Enum):
    """When, relative to the due date, the reminder should fire."""

    ONE_DAY = "1_day"
    ONE_HOUR = "1_hour"
    AT_TIME = "at_time"


@dataclass
class Profile:
    """A user's contact details, keyed by their user id."""

    id: str
    email: str
    full_name: str | None = None
    created_at: str = ""


@dataclass
class Project:
    id: str
    user_id: str
    name: str
    color: str = "hsl(210, 100%, 50%)"
    icon: str = "Briefcase"
    created_at: str = ""


@dataclass
class Category:
    id: str
    user_id: str
    name: str
    color: str = "hsl(210, 100%, 50%)"
    icon: str = "User"
    created_at: str = ""


@dataclass
class Task:
    """A task row as stored by the web app.

    `reminder_time` is derived from `due_date` and the chosen offset when the
    task is saved; it is None when reminders are off or there is no due date.
    """

    id: str
    user_id: str
    title: str
    project_id: str | None = None
    category_id: str | None = None
    description: str | None = None
    priority: str = Priority.MEDIUM.value
    status: str = TaskStatus.PENDING.value
    due_date: str | None = None           # ISO-8601 UTC timestamp
    reminder_enabled: bool = False
    reminder_time: str | None = None      # ISO-8601 UTC timestamp
    reminder_sent: bool = False
    created_at: str = ""


@dataclass
class RecipientInfo:
    """Profile fields joined onto a due reminder."""

    email: str
    full_name: str | None = None


@dataclass
class DueReminder:
    """A task eligible for dispatch, with its owner's contact info attached."""

    id: str
    title: str
    user_id: str
    profiles: RecipientInfo
    description: str | None = None
    due_date: str | None = None
    priority: str = Priority.MEDIUM.value


@dataclass
class ReminderResult:
    """Outcome of one task's send+update unit."""

    task_id: str
    success: bool
    error: str | None = None

    def to_dict(self) -> dict:
        data: dict = {"taskId": self.task_id, "success": self.success}
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class RunSummary:
    """Aggregate result of one dispatcher invocation."""

    message: str
    total: int
    successful: int
    failed: int
    results: list[ReminderResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
        }
