"""
PLANIO Reminders — Reminder window derivation.

The web app stores `reminder_time` next to `due_date` when a task is saved.
The dispatcher never recomputes it; it only compares it to "now".
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from src.data.models import ReminderOffset

_OFFSETS: dict[ReminderOffset, timedelta] = {
    ReminderOffset.ONE_DAY: timedelta(days=1),
    ReminderOffset.ONE_HOUR: timedelta(hours=1),
    ReminderOffset.AT_TIME: timedelta(0),
}


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive values are assumed to already be UTC. A trailing "Z" is accepted.
    """
    if isinstance(value, datetime):
        dt = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso(dt: datetime) -> str:
    """Canonical storage form: UTC, seconds precision, "Z" suffix.

    A fixed-width format keeps string comparison in SQL consistent with
    chronological order.
    """
    return parse_timestamp(dt).strftime("%Y-%m-%dT%H:%M:%SZ")


def compute_reminder_time(
    due_date: str | datetime | None,
    reminder_enabled: bool,
    offset: ReminderOffset | str = ReminderOffset.ONE_DAY,
) -> datetime | None:
    """Return when the reminder should fire, or None when it never should.

    Raises:
        ValueError: if `offset` is not one of the supported offsets.
    """
    offset = ReminderOffset(offset)
    if not reminder_enabled or due_date is None:
        return None
    return parse_timestamp(due_date) - _OFFSETS[offset]
