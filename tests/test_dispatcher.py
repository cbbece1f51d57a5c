"""Tests for src.core.dispatcher — selection, send+update orchestration, summary."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.dispatcher import (
    NO_REMINDERS_MESSAGE,
    ReminderDispatcher,
    dispatch_reminders,
    summarize,
)
from src.data.models import DueReminder, RecipientInfo, ReminderResult
from src.ports.notification_port import NotificationError
from src.ports.task_store_port import StoreError

SENDER = "PLANIO <onboarding@resend.dev>"
NOW = datetime(2025, 2, 28, 1, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_reminder(task_id: str = "t1", email: str = "ana@example.com") -> DueReminder:
    return DueReminder(
        id=task_id,
        title=f"Task {task_id}",
        description=None,
        due_date="2025-03-01T00:00:00Z",
        priority="medium",
        user_id="u1",
        profiles=RecipientInfo(email=email, full_name=None),
    )


def _make_store(reminders: list[DueReminder]) -> MagicMock:
    store = MagicMock()
    store.fetch_due_reminders.return_value = reminders
    return store


def _make_notifier() -> AsyncMock:
    notifier = AsyncMock()
    notifier.send_email = AsyncMock(return_value="msg-1")
    return notifier


def _dispatcher(store, notifier, **kwargs) -> ReminderDispatcher:
    return ReminderDispatcher(store, notifier, sender=SENDER, **kwargs)


# ---------------------------------------------------------------------------
# ReminderDispatcher.run with mocks
# ---------------------------------------------------------------------------


class TestDispatcherRun:
    @pytest.mark.asyncio
    async def test_no_reminders_touches_nothing(self):
        store = _make_store([])
        notifier = _make_notifier()

        result = await _dispatcher(store, notifier).run(now=NOW)

        assert result == {"message": NO_REMINDERS_MESSAGE, "count": 0}
        notifier.send_email.assert_not_called()
        store.mark_reminder_sent.assert_not_called()

    @pytest.mark.asyncio
    async def test_selection_uses_invocation_time(self):
        store = _make_store([])
        await _dispatcher(store, _make_notifier()).run(now=NOW)
        store.fetch_due_reminders.assert_called_once_with(NOW)

    @pytest.mark.asyncio
    async def test_selection_failure_propagates(self):
        store = MagicMock()
        store.fetch_due_reminders.side_effect = StoreError("connection refused")
        notifier = _make_notifier()

        with pytest.raises(StoreError):
            await _dispatcher(store, notifier).run(now=NOW)

        notifier.send_email.assert_not_called()
        store.mark_reminder_sent.assert_not_called()

    @pytest.mark.asyncio
    async def test_sends_then_marks_each_task(self):
        store = _make_store([_make_reminder("t1"), _make_reminder("t2", "bo@example.com")])
        notifier = _make_notifier()

        result = await _dispatcher(store, notifier).run(now=NOW)

        assert result["total"] == 2
        assert result["successful"] == 2
        assert result["failed"] == 0
        assert notifier.send_email.await_count == 2
        marked = {c.args[0] for c in store.mark_reminder_sent.call_args_list}
        assert marked == {"t1", "t2"}

    @pytest.mark.asyncio
    async def test_send_failure_is_isolated_and_not_marked(self):
        store = _make_store([_make_reminder("bad"), _make_reminder("good")])
        notifier = _make_notifier()

        async def send(message):
            if message.subject.endswith("Task bad"):
                raise NotificationError("mailbox unavailable")
            return "msg-ok"

        notifier.send_email.side_effect = send

        result = await _dispatcher(store, notifier).run(now=NOW)

        assert result["successful"] == 1
        assert result["failed"] == 1
        store.mark_reminder_sent.assert_called_once_with("good")
        by_id = {r["taskId"]: r for r in result["results"]}
        assert by_id["bad"]["success"] is False
        assert "mailbox unavailable" in by_id["bad"]["error"]
        assert by_id["good"] == {"taskId": "good", "success": True}

    @pytest.mark.asyncio
    async def test_update_failure_recorded_after_send(self):
        store = _make_store([_make_reminder("t1")])
        store.mark_reminder_sent.side_effect = StoreError("write timeout")
        notifier = _make_notifier()

        result = await _dispatcher(store, notifier).run(now=NOW)

        notifier.send_email.assert_awaited_once()
        assert result["failed"] == 1
        assert result["results"] == [
            {"taskId": "t1", "success": False, "error": "write timeout"},
        ]

    @pytest.mark.asyncio
    async def test_update_happens_after_send(self):
        calls: list[str] = []
        store = _make_store([_make_reminder("t1")])
        store.mark_reminder_sent.side_effect = lambda task_id: calls.append(f"mark:{task_id}")
        notifier = _make_notifier()

        async def send(message):
            calls.append("send")
            return "msg"

        notifier.send_email.side_effect = send

        await _dispatcher(store, notifier).run(now=NOW)

        assert calls == ["send", "mark:t1"]


# ---------------------------------------------------------------------------
# dispatch_reminders concurrency
# ---------------------------------------------------------------------------


class TestDispatchConcurrency:
    @pytest.mark.asyncio
    async def test_in_flight_sends_are_capped(self):
        in_flight = 0
        peak = 0

        async def send(message):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return "msg"

        notifier = _make_notifier()
        notifier.send_email.side_effect = send
        reminders = [_make_reminder(f"t{i}") for i in range(10)]

        results = await dispatch_reminders(
            reminders, MagicMock(), notifier, sender=SENDER, max_concurrency=3,
        )

        assert len(results) == 10
        assert all(r.success for r in results)
        assert 1 < peak <= 3


# ---------------------------------------------------------------------------
# summarize
# ---------------------------------------------------------------------------


class TestSummarize:
    @pytest.mark.parametrize("outcomes", [
        [True],
        [False],
        [True, False, True],
        [False, False, False, True],
    ])
    def test_total_equals_successful_plus_failed(self, outcomes):
        results = [
            ReminderResult(task_id=f"t{i}", success=ok, error=None if ok else "x")
            for i, ok in enumerate(outcomes)
        ]
        summary = summarize(results)
        assert summary.total == len(outcomes)
        assert summary.total == summary.successful + summary.failed
        assert summary.successful == sum(outcomes)


# ---------------------------------------------------------------------------
# End-to-end against the SQLite store
# ---------------------------------------------------------------------------


class TestDispatcherWithTaskDB:
    @pytest.mark.asyncio
    async def test_pay_rent_scenario(self, task_db, profile_db):
        profile_db.upsert_profile("u1", "ana@example.com", "Ana")
        task = task_db.add_task(
            user_id="u1",
            title="Pay rent",
            due_date="2025-03-01T00:00:00Z",
            priority="high",
            reminder_enabled=True,
            reminder_offset="1_day",
        )
        notifier = _make_notifier()

        result = await _dispatcher(task_db, notifier).run(now=NOW)

        assert result["total"] == 1
        assert result["successful"] == 1
        assert result["failed"] == 0
        message = notifier.send_email.await_args.args[0]
        assert message.to == ["ana@example.com"]
        assert "Pay rent" in message.subject
        assert "Alta" in message.html
        assert task_db.get_task(task.id).reminder_sent is True

    @pytest.mark.asyncio
    async def test_second_run_sends_nothing(self, task_db, profile_db):
        profile_db.upsert_profile("u1", "ana@example.com")
        for title in ("A", "B"):
            task_db.add_task(
                user_id="u1", title=title, due_date="2025-03-01T00:00:00Z",
                reminder_enabled=True, reminder_offset="1_day",
            )
        notifier = _make_notifier()
        dispatcher = _dispatcher(task_db, notifier)

        first = await dispatcher.run(now=NOW)
        second = await dispatcher.run(now=NOW)

        assert first["successful"] == 2
        assert second == {"message": NO_REMINDERS_MESSAGE, "count": 0}
        assert notifier.send_email.await_count == 2

    @pytest.mark.asyncio
    async def test_failed_send_stays_eligible(self, task_db, profile_db):
        profile_db.upsert_profile("u1", "ana@example.com")
        task = task_db.add_task(
            user_id="u1", title="Retry me", due_date="2025-03-01T00:00:00Z",
            reminder_enabled=True, reminder_offset="1_day",
        )
        notifier = _make_notifier()
        notifier.send_email.side_effect = NotificationError("rate limited")

        result = await _dispatcher(task_db, notifier).run(now=NOW)

        assert result["failed"] == 1
        assert task_db.get_task(task.id).reminder_sent is False
        assert [r.id for r in task_db.fetch_due_reminders(NOW)] == [task.id]
