"""Tests for src.api.app — HTTP invocation endpoint."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from httpx import ASGITransport

from src.api.app import CORS_HEADERS, create_app
from src.ports.task_store_port import StoreError


def _client(dispatcher) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=ASGITransport(app=create_app(dispatcher)), base_url="http://test",
    )


def _dispatcher(run_result=None, run_error=None) -> MagicMock:
    dispatcher = MagicMock()
    dispatcher.run = AsyncMock(return_value=run_result, side_effect=run_error)
    return dispatcher


class TestSendTaskReminders:
    @pytest.mark.asyncio
    async def test_returns_summary(self):
        summary = {
            "message": "Reminders processing completed",
            "total": 1, "successful": 1, "failed": 0,
            "results": [{"taskId": "t1", "success": True}],
        }
        async with _client(_dispatcher(run_result=summary)) as client:
            resp = await client.post("/send-task-reminders")

        assert resp.status_code == 200
        assert resp.json() == summary
        assert resp.headers["access-control-allow-origin"] == "*"

    @pytest.mark.asyncio
    async def test_empty_run(self):
        async with _client(_dispatcher(run_result={"message": "No reminders to send", "count": 0})) as client:
            resp = await client.get("/send-task-reminders")

        assert resp.status_code == 200
        assert resp.json()["count"] == 0

    @pytest.mark.asyncio
    async def test_selection_failure_returns_500(self):
        async with _client(_dispatcher(run_error=StoreError("db down"))) as client:
            resp = await client.post("/send-task-reminders")

        assert resp.status_code == 500
        assert resp.json() == {"error": "db down"}
        assert resp.headers["access-control-allow-origin"] == "*"

    @pytest.mark.asyncio
    async def test_preflight_echoes_cors_headers(self):
        dispatcher = _dispatcher()
        async with _client(dispatcher) as client:
            resp = await client.options("/send-task-reminders")

        assert resp.status_code == 200
        for name, value in CORS_HEADERS.items():
            assert resp.headers[name.lower()] == value
        dispatcher.run.assert_not_called()


@pytest.mark.asyncio
async def test_health():
    async with _client(_dispatcher()) as client:
        resp = await client.get("/health")
    assert resp.json() == {"status": "ok"}
