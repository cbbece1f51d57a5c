"""
PLANIO Reminders — HTTP invocation endpoint.

A scheduler (cron, cloud scheduler, etc.) calls POST /send-task-reminders;
each call is one dispatcher run. The response is the run summary, or a 500
with an error payload when the task store could not be queried.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Response
from fastapi.responses import JSONResponse

from src.core.dispatcher import ReminderDispatcher

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def create_app(dispatcher: ReminderDispatcher) -> FastAPI:
    app = FastAPI(title="PLANIO Reminders")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.options("/send-task-reminders")
    async def preflight() -> Response:
        return Response(status_code=200, headers=CORS_HEADERS)

    @app.api_route("/send-task-reminders", methods=["GET", "POST"])
    async def send_task_reminders() -> JSONResponse:
        logger.info("Starting send-task-reminders run...")
        try:
            summary = await dispatcher.run()
        except Exception as exc:
            logger.exception("Error in send-task-reminders run")
            return JSONResponse({"error": str(exc)}, status_code=500, headers=CORS_HEADERS)
        return JSONResponse(summary, status_code=200, headers=CORS_HEADERS)

    return app


def build_default_app() -> FastAPI:
    """Wire the app from settings: SQLite task store + configured email provider."""
    from src.adapters.notifier_factory import create_notifier
    from src.config import settings
    from src.data.db import TaskDB

    dispatcher = ReminderDispatcher(
        TaskDB(),
        create_notifier(),
        sender=settings.REMINDER_SENDER,
        timezone=settings.TIMEZONE,
        max_concurrency=settings.MAX_CONCURRENT_SENDS,
    )
    return create_app(dispatcher)
