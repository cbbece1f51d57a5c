"""
PLANIO Reminders — Entry Point.

    python main.py run     one reminder run, JSON summary on stdout (for cron)
    python main.py serve   HTTP endpoint for an external scheduler
"""

import asyncio
import json
import logging
import sys

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger("planio")


def run_once() -> int:
    """Run the dispatcher once. Returns the process exit code."""
    from src.adapters.notifier_factory import create_notifier
    from src.config import settings
    from src.core.dispatcher import ReminderDispatcher
    from src.data.db import TaskDB

    try:
        dispatcher = ReminderDispatcher(
            TaskDB(),
            create_notifier(),
            sender=settings.REMINDER_SENDER,
            timezone=settings.TIMEZONE,
            max_concurrency=settings.MAX_CONCURRENT_SENDS,
        )
        summary = asyncio.run(dispatcher.run())
    except Exception as exc:
        logger.error("Reminder run failed: %s", exc)
        print(json.dumps({"error": str(exc)}))
        return 1
    print(json.dumps(summary, ensure_ascii=False))
    return 0


def serve() -> None:
    import uvicorn

    from src.api.app import build_default_app
    from src.config import settings

    uvicorn.run(build_default_app(), host=settings.API_HOST, port=settings.API_PORT)


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    command = args[0] if args else "run"

    if command == "run":
        return run_once()
    if command == "serve":
        serve()
        return 0

    print(f"Unknown command: {command!r} (expected 'run' or 'serve')", file=sys.stderr)
    return 2


if __name__ == "__main__":
    sys.exit(main())
