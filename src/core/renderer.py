"""
PLANIO Reminders — Notification Renderer.

Turns one due reminder into a recipient-addressed email. Rendering never
raises: missing optional fields drop their section, an unknown priority is
shown as-is, and an unreadable due date falls back to a placeholder.
"""

from __future__ import annotations

import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from jinja2 import Environment

from src.core.reminder_time import parse_timestamp
from src.data.models import DueReminder
from src.ports.notification_port import EmailMessage

logger = logging.getLogger(__name__)

PRIORITY_LABELS = {
    "low": "Baja",
    "medium": "Media",
    "high": "Alta",
}

_MONTHS_ES = (
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)

DEFAULT_RECIPIENT_NAME = "Usuario"
NO_DUE_DATE = "Sin fecha límite"

_jinja = Environment(autoescape=True)

_TEMPLATE = _jinja.from_string("""\
<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <style>
      body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif; }
      .container { max-width: 600px; margin: 0 auto; padding: 20px; }
      .header { background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; padding: 30px; border-radius: 10px 10px 0 0; }
      .content { background: #ffffff; padding: 30px; border: 1px solid #e5e7eb; border-top: none; }
      .task-title { font-size: 24px; font-weight: bold; margin-bottom: 10px; }
      .task-info { background: #f9fafb; padding: 20px; border-radius: 8px; margin: 20px 0; }
      .info-row { margin: 10px 0; }
      .label { font-weight: 600; color: #4b5563; }
      .priority-high { color: #dc2626; font-weight: bold; }
      .priority-medium { color: #ea580c; font-weight: bold; }
      .priority-low { color: #65a30d; font-weight: bold; }
      .footer { text-align: center; color: #6b7280; margin-top: 30px; font-size: 14px; }
    </style>
  </head>
  <body>
    <div class="container">
      <div class="header">
        <h1>🔔 Recordatorio de Tarea</h1>
        <p>Hola {{ recipient_name }},</p>
      </div>
      <div class="content">
        <div class="task-title">{{ title }}</div>
        {% if description %}<p class="task-description">{{ description }}</p>{% endif %}
        <div class="task-info">
          <div class="info-row">
            <span class="label">📅 Fecha límite:</span>
            <span>{{ due_date }}</span>
          </div>
          <div class="info-row">
            <span class="label">⚡ Prioridad:</span>
            <span class="priority-{{ priority }}">{{ priority_label }}</span>
          </div>
        </div>
        <p>No olvides completar esta tarea a tiempo. ¡Tú puedes! 💪</p>
        <div class="footer">
          <p>Este es un recordatorio automático de PLANIO</p>
          <p>Organiza tu día, alcanza tus metas 🎯</p>
        </div>
      </div>
    </div>
  </body>
</html>
""")


def priority_label(priority: str | None) -> str:
    """Spanish label for a priority; unknown values pass through unchanged."""
    if priority is None:
        return ""
    return PRIORITY_LABELS.get(priority, str(priority))


def _resolve_timezone(tz_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, falling back to UTC", tz_name)
        return ZoneInfo("UTC")


def format_due_date(due_date: str | None, tz_name: str = "UTC") -> str:
    """Format a timestamp as a long Spanish date, e.g. '1 de marzo de 2025, 00:00'."""
    if not due_date:
        return NO_DUE_DATE
    try:
        local = parse_timestamp(due_date).astimezone(_resolve_timezone(tz_name))
    except (ValueError, TypeError, AttributeError, OverflowError) as exc:
        logger.warning("Unreadable due date %r: %s", due_date, exc)
        return NO_DUE_DATE
    month = _MONTHS_ES[local.month - 1]
    return f"{local.day} de {month} de {local.year}, {local.hour:02d}:{local.minute:02d}"


def render_subject(title: str) -> str:
    return f"🔔 Recordatorio: {title}"


def render_reminder(
    reminder: DueReminder,
    *,
    sender: str,
    timezone: str = "UTC",
) -> EmailMessage:
    """Build the reminder email for one due task."""
    recipient = reminder.profiles
    html = _TEMPLATE.render(
        recipient_name=recipient.full_name or DEFAULT_RECIPIENT_NAME,
        title=reminder.title or "",
        description=reminder.description,
        due_date=format_due_date(reminder.due_date, timezone),
        priority=reminder.priority or "",
        priority_label=priority_label(reminder.priority),
    )
    return EmailMessage(
        sender=sender,
        to=[recipient.email],
        subject=render_subject(reminder.title or ""),
        html=html,
    )
