"""
PLANIO Reminders — Task Store.

SQLite-backed storage for profiles, projects, categories and tasks.
The web app is the writer for all of these; the reminder dispatcher only
reads due reminders and flips `reminder_sent` (see TaskDB).
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path

from src.core.reminder_time import compute_reminder_time, to_iso
from src.data.models import (
    Category,
    DueReminder,
    Profile,
    Project,
    RecipientInfo,
    ReminderOffset,
    Task,
)
from src.ports.task_store_port import StoreError

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS profiles (
    id         TEXT PRIMARY KEY,
    email      TEXT NOT NULL,
    full_name  TEXT,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS projects (
    id         TEXT PRIMARY KEY,
    user_id    TEXT NOT NULL,
    name       TEXT NOT NULL,
    color      TEXT NOT NULL,
    icon       TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS categories (
    id         TEXT PRIMARY KEY,
    user_id    TEXT NOT NULL,
    name       TEXT NOT NULL,
    color      TEXT NOT NULL,
    icon       TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS tasks (
    id               TEXT PRIMARY KEY,
    user_id          TEXT NOT NULL,
    project_id       TEXT REFERENCES projects(id) ON DELETE CASCADE,
    category_id      TEXT REFERENCES categories(id) ON DELETE SET NULL,
    title            TEXT NOT NULL,
    description      TEXT,
    priority         TEXT NOT NULL DEFAULT 'medium',
    status           TEXT NOT NULL DEFAULT 'pending',
    due_date         TEXT,
    reminder_enabled INTEGER NOT NULL DEFAULT 0,
    reminder_time    TEXT,
    reminder_sent    INTEGER NOT NULL DEFAULT 0,
    created_at       TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_tasks_reminder
    ON tasks (reminder_enabled, reminder_sent, reminder_time);
"""

# Fields the web app may change through TaskDB.update_task
_UPDATABLE_TASK_FIELDS = {
    "title", "description", "priority", "status", "due_date",
    "project_id", "category_id", "reminder_enabled",
}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class _SQLiteStore:
    """Shared connection handling; every store creates the full schema."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from src.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        try:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            self._init_db()
        except (sqlite3.Error, OSError) as exc:
            raise StoreError(f"Cannot open task store at {db_path}: {exc}") from exc

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.executescript(_SCHEMA)
        logger.debug("Task store schema initialized at %s", self._db_path)


class ProfileDB(_SQLiteStore):
    """Recipient contact details, one row per user."""

    @staticmethod
    def _row_to_profile(row: sqlite3.Row) -> Profile:
        return Profile(
            id=row["id"],
            email=row["email"],
            full_name=row["full_name"],
            created_at=row["created_at"],
        )

    def upsert_profile(
        self, user_id: str, email: str, full_name: str | None = None,
    ) -> Profile:
        """Create or replace a user's profile."""
        now = _now_iso()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO profiles (id, email, full_name, created_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    email = excluded.email,
                    full_name = excluded.full_name
                """,
                (user_id, email.strip(), full_name, now),
            )
        logger.info("Profile saved for user %s <%s>", user_id, email)
        return self.get_profile(user_id)

    def get_profile(self, user_id: str) -> Profile | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM profiles WHERE id = ?", (user_id,)
            ).fetchone()
        if row is None:
            return None
        return self._row_to_profile(row)

    def delete_profile(self, user_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM profiles WHERE id = ?", (user_id,))
        return cursor.rowcount > 0


class ProjectDB(_SQLiteStore):
    """Projects group tasks; deleting one deletes its tasks."""

    @staticmethod
    def _row_to_project(row: sqlite3.Row) -> Project:
        return Project(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            color=row["color"],
            icon=row["icon"],
            created_at=row["created_at"],
        )

    def add_project(
        self,
        user_id: str,
        name: str,
        color: str = "hsl(210, 100%, 50%)",
        icon: str = "Briefcase",
    ) -> Project:
        project = Project(
            id=str(uuid.uuid4()),
            user_id=user_id,
            name=name.strip(),
            color=color,
            icon=icon,
            created_at=_now_iso(),
        )
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO projects (id, user_id, name, color, icon, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (project.id, user_id, project.name, color, icon, project.created_at),
            )
        logger.info("Project added: %s '%s'", project.id, project.name)
        return project

    def rename_project(
        self, project_id: str, name: str, color: str | None = None, icon: str | None = None,
    ) -> bool:
        """Update a project's name and, optionally, its color and icon."""
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE projects SET name = ?, color = COALESCE(?, color), "
                "icon = COALESCE(?, icon) WHERE id = ?",
                (name.strip(), color, icon, project_id),
            )
        return cursor.rowcount > 0

    def list_projects(self, user_id: str) -> list[Project]:
        """Oldest first, as the dashboard shows them."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM projects WHERE user_id = ? ORDER BY created_at, rowid",
                (user_id,),
            ).fetchall()
        return [self._row_to_project(r) for r in rows]

    def delete_project(self, project_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Project %s deleted", project_id)
        return deleted


class CategoryDB(_SQLiteStore):
    """Categories label tasks; deleting one leaves its tasks uncategorized."""

    @staticmethod
    def _row_to_category(row: sqlite3.Row) -> Category:
        return Category(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            color=row["color"],
            icon=row["icon"],
            created_at=row["created_at"],
        )

    def add_category(
        self,
        user_id: str,
        name: str,
        color: str = "hsl(210, 100%, 50%)",
        icon: str = "User",
    ) -> Category:
        category = Category(
            id=str(uuid.uuid4()),
            user_id=user_id,
            name=name.strip(),
            color=color,
            icon=icon,
            created_at=_now_iso(),
        )
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO categories (id, user_id, name, color, icon, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (category.id, user_id, category.name, color, icon, category.created_at),
            )
        logger.info("Category added: %s '%s'", category.id, category.name)
        return category

    def list_categories(self, user_id: str) -> list[Category]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM categories WHERE user_id = ? ORDER BY created_at, rowid",
                (user_id,),
            ).fetchall()
        return [self._row_to_category(r) for r in rows]

    def delete_category(self, category_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
        return cursor.rowcount > 0


class TaskDB(_SQLiteStore):
    """Task rows, plus the two operations the reminder dispatcher relies on.

    Implements TaskStorePort: `fetch_due_reminders` and `mark_reminder_sent`.
    """

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=row["id"],
            user_id=row["user_id"],
            project_id=row["project_id"],
            category_id=row["category_id"],
            title=row["title"],
            description=row["description"],
            priority=row["priority"],
            status=row["status"],
            due_date=row["due_date"],
            reminder_enabled=bool(row["reminder_enabled"]),
            reminder_time=row["reminder_time"],
            reminder_sent=bool(row["reminder_sent"]),
            created_at=row["created_at"],
        )

    # -- web app writes -----------------------------------------------------

    def add_task(
        self,
        user_id: str,
        title: str,
        project_id: str | None = None,
        description: str | None = None,
        priority: str = "medium",
        status: str = "pending",
        due_date: str | datetime | None = None,
        category_id: str | None = None,
        reminder_enabled: bool = False,
        reminder_offset: ReminderOffset | str = ReminderOffset.ONE_DAY,
    ) -> Task:
        """Insert a task, deriving `reminder_time` from the due date and offset."""
        if not title or not title.strip():
            raise ValueError("Task title must not be empty")

        due_iso = to_iso(due_date) if due_date is not None else None
        reminder_at = compute_reminder_time(due_iso, reminder_enabled, reminder_offset)

        task = Task(
            id=str(uuid.uuid4()),
            user_id=user_id,
            project_id=project_id,
            category_id=category_id,
            title=title.strip(),
            description=description or None,
            priority=priority,
            status=status,
            due_date=due_iso,
            reminder_enabled=reminder_enabled,
            reminder_time=to_iso(reminder_at) if reminder_at else None,
            reminder_sent=False,
            created_at=_now_iso(),
        )
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO tasks
                    (id, user_id, project_id, category_id, title, description,
                     priority, status, due_date, reminder_enabled, reminder_time,
                     reminder_sent, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?)
                """,
                (
                    task.id, user_id, project_id, category_id, task.title,
                    task.description, priority, status, task.due_date,
                    int(reminder_enabled), task.reminder_time, task.created_at,
                ),
            )
        logger.info("Task added: %s '%s'", task.id, task.title)
        return task

    def update_task(
        self,
        task_id: str,
        reminder_offset: ReminderOffset | str = ReminderOffset.ONE_DAY,
        **fields,
    ) -> Task:
        """Apply a partial update to a task.

        When the due date or the reminder switch is part of the update, the
        reminder window is recomputed and `reminder_sent` is cleared so the
        new window fires again.

        Raises:
            ValueError: if the task does not exist or a field is not updatable.
        """
        unknown = set(fields) - _UPDATABLE_TASK_FIELDS
        if unknown:
            raise ValueError(f"Cannot update task fields: {sorted(unknown)}")

        current = self.get_task(task_id)
        if current is None:
            raise ValueError(f"Task {task_id} not found")

        if "title" in fields and not (fields["title"] or "").strip():
            raise ValueError("Task title must not be empty")

        if fields.get("due_date") is not None:
            fields["due_date"] = to_iso(fields["due_date"])

        if "due_date" in fields or "reminder_enabled" in fields:
            due = fields.get("due_date", current.due_date)
            enabled = fields.get("reminder_enabled", current.reminder_enabled)
            reminder_at = compute_reminder_time(due, enabled, reminder_offset)
            fields["reminder_time"] = to_iso(reminder_at) if reminder_at else None
            if fields["reminder_time"] != current.reminder_time or not enabled:
                fields["reminder_sent"] = False

        if not fields:
            return current

        for flag in ("reminder_enabled", "reminder_sent"):
            if flag in fields:
                fields[flag] = int(bool(fields[flag]))

        assignments = ", ".join(f"{col} = ?" for col in fields)
        with self._connect() as conn:
            conn.execute(
                f"UPDATE tasks SET {assignments} WHERE id = ?",
                [*fields.values(), task_id],
            )
        logger.info("Task %s updated: %s", task_id, ", ".join(sorted(fields)))
        return self.get_task(task_id)

    def get_task(self, task_id: str) -> Task | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM tasks WHERE id = ?", (task_id,)
            ).fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    def list_tasks(
        self,
        user_id: str,
        project_id: str | None = None,
        status: str | None = None,
    ) -> list[Task]:
        """List a user's tasks, newest first, optionally per project/status."""
        query = "SELECT * FROM tasks WHERE user_id = ?"
        params: list = [user_id]
        if project_id is not None:
            query += " AND project_id = ?"
            params.append(project_id)
        if status is not None:
            query += " AND status = ?"
            params.append(status)
        query += " ORDER BY created_at DESC, rowid DESC"

        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_task(r) for r in rows]

    def delete_task(self, task_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Task %s deleted", task_id)
        return deleted

    # -- reminder dispatcher ------------------------------------------------

    def fetch_due_reminders(self, now: datetime) -> list[DueReminder]:
        """Enabled, unsent reminders with reminder_time <= now.

        Inner join on profiles: tasks whose owner has no profile are skipped.

        Raises:
            StoreError: on any database failure.
        """
        query = """
            SELECT t.id, t.title, t.description, t.due_date, t.priority,
                   t.user_id, p.email, p.full_name
            FROM tasks t
            INNER JOIN profiles p ON p.id = t.user_id
            WHERE t.reminder_enabled = 1
              AND t.reminder_sent = 0
              AND t.reminder_time IS NOT NULL
              AND t.reminder_time <= ?
        """
        try:
            with self._connect() as conn:
                rows = conn.execute(query, (to_iso(now),)).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to fetch due reminders: {exc}") from exc

        return [
            DueReminder(
                id=r["id"],
                title=r["title"],
                description=r["description"],
                due_date=r["due_date"],
                priority=r["priority"],
                user_id=r["user_id"],
                profiles=RecipientInfo(email=r["email"], full_name=r["full_name"]),
            )
            for r in rows
        ]

    def mark_reminder_sent(self, task_id: str) -> None:
        """Set reminder_sent = 1 for one task.

        Raises:
            StoreError: on a database failure or if the task no longer exists.
        """
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "UPDATE tasks SET reminder_sent = 1 WHERE id = ?", (task_id,),
                )
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to mark task {task_id} as sent: {exc}") from exc
        if cursor.rowcount == 0:
            raise StoreError(f"Task {task_id} not found")
