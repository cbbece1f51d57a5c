"""Shared test fixtures and configuration.

Sets up fake environment variables so src.config doesn't sys.exit(),
and provides common fixtures like a temp task store.
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("EMAIL_PROVIDER", "console")
os.environ.setdefault("RESEND_API_KEY", "fake-resend-key-for-tests")
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("TIMEZONE", "UTC")

import pytest


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_planio.db")


@pytest.fixture
def task_db(tmp_db_path):
    """Return a TaskDB instance backed by a temp file."""
    from src.data.db import TaskDB
    return TaskDB(db_path=tmp_db_path)


@pytest.fixture
def profile_db(tmp_db_path):
    """ProfileDB sharing the task_db file, so the reminder join sees it."""
    from src.data.db import ProfileDB
    return ProfileDB(db_path=tmp_db_path)


@pytest.fixture
def project_db(tmp_db_path):
    from src.data.db import ProjectDB
    return ProjectDB(db_path=tmp_db_path)


@pytest.fixture
def category_db(tmp_db_path):
    from src.data.db import CategoryDB
    return CategoryDB(db_path=tmp_db_path)
