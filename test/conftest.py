"""
Test Configuration and Fixtures

Environment setup MUST happen before any application import: settings are read
once at import time.

Architecture:
- Unit tests (test/**/unit/): in-memory fakes from test/service/booking/fakes.py
- Integration tests (test/**/integration/): file-backed aiosqlite database and
  the FastAPI app with overridden dependencies
"""

import os


def _early_setup_test_environment() -> None:
    os.environ.setdefault('DATABASE_URL', 'sqlite+aiosqlite:///./booking_test.db')
    os.environ['DLQ_RECONCILER_ENABLED'] = 'false'
    os.environ['KAFKA_AUTO_CREATE_TOPICS'] = 'false'
    os.environ['LOG_TO_FILE'] = 'false'
    os.environ['DEBUG'] = 'false'


_early_setup_test_environment()

from collections.abc import AsyncGenerator  # noqa: E402
from pathlib import Path  # noqa: E402

import pytest  # noqa: E402

from src.platform.database.orm_db_setting import Database  # noqa: E402
import src.service.booking.driven_adapter.model  # noqa: E402,F401  (registers tables)


@pytest.fixture
async def database(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """Fresh file-backed sqlite database per test."""
    db = Database(url=f'sqlite+aiosqlite:///{tmp_path}/test.db')
    await db.create_db_and_tables()
    yield db
    await db.dispose()
