import os
import uuid
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from psycopg_pool import AsyncConnectionPool

from invoice_intake.config.settings import Settings
from invoice_intake.database.connection import open_pool
from invoice_intake.records.postgres_sink import PostgresRecordSink


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "invoices_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest_asyncio.fixture
async def integration_pool(test_settings: Settings) -> AsyncIterator[AsyncConnectionPool]:
    try:
        pool = await open_pool(test_settings, timeout=3)
    except Exception as e:
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a disposable database"
        )
    try:
        yield pool
    finally:
        await pool.close()


@pytest.fixture
def number_prefix() -> str:
    """Unique invoice number prefix so rows from other runs never collide."""
    return f"IT-{uuid.uuid4().hex[:8]}-"


@pytest_asyncio.fixture
async def postgres_sink(
    integration_pool: AsyncConnectionPool,
    number_prefix: str,
) -> AsyncIterator[PostgresRecordSink]:
    sink = PostgresRecordSink(integration_pool)
    await sink.ensure_schema()
    try:
        yield sink
    finally:
        async with integration_pool.connection() as conn:
            await conn.execute(
                "DELETE FROM invoices WHERE invoice_number LIKE %s",
                (f"{number_prefix}%",),
            )
