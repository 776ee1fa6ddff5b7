from psycopg_pool import AsyncConnectionPool

from invoice_intake.config.settings import Settings
from invoice_intake.records.base import BaseRecordSink
from invoice_intake.records.memory_sink import DEMO_RECORDS, InMemoryRecordSink
from invoice_intake.records.postgres_sink import PostgresRecordSink


class RecordSinkFactory:
    """Creates the record store adapter selected by settings."""

    BACKENDS = ("memory", "postgres")

    @classmethod
    def create(
        cls,
        settings: Settings,
        pool: AsyncConnectionPool | None = None,
    ) -> BaseRecordSink:
        backend = settings.records_backend.lower()
        if backend == "memory":
            seed = list(DEMO_RECORDS) if settings.records_seed_demo else None
            return InMemoryRecordSink(records=seed)
        if backend == "postgres":
            if pool is None:
                raise ValueError("records_backend=postgres requires an open connection pool")
            return PostgresRecordSink(pool)
        raise ValueError(
            f"Unknown records backend '{backend}'. Choose from: {list(cls.BACKENDS)}"
        )
