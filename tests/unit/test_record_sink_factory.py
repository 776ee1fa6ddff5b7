from unittest.mock import MagicMock

import pytest

from invoice_intake.config.settings import Settings
from invoice_intake.records.factory import RecordSinkFactory
from invoice_intake.records.memory_sink import InMemoryRecordSink
from invoice_intake.records.postgres_sink import PostgresRecordSink


class TestRecordSinkFactory:
    def test_creates_memory_sink_by_default(self) -> None:
        assert isinstance(RecordSinkFactory.create(Settings()), InMemoryRecordSink)

    @pytest.mark.asyncio
    async def test_seeds_demo_records_when_enabled(self) -> None:
        sink = RecordSinkFactory.create(Settings(records_seed_demo=True))
        assert len(await sink.list_all()) == 3

    def test_creates_postgres_sink_with_pool(self) -> None:
        sink = RecordSinkFactory.create(Settings(records_backend="postgres"), pool=MagicMock())
        assert isinstance(sink, PostgresRecordSink)

    def test_postgres_without_pool_raises(self) -> None:
        with pytest.raises(ValueError, match="connection pool"):
            RecordSinkFactory.create(Settings(records_backend="postgres"))

    def test_unknown_backend_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown records backend"):
            RecordSinkFactory.create(Settings(records_backend="redis"))
