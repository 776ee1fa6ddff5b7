import uuid
from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb
from psycopg_pool import AsyncConnectionPool

from invoice_intake.logging.logger import Log
from invoice_intake.normalization.models import InvoiceDraft
from invoice_intake.records.base import BaseRecordSink
from invoice_intake.records.exceptions import (
    DuplicateInvoiceError,
    InvoiceNotFoundError,
    RecordSinkError,
)
from invoice_intake.records.models import InvoiceRecord, InvoiceStatus

_COLUMNS = "id, invoice_number, type, date, amount, vendor, status, extra"


class PostgresRecordSink(BaseRecordSink):
    """Database operations for the invoices table."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool

    async def ensure_schema(self) -> None:
        async with self._pool.connection() as conn:
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS invoices (
                    seq BIGSERIAL,
                    id TEXT PRIMARY KEY,
                    invoice_number TEXT NOT NULL UNIQUE,
                    type TEXT NOT NULL,
                    date TEXT NOT NULL,
                    amount NUMERIC NOT NULL CHECK (amount >= 0),
                    vendor TEXT NOT NULL,
                    status TEXT NOT NULL,
                    extra JSONB NOT NULL DEFAULT '{}'::jsonb,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
                """
            )

    async def list_all(self) -> list[InvoiceRecord]:
        rows = await self._fetch(f"SELECT {_COLUMNS} FROM invoices ORDER BY seq", ())
        return [self._to_record(row) for row in rows]

    async def get(self, record_id: str) -> InvoiceRecord:
        rows = await self._fetch(
            f"SELECT {_COLUMNS} FROM invoices WHERE id = %s", (record_id,)
        )
        if not rows:
            raise InvoiceNotFoundError(f"Invoice {record_id} not found")
        return self._to_record(rows[0])

    async def save(
        self,
        draft: InvoiceDraft,
        status: InvoiceStatus = InvoiceStatus.PENDING,
        *,
        record_id: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> InvoiceRecord:
        """Insert with ON CONFLICT so the uniqueness check is a single statement."""
        rows = await self._fetch(
            f"""
            INSERT INTO invoices (id, invoice_number, type, date, amount, vendor, status, extra)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (invoice_number) DO NOTHING
            RETURNING {_COLUMNS}
            """,
            (
                record_id or uuid.uuid4().hex,
                draft.invoice_number,
                draft.type,
                draft.date,
                draft.amount,
                draft.vendor,
                status.value,
                Jsonb(extra or {}),
            ),
        )
        if not rows:
            raise DuplicateInvoiceError(
                f"invoice number {draft.invoice_number} already exists"
            )
        record = self._to_record(rows[0])
        Log.info(f"Saved invoice {record.invoice_number} as {record.id}")
        return record

    async def update_status(self, record_id: str, status: InvoiceStatus) -> InvoiceRecord:
        rows = await self._fetch(
            f"UPDATE invoices SET status = %s WHERE id = %s RETURNING {_COLUMNS}",
            (status.value, record_id),
        )
        if not rows:
            raise InvoiceNotFoundError(f"Invoice {record_id} not found")
        return self._to_record(rows[0])

    async def _fetch(self, query: str, params: tuple[Any, ...]) -> list[dict[str, Any]]:
        try:
            async with self._pool.connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cur:
                    await cur.execute(query, params)
                    return await cur.fetchall()
        except psycopg.errors.UniqueViolation as exc:
            raise RecordSinkError(f"Record id conflict: {exc}") from exc
        except psycopg.Error as exc:
            raise RecordSinkError(f"Record store error: {exc}") from exc

    @staticmethod
    def _to_record(row: dict[str, Any]) -> InvoiceRecord:
        return InvoiceRecord(
            id=row["id"],
            invoice_number=row["invoice_number"],
            type=row["type"],
            date=row["date"],
            amount=row["amount"],
            vendor=row["vendor"],
            status=InvoiceStatus(row["status"]),
            extra=dict(row["extra"] or {}),
        )
