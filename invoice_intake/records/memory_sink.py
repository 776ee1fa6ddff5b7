import asyncio
import uuid
from decimal import Decimal
from typing import Any

from invoice_intake.logging.logger import Log
from invoice_intake.normalization.models import InvoiceDraft
from invoice_intake.records.base import BaseRecordSink
from invoice_intake.records.exceptions import DuplicateInvoiceError, InvoiceNotFoundError
from invoice_intake.records.models import InvoiceRecord, InvoiceStatus

DEMO_RECORDS: tuple[InvoiceRecord, ...] = (
    InvoiceRecord(
        id="1",
        invoice_number="INV123456",
        type="增值税专用发票",
        date="2025-03-15",
        amount=Decimal("12500.00"),
        vendor="优质供应商A",
        status=InvoiceStatus.APPROVED,
    ),
    InvoiceRecord(
        id="2",
        invoice_number="INV123457",
        type="增值税普通发票",
        date="2025-03-10",
        amount=Decimal("8750.50"),
        vendor="普通供应商B",
        status=InvoiceStatus.PENDING,
    ),
    InvoiceRecord(
        id="3",
        invoice_number="INV123458",
        type="电子发票",
        date="2025-03-05",
        amount=Decimal("3250.00"),
        vendor="优质供应商A",
        status=InvoiceStatus.APPROVED,
    ),
)


class InMemoryRecordSink(BaseRecordSink):
    """Process-local record store; a lock makes check-then-insert atomic."""

    def __init__(self, records: list[InvoiceRecord] | None = None) -> None:
        self._records: dict[str, InvoiceRecord] = {}
        self._ids_by_number: dict[str, str] = {}
        self._lock = asyncio.Lock()
        for record in records or []:
            self._records[record.id] = record
            self._ids_by_number[record.invoice_number] = record.id

    async def list_all(self) -> list[InvoiceRecord]:
        return list(self._records.values())

    async def get(self, record_id: str) -> InvoiceRecord:
        record = self._records.get(record_id)
        if record is None:
            raise InvoiceNotFoundError(f"Invoice {record_id} not found")
        return record

    async def save(
        self,
        draft: InvoiceDraft,
        status: InvoiceStatus = InvoiceStatus.PENDING,
        *,
        record_id: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> InvoiceRecord:
        async with self._lock:
            if draft.invoice_number in self._ids_by_number:
                raise DuplicateInvoiceError(
                    f"invoice number {draft.invoice_number} already exists"
                )
            if not record_id or record_id in self._records:
                record_id = uuid.uuid4().hex
            record = InvoiceRecord.from_draft(
                draft, record_id=record_id, status=status, extra=extra
            )
            self._records[record.id] = record
            self._ids_by_number[record.invoice_number] = record.id
        Log.info(f"Saved invoice {record.invoice_number} as {record.id}")
        return record

    async def update_status(self, record_id: str, status: InvoiceStatus) -> InvoiceRecord:
        async with self._lock:
            record = await self.get(record_id)
            updated = record.with_status(status)
            self._records[record_id] = updated
        Log.info(f"Invoice {record_id} status set to {status.value}")
        return updated
