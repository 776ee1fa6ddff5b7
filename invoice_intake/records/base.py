from abc import ABC, abstractmethod
from typing import Any

from invoice_intake.normalization.models import InvoiceDraft
from invoice_intake.records.models import InvoiceRecord, InvoiceStatus


class BaseRecordSink(ABC):
    """Contract for invoice record stores."""

    @abstractmethod
    async def list_all(self) -> list[InvoiceRecord]:
        """Return every stored invoice in insertion order."""

    @abstractmethod
    async def get(self, record_id: str) -> InvoiceRecord:
        """Return one invoice.

        Raises:
            InvoiceNotFoundError: if the id is unknown.
        """

    @abstractmethod
    async def save(
        self,
        draft: InvoiceDraft,
        status: InvoiceStatus = InvoiceStatus.PENDING,
        *,
        record_id: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> InvoiceRecord:
        """Persist a normalized invoice and return it with its confirmed id.

        The uniqueness check on the invoice number and the insert are atomic.

        Raises:
            DuplicateInvoiceError: if the invoice number is already stored.
            RecordSinkError: on any other storage failure.
        """

    @abstractmethod
    async def update_status(self, record_id: str, status: InvoiceStatus) -> InvoiceRecord:
        """Change an invoice's status and return the updated record.

        Raises:
            InvoiceNotFoundError: if the id is unknown.
        """
