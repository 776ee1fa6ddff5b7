from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Any

from invoice_intake.normalization.models import InvoiceDraft


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"


@dataclass(frozen=True)
class InvoiceRecord:
    """A persisted invoice as held by the record store."""

    id: str
    invoice_number: str
    type: str
    date: str
    amount: Decimal
    vendor: str
    status: InvoiceStatus = InvoiceStatus.PENDING
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_draft(
        cls,
        draft: InvoiceDraft,
        *,
        record_id: str,
        status: InvoiceStatus,
        extra: dict[str, Any] | None = None,
    ) -> "InvoiceRecord":
        return cls(
            id=record_id,
            invoice_number=draft.invoice_number,
            type=draft.type,
            date=draft.date,
            amount=draft.amount,
            vendor=draft.vendor,
            status=status,
            extra=dict(extra or {}),
        )

    def to_draft(self) -> InvoiceDraft:
        return InvoiceDraft(
            invoice_number=self.invoice_number,
            type=self.type,
            date=self.date,
            amount=self.amount,
            vendor=self.vendor,
        )

    def with_status(self, status: InvoiceStatus) -> "InvoiceRecord":
        return replace(self, status=status)
