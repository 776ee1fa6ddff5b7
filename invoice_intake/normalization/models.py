from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

REQUIRED_FIELDS: tuple[str, ...] = ("invoiceNumber", "type", "date", "amount", "vendor")

RawExtractionResult = dict[str, Any]


@dataclass(frozen=True)
class InvoiceDraft:
    """Strictly-typed invoice content, before the record store assigns identity."""

    invoice_number: str
    type: str
    date: str
    amount: Decimal
    vendor: str

    def to_payload(self) -> dict[str, object]:
        return {
            "invoiceNumber": self.invoice_number,
            "type": self.type,
            "date": self.date,
            "amount": self.amount,
            "vendor": self.vendor,
        }


@dataclass(frozen=True)
class Normalized:
    """Conversion succeeded."""

    draft: InvoiceDraft


@dataclass(frozen=True)
class MissingFields:
    """Conversion failed; ``fields`` keeps the fixed required-field order."""

    fields: list[str] = field(default_factory=list)


ConversionResult = Normalized | MissingFields
