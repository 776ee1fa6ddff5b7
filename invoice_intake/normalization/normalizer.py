"""Converts loosely-typed extraction results into invoice drafts."""

import math
import re
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from invoice_intake.normalization.exceptions import InvoiceValidationError
from invoice_intake.normalization.models import (
    REQUIRED_FIELDS,
    ConversionResult,
    InvoiceDraft,
    MissingFields,
    Normalized,
)

_LEADING_NUMBER = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_CURRENCY_PREFIX = "¥￥$€£"


def missing_message(fields: list[str]) -> str:
    return f"missing required fields: {', '.join(fields)}"


def find_missing_fields(raw: Mapping[str, Any]) -> list[str]:
    """Required fields that are absent, falsy, or blank once coerced, in fixed order."""
    return [name for name in REQUIRED_FIELDS if _is_missing(raw.get(name))]


def _is_missing(value: Any) -> bool:
    if isinstance(value, float) and math.isnan(value):
        return True
    return not value or not coerce_text(value).strip()


def coerce_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(coerce_text(item) for item in value)
    return str(value)


def coerce_amount(value: Any) -> Decimal:
    """Parse the leading number of an amount; anything unusable becomes 0.

    Negative, NaN and infinite values are treated as unusable.
    """
    if isinstance(value, bool):
        return Decimal(0)
    if isinstance(value, (int, float, Decimal)):
        text = str(value)
    else:
        text = coerce_text(value).strip().lstrip(_CURRENCY_PREFIX).replace(",", "")
    match = _LEADING_NUMBER.match(text.strip())
    if match is None:
        return Decimal(0)
    try:
        amount = Decimal(match.group(0))
    except InvalidOperation:
        return Decimal(0)
    if not amount.is_finite() or amount < 0:
        return Decimal(0)
    return amount


class FieldNormalizer:
    """Validates required fields and coerces them into an InvoiceDraft."""

    def convert(self, raw: Mapping[str, Any]) -> ConversionResult:
        """Tagged conversion: ``Normalized`` or ``MissingFields``, never raises."""
        missing = find_missing_fields(raw)
        if missing:
            return MissingFields(fields=missing)
        return Normalized(
            draft=InvoiceDraft(
                invoice_number=coerce_text(raw["invoiceNumber"]).strip(),
                type=coerce_text(raw["type"]).strip(),
                date=coerce_text(raw["date"]).strip(),
                amount=coerce_amount(raw["amount"]),
                vendor=coerce_text(raw["vendor"]).strip(),
            )
        )

    def normalize(self, raw: Mapping[str, Any]) -> InvoiceDraft:
        """Convert a raw extraction result or raise InvoiceValidationError."""
        result = self.convert(raw)
        if isinstance(result, MissingFields):
            raise InvoiceValidationError(missing_message(result.fields), result.fields)
        return result.draft
