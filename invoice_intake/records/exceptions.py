class RecordSinkError(Exception):
    """Base exception for record store failures."""


class DuplicateInvoiceError(RecordSinkError):
    """Raised when an invoice number already exists in the store."""


class InvoiceNotFoundError(RecordSinkError):
    """Raised when no invoice with the requested id exists."""
