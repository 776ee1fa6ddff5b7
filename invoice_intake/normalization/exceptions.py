class NormalizationError(Exception):
    """Raised when an extraction result cannot be turned into an invoice."""


class ExtractionParseError(NormalizationError):
    """Raised when the extraction capability's output is not usable JSON."""


class InvoiceValidationError(NormalizationError):
    """Raised when required invoice fields are missing after extraction."""

    def __init__(self, message: str, missing_fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing_fields = list(missing_fields or [])
