class ExtractionError(Exception):
    """Raised when the extraction capability fails to produce a response."""


class ExtractionNetworkError(ExtractionError):
    """Raised when the AI provider call fails due to network/infrastructure issues."""
