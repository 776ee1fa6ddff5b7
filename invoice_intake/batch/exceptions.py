class BatchError(Exception):
    """Base exception for batch orchestration errors."""


class BatchInProgressError(BatchError):
    """Raised when a batch is started while another is running and overlap is disabled."""


class BatchNotFoundError(BatchError):
    """Raised when a batch id is not in the registry."""


class InvalidTransitionError(BatchError):
    """Raised when a file state change would leave a terminal state or regress."""
