from dataclasses import dataclass, field
from enum import Enum

from invoice_intake.normalization.models import InvoiceDraft


class FileStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (FileStatus.SUCCESS, FileStatus.ERROR)


ALLOWED_TRANSITIONS: dict[FileStatus, frozenset[FileStatus]] = {
    FileStatus.PENDING: frozenset({FileStatus.PROCESSING}),
    FileStatus.PROCESSING: frozenset(
        {FileStatus.PROCESSING, FileStatus.SUCCESS, FileStatus.ERROR}
    ),
    FileStatus.SUCCESS: frozenset(),
    FileStatus.ERROR: frozenset(),
}


@dataclass(frozen=True)
class FileProcessingState:
    """Snapshot of one file's progress; replaced wholesale on every transition."""

    name: str
    status: FileStatus = FileStatus.PENDING
    progress: int = 0
    error: str | None = None
    result: InvoiceDraft | None = None


@dataclass(frozen=True)
class BatchOutcome:
    """Read-only summary of a finished batch."""

    batch_id: str
    total: int
    succeeded: int
    failed: int
    results: list[InvoiceDraft] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return self.failed > 0

    @property
    def warning(self) -> str | None:
        if not self.has_failures:
            return None
        return f"{self.failed} of {self.total} files failed"

    @property
    def summary_message(self) -> str:
        return self.warning or f"{self.succeeded} of {self.total} files processed successfully"
