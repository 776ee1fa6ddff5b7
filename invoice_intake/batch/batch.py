import uuid
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import datetime, timezone

from invoice_intake.admission.models import AdmittedFile
from invoice_intake.batch.exceptions import InvalidTransitionError
from invoice_intake.batch.models import (
    ALLOWED_TRANSITIONS,
    BatchOutcome,
    FileProcessingState,
    FileStatus,
)
from invoice_intake.logging.logger import Log
from invoice_intake.normalization.models import InvoiceDraft

StateListener = Callable[[str, FileProcessingState], None]


class Batch:
    """One submission of admitted files and the per-file state machine.

    Each file's entry is written only by that file's pipeline. Readers get
    shallow copies of immutable states, so a read may be stale but is never torn.
    """

    def __init__(
        self,
        files: Sequence[AdmittedFile],
        batch_id: str | None = None,
        listener: StateListener | None = None,
    ) -> None:
        self.batch_id = batch_id or uuid.uuid4().hex
        self.created_at = datetime.now(timezone.utc)
        self.files: tuple[AdmittedFile, ...] = tuple(files)
        self._listener = listener
        self._states: dict[str, FileProcessingState] = {
            f.name: FileProcessingState(name=f.name) for f in self.files
        }

    def snapshot(self) -> dict[str, FileProcessingState]:
        return dict(self._states)

    def state(self, name: str) -> FileProcessingState:
        return self._states[name]

    @property
    def is_complete(self) -> bool:
        return all(s.status.is_terminal for s in self._states.values())

    def mark_processing(self, name: str) -> None:
        self._transition(name, FileStatus.PROCESSING, progress=0)

    def advance(self, name: str, progress: int) -> None:
        self._transition(name, FileStatus.PROCESSING, progress=progress)

    def succeed(self, name: str, draft: InvoiceDraft) -> None:
        self._transition(name, FileStatus.SUCCESS, progress=100, result=draft)

    def fail(self, name: str, message: str) -> None:
        self._transition(name, FileStatus.ERROR, progress=0, error=message)

    def outcome(self) -> BatchOutcome:
        states = list(self._states.values())
        return BatchOutcome(
            batch_id=self.batch_id,
            total=len(states),
            succeeded=sum(1 for s in states if s.status is FileStatus.SUCCESS),
            failed=sum(1 for s in states if s.status is FileStatus.ERROR),
            results=[s.result for s in states if s.result is not None],
        )

    def _transition(
        self,
        name: str,
        status: FileStatus,
        *,
        progress: int,
        error: str | None = None,
        result: InvoiceDraft | None = None,
    ) -> None:
        current = self._states[name]
        if status not in ALLOWED_TRANSITIONS[current.status]:
            raise InvalidTransitionError(
                f"{name}: cannot move from {current.status.value} to {status.value}"
            )
        if status is FileStatus.PROCESSING and progress < current.progress:
            raise InvalidTransitionError(
                f"{name}: progress cannot go back from {current.progress} to {progress}"
            )
        new_state = replace(
            current,
            status=status,
            progress=max(0, min(100, progress)),
            error=error,
            result=result,
        )
        self._states[name] = new_state
        if self._listener is None:
            return
        try:
            self._listener(self.batch_id, new_state)
        except Exception:
            Log.exception(f"Batch {self.batch_id}: state listener failed for {name}")
