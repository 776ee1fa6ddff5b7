import asyncio
import contextlib
import uuid
from collections.abc import Sequence

from invoice_intake.admission.models import AdmittedFile
from invoice_intake.batch.batch import Batch, StateListener
from invoice_intake.batch.exceptions import BatchInProgressError
from invoice_intake.batch.models import BatchOutcome
from invoice_intake.batch.registry import BatchRegistry
from invoice_intake.config.settings import Settings
from invoice_intake.extraction.exceptions import ExtractionError
from invoice_intake.extraction.extractor import InvoiceExtractor
from invoice_intake.extraction.factory import ExtractionClientFactory
from invoice_intake.logging.logger import Log
from invoice_intake.normalization.exceptions import NormalizationError
from invoice_intake.normalization.models import InvoiceDraft
from invoice_intake.normalization.normalizer import FieldNormalizer
from invoice_intake.normalization.parser import parse_extraction_text
from invoice_intake.records.base import BaseRecordSink
from invoice_intake.records.exceptions import RecordSinkError
from invoice_intake.records.models import InvoiceStatus

EXTRACTED_PROGRESS = 50
NORMALIZED_PROGRESS = 75


class BatchOrchestrator:
    """Runs one extraction -> normalize -> save pipeline per admitted file.

    Pipelines run concurrently inside a task group; one file's failure ends in
    that file's ``error`` state and never touches its siblings.
    """

    def __init__(
        self,
        *,
        extractor: InvoiceExtractor,
        sink: BaseRecordSink,
        normalizer: FieldNormalizer | None = None,
        registry: BatchRegistry | None = None,
        max_concurrency: int = 0,
        allow_overlapping_batches: bool = True,
        listener: StateListener | None = None,
    ) -> None:
        self._extractor = extractor
        self._sink = sink
        self._normalizer = normalizer or FieldNormalizer()
        self.registry = registry or BatchRegistry()
        self._semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency > 0 else None
        self._allow_overlapping = allow_overlapping_batches
        self._listener = listener
        self._active: set[str] = set()
        self._tasks: set[asyncio.Task[BatchOutcome]] = set()

    @property
    def is_busy(self) -> bool:
        return bool(self._active)

    def start(self, admitted: Sequence[AdmittedFile]) -> Batch:
        """Register a new batch with every file pending.

        The batch counts as active from here until ``run`` finishes it.

        Raises:
            BatchInProgressError: if overlap is disabled and a batch is active.
        """
        if self._active and not self._allow_overlapping:
            raise BatchInProgressError("Another batch is still being processed")
        batch = Batch(admitted, listener=self._listener)
        self._active.add(batch.batch_id)
        self.registry.add(batch)
        Log.info(f"Batch {batch.batch_id} created with {len(batch.files)} file(s)")
        return batch

    async def run(self, batch: Batch) -> BatchOutcome:
        """Process every file of a started batch and wait for all to finish."""
        try:
            async with asyncio.TaskGroup() as group:
                for file in batch.files:
                    batch.mark_processing(file.name)
                    group.create_task(self._process_file(batch, file))
        finally:
            self._active.discard(batch.batch_id)

        outcome = batch.outcome()
        if outcome.has_failures:
            Log.warning(f"Batch {batch.batch_id}: {outcome.warning}")
        else:
            Log.info(f"Batch {batch.batch_id}: {outcome.summary_message}")
        return outcome

    async def run_batch(self, admitted: Sequence[AdmittedFile]) -> BatchOutcome:
        return await self.run(self.start(admitted))

    def submit(self, admitted: Sequence[AdmittedFile]) -> Batch:
        """Start a batch and run it in the background; returns before any file is processed.

        Must be called from a running event loop. Progress is read through
        ``registry.get(batch_id)``.
        """
        batch = self.start(admitted)
        task = asyncio.create_task(self.run(batch), name=f"batch-{batch.batch_id}")
        self._tasks.add(task)
        task.add_done_callback(self._on_batch_done)
        return batch

    async def drain(self) -> None:
        """Wait for every background batch to finish."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def _on_batch_done(self, task: asyncio.Task[BatchOutcome]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            Log.warning(f"{task.get_name()} was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            Log.error(f"{task.get_name()} failed: {exc!r}")

    async def _process_file(self, batch: Batch, file: AdmittedFile) -> None:
        slot = self._semaphore if self._semaphore is not None else contextlib.nullcontext()
        async with slot:
            try:
                draft = await self._pipeline(batch, file)
            except (ExtractionError, NormalizationError, RecordSinkError) as exc:
                Log.warning(f"Batch {batch.batch_id}: {file.name} failed: {exc}")
                batch.fail(file.name, str(exc))
                return
            except Exception as exc:
                Log.exception(f"Batch {batch.batch_id}: {file.name} crashed")
                batch.fail(file.name, f"processing failed: {exc}")
                return
        batch.succeed(file.name, draft)
        Log.info(f"Batch {batch.batch_id}: {file.name} -> {draft.invoice_number}")

    async def _pipeline(self, batch: Batch, file: AdmittedFile) -> InvoiceDraft:
        text = await self._extractor.extract(file)
        batch.advance(file.name, EXTRACTED_PROGRESS)

        raw = parse_extraction_text(text)
        draft = self._normalizer.normalize(raw)
        batch.advance(file.name, NORMALIZED_PROGRESS)

        await self._sink.save(draft, InvoiceStatus.PENDING, record_id=uuid.uuid4().hex)
        return draft


def build_orchestrator(
    settings: Settings,
    sink: BaseRecordSink,
    listener: StateListener | None = None,
) -> BatchOrchestrator:
    """Build a BatchOrchestrator with the configured extractor."""
    return BatchOrchestrator(
        extractor=ExtractionClientFactory.create(settings),
        sink=sink,
        registry=BatchRegistry(settings.batch_history_size),
        max_concurrency=settings.batch_max_concurrency,
        allow_overlapping_batches=settings.allow_overlapping_batches,
        listener=listener,
    )
