from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from invoice_intake.admission.models import AdmissionResult, Rejection
from invoice_intake.batch.batch import Batch
from invoice_intake.batch.models import BatchOutcome, FileProcessingState, FileStatus
from invoice_intake.normalization.models import InvoiceDraft
from invoice_intake.records.models import InvoiceRecord, InvoiceStatus


class CamelModel(BaseModel):
    """Response models serialize with camelCase keys and accept snake_case names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StatusUpdate(BaseModel):
    status: InvoiceStatus


class HealthOut(BaseModel):
    status: str


class DraftOut(CamelModel):
    invoice_number: str
    type: str
    date: str
    amount: Decimal = Field(ge=0, allow_inf_nan=False)
    vendor: str

    @field_serializer("amount")
    def serialize_amount(self, amount: Decimal) -> float:
        return float(amount)

    @classmethod
    def from_draft(cls, draft: InvoiceDraft) -> "DraftOut":
        return cls(
            invoice_number=draft.invoice_number,
            type=draft.type,
            date=draft.date,
            amount=draft.amount,
            vendor=draft.vendor,
        )


class InvoiceOut(DraftOut):
    """A stored invoice; client-supplied extra fields are echoed alongside."""

    model_config = ConfigDict(extra="allow")

    id: str
    status: InvoiceStatus

    @classmethod
    def from_record(cls, record: InvoiceRecord) -> "InvoiceOut":
        extra: dict[str, Any] = {
            k: v for k, v in record.extra.items()
            if k not in cls.model_fields and k not in _INVOICE_ALIASES
        }
        return cls(
            id=record.id,
            invoice_number=record.invoice_number,
            type=record.type,
            date=record.date,
            amount=record.amount,
            vendor=record.vendor,
            status=record.status,
            **extra,
        )


_INVOICE_ALIASES = frozenset(to_camel(name) for name in InvoiceOut.model_fields)


class RejectionOut(CamelModel):
    name: str
    reason: str

    @classmethod
    def from_rejection(cls, rejection: Rejection) -> "RejectionOut":
        return cls(name=rejection.name, reason=rejection.reason)


class FileStateOut(CamelModel):
    name: str
    status: FileStatus
    progress: int
    error: str | None = None
    result: DraftOut | None = None

    @classmethod
    def from_state(cls, state: FileProcessingState) -> "FileStateOut":
        return cls(
            name=state.name,
            status=state.status,
            progress=state.progress,
            error=state.error,
            result=DraftOut.from_draft(state.result) if state.result is not None else None,
        )


class BatchOutcomeOut(CamelModel):
    total: int
    succeeded: int
    failed: int
    warning: str | None = None
    summary: str

    @classmethod
    def from_outcome(cls, outcome: BatchOutcome) -> "BatchOutcomeOut":
        return cls(
            total=outcome.total,
            succeeded=outcome.succeeded,
            failed=outcome.failed,
            warning=outcome.warning,
            summary=outcome.summary_message,
        )


class UploadOut(CamelModel):
    """Accepted upload: the batch runs in the background from here."""

    batch_id: str
    rejections: list[RejectionOut]
    rejection_message: str | None = None
    files: list[FileStateOut]

    @classmethod
    def from_batch(cls, batch: Batch, admission: AdmissionResult) -> "UploadOut":
        return cls(
            batch_id=batch.batch_id,
            rejections=[RejectionOut.from_rejection(r) for r in admission.rejections],
            rejection_message=admission.rejection_message,
            files=[FileStateOut.from_state(s) for s in batch.snapshot().values()],
        )


class BatchProgressOut(CamelModel):
    batch_id: str
    complete: bool
    files: list[FileStateOut]
    outcome: BatchOutcomeOut | None = None

    @classmethod
    def from_batch(cls, batch: Batch) -> "BatchProgressOut":
        complete = batch.is_complete
        return cls(
            batch_id=batch.batch_id,
            complete=complete,
            files=[FileStateOut.from_state(s) for s in batch.snapshot().values()],
            outcome=BatchOutcomeOut.from_outcome(batch.outcome()) if complete else None,
        )
