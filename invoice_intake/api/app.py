"""FastAPI application exposing the record store API, uploads and batch progress."""

import math
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any

from fastapi import Body, FastAPI, File, Request, UploadFile

from invoice_intake.admission.admission import FileAdmission
from invoice_intake.admission.file_loader import DEFAULT_MIME_TYPE
from invoice_intake.admission.models import CandidateFile
from invoice_intake.api.errors import register_error_handlers
from invoice_intake.api.schemas import (
    BatchProgressOut,
    HealthOut,
    InvoiceOut,
    StatusUpdate,
    UploadOut,
)
from invoice_intake.batch.orchestrator import BatchOrchestrator, build_orchestrator
from invoice_intake.config.settings import Settings
from invoice_intake.database.connection import open_pool
from invoice_intake.logging.logger import Log
from invoice_intake.normalization.exceptions import InvoiceValidationError
from invoice_intake.normalization.models import REQUIRED_FIELDS, InvoiceDraft
from invoice_intake.normalization.normalizer import (
    coerce_text,
    find_missing_fields,
    missing_message,
)
from invoice_intake.records.base import BaseRecordSink
from invoice_intake.records.factory import RecordSinkFactory
from invoice_intake.records.postgres_sink import PostgresRecordSink

AMOUNT_NOT_NUMERIC = "amount must be a number"
AMOUNT_NEGATIVE = "amount must not be negative"
NO_FILES_SELECTED = "no files selected"

_SERVER_ASSIGNED = frozenset({"id", "status"})


def create_app(
    settings: Settings | None = None,
    *,
    sink: BaseRecordSink | None = None,
    orchestrator: BatchOrchestrator | None = None,
) -> FastAPI:
    """Build the API; collaborators not passed in are created from settings at startup."""
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        pool = None
        record_sink = sink
        if record_sink is None:
            if settings.records_backend.lower() == "postgres":
                pool = await open_pool(settings)
            record_sink = RecordSinkFactory.create(settings, pool=pool)
            if isinstance(record_sink, PostgresRecordSink):
                await record_sink.ensure_schema()
        app.state.sink = record_sink
        app.state.orchestrator = orchestrator or build_orchestrator(settings, record_sink)
        app.state.admission = FileAdmission(settings.max_file_size_bytes)
        Log.info(f"Invoice intake API ready ({settings.records_backend} record store)")
        try:
            yield
        finally:
            await app.state.orchestrator.drain()
            if pool is not None:
                await pool.close()
            Log.info("Invoice intake API shutting down")

    app = FastAPI(title="Invoice Intake API", version="0.1.0", lifespan=lifespan)
    register_error_handlers(app)

    @app.get("/health", response_model=HealthOut)
    async def health() -> HealthOut:
        return HealthOut(status="ok")

    @app.get("/api/invoices", response_model=list[InvoiceOut])
    async def list_invoices(request: Request) -> list[InvoiceOut]:
        records = await request.app.state.sink.list_all()
        return [InvoiceOut.from_record(r) for r in records]

    @app.post("/api/invoices", status_code=201, response_model=InvoiceOut)
    async def create_invoice(
        request: Request,
        body: dict[str, Any] = Body(...),
    ) -> InvoiceOut:
        draft = _draft_from_body(body)
        extra = {
            k: v for k, v in body.items()
            if k not in REQUIRED_FIELDS and k not in _SERVER_ASSIGNED
        }
        record = await request.app.state.sink.save(draft, extra=extra)
        return InvoiceOut.from_record(record)

    @app.patch("/api/invoices/{invoice_id}", response_model=InvoiceOut)
    async def update_invoice_status(
        request: Request,
        invoice_id: str,
        update: StatusUpdate,
    ) -> InvoiceOut:
        record = await request.app.state.sink.update_status(invoice_id, update.status)
        return InvoiceOut.from_record(record)

    @app.post("/api/uploads", status_code=202, response_model=UploadOut)
    async def upload_invoices(
        request: Request,
        files: list[UploadFile] = File(...),
    ) -> UploadOut:
        """Admit the files and start a background batch; poll /api/batches/{batchId}."""
        admission: FileAdmission = request.app.state.admission
        result = admission.admit(_candidate_from_upload(f) for f in files)
        if not result.admitted:
            result.raise_for_rejections()
            raise InvoiceValidationError(NO_FILES_SELECTED)

        orchestrator: BatchOrchestrator = request.app.state.orchestrator
        batch = orchestrator.submit(result.admitted)
        return UploadOut.from_batch(batch, result)

    @app.get("/api/batches/{batch_id}", response_model=BatchProgressOut)
    async def batch_progress(request: Request, batch_id: str) -> BatchProgressOut:
        batch = request.app.state.orchestrator.registry.get(batch_id)
        return BatchProgressOut.from_batch(batch)

    return app


def _draft_from_body(body: dict[str, Any]) -> InvoiceDraft:
    missing = find_missing_fields(body)
    if missing:
        raise InvoiceValidationError(missing_message(missing), missing)
    amount = body["amount"]
    if (
        isinstance(amount, bool)
        or not isinstance(amount, (int, float))
        or not math.isfinite(amount)
    ):
        raise InvoiceValidationError(AMOUNT_NOT_NUMERIC)
    if amount < 0:
        raise InvoiceValidationError(AMOUNT_NEGATIVE)
    return InvoiceDraft(
        invoice_number=coerce_text(body["invoiceNumber"]).strip(),
        type=coerce_text(body["type"]).strip(),
        date=coerce_text(body["date"]).strip(),
        amount=Decimal(str(amount)),
        vendor=coerce_text(body["vendor"]).strip(),
    )


def _candidate_from_upload(upload: UploadFile) -> CandidateFile:
    size = upload.size
    if size is None:
        upload.file.seek(0, os.SEEK_END)
        size = upload.file.tell()
        upload.file.seek(0)
    return CandidateFile(
        name=upload.filename or "unnamed",
        byte_size=size,
        mime_type=upload.content_type or DEFAULT_MIME_TYPE,
        read=upload.file.read,
    )
