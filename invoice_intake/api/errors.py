from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from invoice_intake.admission.exceptions import AdmissionError
from invoice_intake.batch.exceptions import BatchInProgressError, BatchNotFoundError
from invoice_intake.logging.logger import Log
from invoice_intake.normalization.exceptions import InvoiceValidationError
from invoice_intake.records.exceptions import (
    DuplicateInvoiceError,
    InvoiceNotFoundError,
    RecordSinkError,
)

DUPLICATE_INVOICE_MESSAGE = "invoice number already exists"
INVOICE_NOT_FOUND_MESSAGE = "invoice not found"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def register_error_handlers(app: FastAPI) -> None:
    """Map domain exceptions to HTTP responses with an ``error`` message body."""

    @app.exception_handler(InvoiceValidationError)
    async def _validation(request: Request, exc: InvoiceValidationError) -> JSONResponse:
        return _error(400, str(exc))

    @app.exception_handler(AdmissionError)
    async def _admission(request: Request, exc: AdmissionError) -> JSONResponse:
        return _error(400, str(exc))

    @app.exception_handler(DuplicateInvoiceError)
    async def _duplicate(request: Request, exc: DuplicateInvoiceError) -> JSONResponse:
        return _error(400, DUPLICATE_INVOICE_MESSAGE)

    @app.exception_handler(InvoiceNotFoundError)
    async def _not_found(request: Request, exc: InvoiceNotFoundError) -> JSONResponse:
        return _error(404, INVOICE_NOT_FOUND_MESSAGE)

    @app.exception_handler(BatchNotFoundError)
    async def _batch_not_found(request: Request, exc: BatchNotFoundError) -> JSONResponse:
        return _error(404, str(exc))

    @app.exception_handler(BatchInProgressError)
    async def _batch_busy(request: Request, exc: BatchInProgressError) -> JSONResponse:
        return _error(409, str(exc))

    @app.exception_handler(RecordSinkError)
    async def _sink_failure(request: Request, exc: RecordSinkError) -> JSONResponse:
        Log.error(f"Record store failure on {request.url.path}: {exc}")
        return _error(500, "failed to save invoice")
