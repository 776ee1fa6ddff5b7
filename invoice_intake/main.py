import asyncio
from pathlib import Path

import typer

from invoice_intake.admission.admission import FileAdmission
from invoice_intake.admission.file_loader import FileLoader
from invoice_intake.admission.models import AdmissionResult, CandidateFile
from invoice_intake.batch.models import BatchOutcome, FileProcessingState
from invoice_intake.batch.orchestrator import build_orchestrator
from invoice_intake.config.settings import Settings
from invoice_intake.database.connection import open_pool
from invoice_intake.logging.logger import Log
from invoice_intake.records.factory import RecordSinkFactory
from invoice_intake.records.postgres_sink import PostgresRecordSink

cli = typer.Typer(
    name="invoice-intake",
    help="Extract invoice fields from scanned documents and store them.",
    add_completion=False,
)


def _print_state(batch_id: str, state: FileProcessingState) -> None:
    line = f"  [{state.progress:>3}%] {state.name}: {state.status.value}"
    if state.error:
        line += f" ({state.error})"
    typer.echo(line)


async def _run_ingest(settings: Settings, admission: AdmissionResult) -> BatchOutcome:
    pool = await open_pool(settings) if settings.records_backend.lower() == "postgres" else None
    try:
        sink = RecordSinkFactory.create(settings, pool=pool)
        if isinstance(sink, PostgresRecordSink):
            await sink.ensure_schema()
        orchestrator = build_orchestrator(settings, sink, listener=_print_state)
        return await orchestrator.run_batch(admission.admitted)
    finally:
        if pool is not None:
            await pool.close()


@cli.command()
def ingest(
    paths: list[Path] = typer.Argument(..., help="Invoice images or PDF files"),
) -> None:
    """Admit the given files and run them through extraction as one batch."""
    settings = Settings()
    Log.configure(settings.log_level)

    loader = FileLoader()
    candidates: list[CandidateFile] = []
    for path in paths:
        try:
            candidates.append(loader.candidate_from_path(path))
        except FileNotFoundError as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(code=1)

    admission = FileAdmission(settings.max_file_size_bytes).admit(candidates)
    if admission.rejection_message:
        typer.echo(f"Rejected:\n{admission.rejection_message}", err=True)
    if not admission.admitted:
        raise typer.Exit(code=1)

    outcome = asyncio.run(_run_ingest(settings, admission))
    typer.echo(outcome.summary_message)
    for draft in outcome.results:
        typer.echo(f"  - {draft.invoice_number} | {draft.vendor} | {draft.amount}")
    if outcome.has_failures or admission.rejections:
        raise typer.Exit(code=1)


@cli.command()
def serve() -> None:
    """Run the HTTP API using uvicorn."""
    import uvicorn

    from invoice_intake.api.app import create_app

    settings = Settings()
    Log.configure(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.api_host, port=settings.api_port)


def main() -> None:
    """Entry point for the ``invoice-intake`` console script."""
    cli()


if __name__ == "__main__":
    main()
