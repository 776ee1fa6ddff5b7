"""Tests for the HTTP API: record store endpoints, uploads and batch progress."""

import asyncio
import json
import threading
import time
from collections.abc import Callable, Iterator
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError

from invoice_intake.api.app import create_app
from invoice_intake.api.schemas import DraftOut, InvoiceOut
from invoice_intake.batch.orchestrator import BatchOrchestrator
from invoice_intake.config.settings import Settings
from invoice_intake.extraction.extractor import InvoiceExtractor
from invoice_intake.records.memory_sink import DEMO_RECORDS, InMemoryRecordSink


@pytest.fixture()
def sink() -> InMemoryRecordSink:
    return InMemoryRecordSink(records=list(DEMO_RECORDS))


@pytest.fixture()
def client(sink: InMemoryRecordSink) -> Iterator[TestClient]:
    settings = Settings(extraction_provider="example", max_file_size_bytes=1024)
    with TestClient(create_app(settings, sink=sink)) as test_client:
        yield test_client


def _body(**overrides: object) -> dict[str, object]:
    body: dict[str, object] = {
        "invoiceNumber": "INV900001",
        "type": "电子发票",
        "date": "2025-04-01",
        "amount": 99.5,
        "vendor": "Vendor C",
    }
    body.update(overrides)
    return {k: v for k, v in body.items() if v is not None}


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


class TestListInvoices:
    def test_lists_seeded_records(self, client: TestClient) -> None:
        resp = client.get("/api/invoices")

        assert resp.status_code == 200
        numbers = [r["invoiceNumber"] for r in resp.json()]
        assert numbers == ["INV123456", "INV123457", "INV123458"]

    def test_record_shape(self, client: TestClient) -> None:
        first = client.get("/api/invoices").json()[0]
        assert first == {
            "id": "1",
            "invoiceNumber": "INV123456",
            "type": "增值税专用发票",
            "date": "2025-03-15",
            "amount": 12500.0,
            "vendor": "优质供应商A",
            "status": "approved",
        }


class TestCreateInvoice:
    def test_creates_pending_record(
        self, client: TestClient, sink: InMemoryRecordSink
    ) -> None:
        resp = client.post("/api/invoices", json=_body())

        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "pending"
        assert data["amount"] == 99.5
        assert data["id"]
        assert len(client.get("/api/invoices").json()) == 4

    def test_extra_fields_are_kept_but_id_and_status_are_assigned(
        self, client: TestClient
    ) -> None:
        resp = client.post(
            "/api/invoices",
            json=_body(id="forged", status="approved", note="paper copy"),
        )

        data = resp.json()
        assert data["note"] == "paper copy"
        assert data["id"] != "forged"
        assert data["status"] == "pending"

    def test_missing_fields(self, client: TestClient) -> None:
        resp = client.post("/api/invoices", json=_body(vendor=None, date=""))

        assert resp.status_code == 400
        assert resp.json() == {"error": "missing required fields: date, vendor"}

    def test_amount_must_be_numeric(self, client: TestClient) -> None:
        resp = client.post("/api/invoices", json=_body(amount="lots"))

        assert resp.status_code == 400
        assert resp.json() == {"error": "amount must be a number"}

    def test_negative_amount_rejected(self, client: TestClient) -> None:
        resp = client.post("/api/invoices", json=_body(amount=-1))

        assert resp.status_code == 400
        assert resp.json() == {"error": "amount must not be negative"}

    @pytest.mark.parametrize("amount", [float("inf"), float("-inf")])
    def test_non_finite_amount_rejected(self, client: TestClient, amount: float) -> None:
        resp = client.post(
            "/api/invoices",
            content=json.dumps(_body(amount=amount)),
            headers={"content-type": "application/json"},
        )

        assert resp.status_code == 400
        assert resp.json() == {"error": "amount must be a number"}
        assert len(client.get("/api/invoices").json()) == 3

    def test_duplicate_invoice_number(self, client: TestClient) -> None:
        resp = client.post("/api/invoices", json=_body(invoiceNumber="INV123456"))

        assert resp.status_code == 400
        assert resp.json() == {"error": "invoice number already exists"}
        assert len(client.get("/api/invoices").json()) == 3


class TestUpdateStatus:
    def test_approves_invoice(self, client: TestClient) -> None:
        resp = client.patch("/api/invoices/2", json={"status": "approved"})

        assert resp.status_code == 200
        assert resp.json()["status"] == "approved"
        assert resp.json()["invoiceNumber"] == "INV123457"

    def test_unknown_invoice(self, client: TestClient) -> None:
        resp = client.patch("/api/invoices/nope", json={"status": "approved"})

        assert resp.status_code == 404
        assert resp.json() == {"error": "invoice not found"}

    def test_invalid_status(self, client: TestClient) -> None:
        resp = client.patch("/api/invoices/2", json={"status": "paid"})
        assert resp.status_code == 422


def _wait_for_batch(client: TestClient, batch_id: str) -> dict[str, Any]:
    for _ in range(500):
        data = client.get(f"/api/batches/{batch_id}").json()
        if data["complete"]:
            return data
        time.sleep(0.01)
    raise AssertionError(f"batch {batch_id} did not finish")


class TestUploads:
    def test_accepts_and_processes_in_background(
        self, client: TestClient, png_bytes: bytes
    ) -> None:
        resp = client.post(
            "/api/uploads",
            files=[
                ("files", ("a.png", png_bytes, "image/png")),
                ("files", ("b.png", png_bytes + b"\x01", "image/png")),
            ],
        )

        assert resp.status_code == 202
        accepted = resp.json()
        assert accepted["rejections"] == []
        assert accepted["rejectionMessage"] is None
        assert [f["name"] for f in accepted["files"]] == ["a.png", "b.png"]

        done = _wait_for_batch(client, accepted["batchId"])
        assert done["outcome"]["succeeded"] == 2
        assert done["outcome"]["summary"] == "2 of 2 files processed successfully"
        assert {f["status"] for f in done["files"]} == {"success"}
        assert all(f["progress"] == 100 for f in done["files"])
        assert len(client.get("/api/invoices").json()) == 5

    def test_partial_admission(self, client: TestClient, png_bytes: bytes) -> None:
        resp = client.post(
            "/api/uploads",
            files=[
                ("files", ("a.png", png_bytes, "image/png")),
                ("files", ("notes.txt", b"hello", "text/plain")),
                ("files", ("big.png", b"\x00" * 2048, "image/png")),
            ],
        )

        data = resp.json()
        assert resp.status_code == 202
        assert data["rejections"] == [
            {"name": "notes.txt", "reason": "unsupported file type"},
            {"name": "big.png", "reason": "file exceeds size limit"},
        ]
        assert [f["name"] for f in data["files"]] == ["a.png"]
        _wait_for_batch(client, data["batchId"])

    def test_all_rejected(self, client: TestClient) -> None:
        resp = client.post(
            "/api/uploads",
            files=[("files", ("notes.txt", b"hello", "text/plain"))],
        )

        assert resp.status_code == 400
        assert resp.json() == {"error": "notes.txt: unsupported file type"}

    def test_finished_batch_reports_result(
        self, client: TestClient, png_bytes: bytes
    ) -> None:
        batch_id = client.post(
            "/api/uploads",
            files=[("files", ("a.png", png_bytes, "image/png"))],
        ).json()["batchId"]

        data = _wait_for_batch(client, batch_id)

        result = data["files"][0]["result"]
        assert result["vendor"] == "Example Supplier"
        assert result["amount"] == 100.5

    def test_unknown_batch(self, client: TestClient) -> None:
        resp = client.get("/api/batches/missing")

        assert resp.status_code == 404
        assert "error" in resp.json()


class TestBatchInFlight:
    def test_progress_is_readable_while_running(
        self, sink: InMemoryRecordSink, png_bytes: bytes, invoice_json: Callable[..., str]
    ) -> None:
        release = threading.Event()

        async def _complete(**kwargs: object) -> str:
            await asyncio.to_thread(release.wait, 5)
            return invoice_json(invoiceNumber="SLOW1")

        extraction_client = AsyncMock()
        extraction_client.create_completion.side_effect = _complete
        orchestrator = BatchOrchestrator(
            extractor=InvoiceExtractor(client=extraction_client, model="m"),
            sink=sink,
        )
        app = create_app(
            Settings(extraction_provider="example"), sink=sink, orchestrator=orchestrator
        )

        with TestClient(app) as client:
            try:
                accepted = client.post(
                    "/api/uploads",
                    files=[("files", ("slow.png", png_bytes, "image/png"))],
                ).json()
                assert accepted["files"][0]["status"] == "pending"

                running = client.get(f"/api/batches/{accepted['batchId']}").json()
                assert running["complete"] is False
                assert running["outcome"] is None
                assert running["files"][0]["status"] in {"pending", "processing"}
            finally:
                release.set()

            done = _wait_for_batch(client, accepted["batchId"])
            assert done["files"][0]["status"] == "success"
            assert done["outcome"]["total"] == 1

    def test_overlapping_upload_conflicts_when_disabled(
        self, sink: InMemoryRecordSink, png_bytes: bytes, invoice_json: Callable[..., str]
    ) -> None:
        release = threading.Event()

        async def _complete(**kwargs: object) -> str:
            await asyncio.to_thread(release.wait, 5)
            return invoice_json(invoiceNumber=str(kwargs["file_name"]))

        extraction_client = AsyncMock()
        extraction_client.create_completion.side_effect = _complete
        orchestrator = BatchOrchestrator(
            extractor=InvoiceExtractor(client=extraction_client, model="m"),
            sink=sink,
            allow_overlapping_batches=False,
        )
        app = create_app(
            Settings(extraction_provider="example"), sink=sink, orchestrator=orchestrator
        )

        with TestClient(app) as client:
            try:
                first = client.post(
                    "/api/uploads", files=[("files", ("a.png", png_bytes, "image/png"))]
                )
                second = client.post(
                    "/api/uploads", files=[("files", ("b.png", png_bytes, "image/png"))]
                )
            finally:
                release.set()

            assert first.status_code == 202
            assert second.status_code == 409
            _wait_for_batch(client, first.json()["batchId"])


class TestResponseModels:
    def test_draft_out_rejects_infinite_amount(self) -> None:
        with pytest.raises(ValidationError):
            DraftOut(
                invoice_number="INV1",
                type="t",
                date="2025-01-01",
                amount=Decimal("Infinity"),
                vendor="v",
            )

    def test_invoice_out_uses_camel_case_and_numeric_amount(self) -> None:
        record = DEMO_RECORDS[1]
        payload = InvoiceOut.from_record(record).model_dump(mode="json", by_alias=True)

        assert payload["invoiceNumber"] == "INV123457"
        assert payload["amount"] == 8750.5
        assert payload["status"] == "pending"
