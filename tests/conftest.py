import io
import json
from collections.abc import Callable

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from invoice_intake.admission.models import AdmittedFile

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _invoice_json(**overrides: object) -> str:
    """Extraction output; pass a field as None to drop it."""
    payload: dict[str, object] = {
        "invoiceNumber": "INV1",
        "type": "普通发票",
        "date": "2025-01-01",
        "amount": "100.50",
        "vendor": "X",
    }
    payload.update(overrides)
    return json.dumps(
        {k: v for k, v in payload.items() if v is not None},
        ensure_ascii=False,
    )


@pytest.fixture()
def invoice_json() -> Callable[..., str]:
    return _invoice_json


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page invoice PDF."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Invoice INV1 - Vendor X - Total 100.50")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture()
def make_admitted() -> Callable[..., AdmittedFile]:
    def _make(
        name: str = "invoice.png",
        content: bytes = PNG_BYTES,
        mime_type: str = "image/png",
    ) -> AdmittedFile:
        return AdmittedFile(
            name=name,
            byte_size=len(content),
            mime_type=mime_type,
            content=content,
        )

    return _make
