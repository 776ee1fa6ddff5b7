"""Example extraction client adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseExtractionClient and register the provider in ExtractionClientFactory.
"""

import hashlib
import json
from typing import ClassVar

from invoice_intake.extraction.client_base import BaseExtractionClient


class ExampleClientAdapter(BaseExtractionClient):
    """Example adapter that returns a fixed valid invoice JSON.

    No network calls. The invoice number is derived from the file content so
    distinct files never collide in the record store.
    """

    DEFAULT_RESPONSE: ClassVar[dict[str, object]] = {
        "type": "增值税普通发票",
        "date": "2025-01-01",
        "amount": "100.50",
        "vendor": "Example Supplier",
    }

    async def create_completion(
        self,
        *,
        model: str,
        temperature: float,
        instruction: str,
        content: bytes,
        mime_type: str,
        file_name: str,
    ) -> str:
        _ = model, temperature, instruction, mime_type, file_name
        digest = hashlib.sha256(content).hexdigest()[:10].upper()
        return json.dumps(
            {"invoiceNumber": f"EX-{digest}", **self.DEFAULT_RESPONSE},
            ensure_ascii=False,
        )
