"""AI-powered invoice field extraction."""

from pathlib import Path

from invoice_intake.admission.models import AdmittedFile
from invoice_intake.extraction.client_base import BaseExtractionClient
from invoice_intake.extraction.prompt_loader import (
    IMAGE_INSTRUCTION_FILE,
    PDF_INSTRUCTION_FILE,
    load_instruction,
)
from invoice_intake.logging.logger import Log


class InvoiceExtractor:
    """Sends an admitted file to the extraction capability and returns its raw text."""

    def __init__(
        self,
        *,
        client: BaseExtractionClient,
        model: str,
        temperature: float = 0.0,
        prompt_dir: Path | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = max(0.0, min(0.2, temperature))
        self._instructions = {
            PDF_INSTRUCTION_FILE: load_instruction("application/pdf", prompt_dir),
            IMAGE_INSTRUCTION_FILE: load_instruction("image/*", prompt_dir),
        }

    def instruction_for(self, file: AdmittedFile) -> str:
        key = PDF_INSTRUCTION_FILE if file.is_pdf else IMAGE_INSTRUCTION_FILE
        return self._instructions[key]

    async def extract(self, file: AdmittedFile) -> str:
        """Return the extraction capability's text payload for one file.

        Raises:
            ExtractionError: if the provider call fails or returns nothing.
        """
        instruction = self.instruction_for(file)
        Log.debug(f"Extraction instruction for {file.name}:\n{instruction}")

        text = await self._client.create_completion(
            model=self._model,
            temperature=self._temperature,
            instruction=instruction,
            content=file.content,
            mime_type=file.mime_type,
            file_name=file.name,
        )
        Log.debug(f"AI raw response for {file.name}:\n{text}")
        return text
