from pathlib import Path

from invoice_intake.admission.models import PDF_MIME_TYPE
from invoice_intake.extraction.exceptions import ExtractionError

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"

IMAGE_INSTRUCTION_FILE = "image_instruction.txt"
PDF_INSTRUCTION_FILE = "pdf_instruction.txt"


def instruction_file_for(mime_type: str) -> str:
    """PDFs and images get differently worded instructions for the same five fields."""
    return PDF_INSTRUCTION_FILE if mime_type == PDF_MIME_TYPE else IMAGE_INSTRUCTION_FILE


def load_instruction(mime_type: str, prompt_dir: Path | None = None) -> str:
    """Load the extraction instruction for a mime type.

    Args:
        mime_type: Mime type of the admitted file.
        prompt_dir: Directory holding the instruction files.
                    Defaults to the bundled prompts directory.

    Raises:
        ExtractionError: if the file cannot be read.
    """
    path = (prompt_dir or _DEFAULT_PROMPT_DIR) / instruction_file_for(mime_type)
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise ExtractionError(f"Failed to load extraction instruction: {exc}") from exc
