"""Parses the extraction capability's text payload into a raw result."""

import json
from typing import Any

from invoice_intake.logging.logger import Log
from invoice_intake.normalization.exceptions import ExtractionParseError
from invoice_intake.normalization.models import RawExtractionResult

PARSE_FAILURE_MESSAGE = "unable to parse extraction result"


def parse_extraction_text(raw: str) -> RawExtractionResult:
    """Decode extraction output; a JSON array yields its first element.

    Blank output decodes to an empty object, so it is reported as missing fields.

    Raises:
        ExtractionParseError: on invalid JSON, an empty array, or a non-object payload.
    """
    try:
        parsed: Any = json.loads(_strip_code_fences(raw or "") or "{}")
    except json.JSONDecodeError as exc:
        Log.debug(f"Extraction output is not JSON: {exc}")
        raise ExtractionParseError(PARSE_FAILURE_MESSAGE) from exc

    if isinstance(parsed, list):
        if not parsed:
            raise ExtractionParseError(PARSE_FAILURE_MESSAGE)
        if len(parsed) > 1:
            Log.warning(
                f"Extraction returned {len(parsed)} objects, using the first one only"
            )
        parsed = parsed[0]

    if not isinstance(parsed, dict):
        raise ExtractionParseError(PARSE_FAILURE_MESSAGE)
    return parsed


def _strip_code_fences(raw: str) -> str:
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        lines = cleaned.splitlines()
        if lines and lines[0].startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        cleaned = "\n".join(lines)
    return cleaned
