from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from invoice_intake.admission.models import Rejection


class AdmissionError(Exception):
    """Raised when one or more candidate files were rejected at admission."""

    def __init__(self, message: str, rejections: list[Rejection] | None = None) -> None:
        super().__init__(message)
        self.rejections = list(rejections or [])


class FileReadError(AdmissionError):
    """Raised when a candidate file's bytes cannot be read."""
