from collections.abc import Iterable

from invoice_intake.admission.exceptions import FileReadError
from invoice_intake.admission.models import (
    PDF_MIME_TYPE,
    AdmissionResult,
    AdmittedFile,
    CandidateFile,
    Rejection,
)
from invoice_intake.config.settings import TEN_MIB
from invoice_intake.logging.logger import Log

UNSUPPORTED_TYPE = "unsupported file type"
SIZE_LIMIT_EXCEEDED = "file exceeds size limit"
DUPLICATE_NAME = "duplicate file name"
UNREADABLE = "file could not be read"


def is_supported_mime_type(mime_type: str) -> bool:
    mime_type = (mime_type or "").lower()
    return mime_type.startswith("image/") or mime_type == PDF_MIME_TYPE


class FileAdmission:
    """Validates raw file selections (type, size) before any processing begins."""

    def __init__(self, max_file_size_bytes: int = TEN_MIB) -> None:
        self._max_file_size_bytes = max_file_size_bytes

    def admit(self, candidates: Iterable[CandidateFile]) -> AdmissionResult:
        """Split candidates into admitted files and rejections.

        Content is never inspected; bytes are read only for accepted candidates.
        """
        admitted: list[AdmittedFile] = []
        rejections: list[Rejection] = []
        seen_names: set[str] = set()

        for candidate in candidates:
            reason = self._check(candidate, seen_names)
            if reason is None:
                try:
                    content = candidate.read()
                except (OSError, FileReadError) as exc:
                    Log.warning(f"Could not read {candidate.name}: {exc}")
                    reason = UNREADABLE
                else:
                    seen_names.add(candidate.name)
                    admitted.append(
                        AdmittedFile(
                            name=candidate.name,
                            byte_size=candidate.byte_size,
                            mime_type=candidate.mime_type.lower(),
                            content=content,
                        )
                    )
                    continue
            rejections.append(Rejection(name=candidate.name, reason=reason))

        Log.info(f"Admitted {len(admitted)} file(s), rejected {len(rejections)}")
        return AdmissionResult(admitted=admitted, rejections=rejections)

    def _check(self, candidate: CandidateFile, seen_names: set[str]) -> str | None:
        if not is_supported_mime_type(candidate.mime_type):
            return UNSUPPORTED_TYPE
        if candidate.byte_size > self._max_file_size_bytes:
            return SIZE_LIMIT_EXCEEDED
        if candidate.name in seen_names:
            return DUPLICATE_NAME
        return None
