import mimetypes
from pathlib import Path

from invoice_intake.admission.exceptions import FileReadError
from invoice_intake.admission.models import CandidateFile

DEFAULT_MIME_TYPE = "application/octet-stream"


def guess_mime_type(path: Path) -> str:
    """Guess a mime type from the file extension, falling back to octet-stream."""
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or DEFAULT_MIME_TYPE


class FileLoader:
    """Builds admission candidates from files on disk."""

    def candidate_from_path(self, path: Path) -> CandidateFile:
        """Stat a file and defer reading its bytes until admission accepts it.

        Raises:
            FileNotFoundError: if the path does not point to a file.
        """
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        return CandidateFile(
            name=path.name,
            byte_size=path.stat().st_size,
            mime_type=guess_mime_type(path),
            read=lambda: self._read(path),
        )

    @staticmethod
    def _read(path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as exc:
            raise FileReadError(f"Failed to read {path}: {exc}") from exc
