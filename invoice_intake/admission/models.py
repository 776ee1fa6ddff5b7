from collections.abc import Callable
from dataclasses import dataclass, field

from invoice_intake.admission.exceptions import AdmissionError

PDF_MIME_TYPE = "application/pdf"


@dataclass(frozen=True)
class CandidateFile:
    """A raw file selection; bytes are only read through ``read`` once accepted."""

    name: str
    byte_size: int
    mime_type: str
    read: Callable[[], bytes] = field(repr=False, compare=False)

    @classmethod
    def from_bytes(cls, name: str, content: bytes, mime_type: str) -> "CandidateFile":
        """Wrap bytes already in memory, such as an upload body."""
        return cls(
            name=name,
            byte_size=len(content),
            mime_type=mime_type,
            read=lambda: content,
        )


@dataclass(frozen=True)
class AdmittedFile:
    """A file that passed type and size checks and is eligible for extraction."""

    name: str
    byte_size: int
    mime_type: str
    content: bytes = field(repr=False)

    @property
    def is_pdf(self) -> bool:
        return self.mime_type == PDF_MIME_TYPE


@dataclass(frozen=True)
class Rejection:
    name: str
    reason: str

    def describe(self) -> str:
        return f"{self.name}: {self.reason}"


@dataclass(frozen=True)
class AdmissionResult:
    """Output of one admission pass: accepted files plus every rejection."""

    admitted: list[AdmittedFile] = field(default_factory=list)
    rejections: list[Rejection] = field(default_factory=list)

    @property
    def rejection_message(self) -> str | None:
        """All rejections for the submission joined into one message."""
        if not self.rejections:
            return None
        return "\n".join(r.describe() for r in self.rejections)

    def raise_for_rejections(self) -> None:
        """Raise AdmissionError carrying every rejection, if there are any."""
        message = self.rejection_message
        if message is not None:
            raise AdmissionError(message, self.rejections)
