from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from skola_media.core.config import settings


PDF_CONTENT_TYPE = "application/pdf"
JPEG_CONTENT_TYPE = "image/jpeg"


class TargetKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    PDF = "pdf"

    @classmethod
    def from_content_type(cls, content_type: str) -> "TargetKind":
        ct = (content_type or "").strip().lower()
        if ct == PDF_CONTENT_TYPE:
            return cls.PDF
        if ct.startswith("video/"):
            return cls.VIDEO
        return cls.IMAGE


def thumbnail_key_for(object_key: str) -> str:
    """Derived thumbnail key; a pure string transform of the primary key."""
    return f"{settings.thumbnail_prefix}{object_key}"


def original_key_for(object_key: str) -> str:
    """Full-size key for a (possibly) thumbnail key."""
    prefix = settings.thumbnail_prefix
    if object_key.startswith(prefix):
        return object_key[len(prefix):]
    return object_key


def is_heic(mime_type: Optional[str]) -> bool:
    mt = (mime_type or "").lower()
    return "heic" in mt or "heif" in mt


@dataclass(frozen=True, slots=True)
class AttachmentDescriptor:
    """A picked file waiting to be uploaded. Retries build a new one."""

    local_uri: str
    declared_content_type: str
    target_kind: TargetKind

    @classmethod
    def create(cls, local_uri: str, content_type: str) -> "AttachmentDescriptor":
        return cls(
            local_uri=local_uri,
            declared_content_type=content_type,
            target_kind=TargetKind.from_content_type(content_type),
        )

    @property
    def is_pdf(self) -> bool:
        return self.target_kind is TargetKind.PDF


@dataclass(frozen=True, slots=True)
class UploadResult:
    storage_key: str
    byte_size: int
    content_type: str
    remote_etag: Optional[str] = None
    bucket: Optional[str] = None
    uploaded_at: Optional[str] = None
    location: Optional[str] = None


@dataclass(frozen=True, slots=True)
class AttachmentUploadResult:
    original: UploadResult
    thumbnail: Optional[UploadResult] = None


@dataclass(frozen=True, slots=True)
class SignedUrl:
    url: str
    object_key: str
    expires_at: Optional[str] = None
    expires_in: Optional[int] = None


class SessionState(str, Enum):
    NOT_STARTED = "not_started"
    INITIATED = "initiated"
    UPLOADING_PARTS = "uploading_parts"
    COMPLETED = "completed"
    FAILED = "failed"
    ABORTED = "aborted"


@dataclass(frozen=True, slots=True)
class CompletedPart:
    part_number: int
    etag: str


@dataclass(slots=True)
class UploadSession:
    """State of one multipart upload; owned by a single orchestrator run."""

    object_key: str
    content_type: str
    total_chunks: int
    upload_id: Optional[str] = None
    state: SessionState = SessionState.NOT_STARTED
    completed_parts: List[CompletedPart] = field(default_factory=list)

    _TRANSITIONS = {
        SessionState.NOT_STARTED: {SessionState.INITIATED, SessionState.FAILED},
        SessionState.INITIATED: {SessionState.UPLOADING_PARTS, SessionState.FAILED},
        SessionState.UPLOADING_PARTS: {
            SessionState.UPLOADING_PARTS,
            SessionState.COMPLETED,
            SessionState.FAILED,
        },
        SessionState.FAILED: {SessionState.ABORTED},
    }

    def transition(self, new_state: SessionState) -> None:
        allowed = self._TRANSITIONS.get(self.state, set())
        if new_state not in allowed:
            raise ValueError(
                f"Invalid session transition {self.state.value} -> {new_state.value}"
            )
        self.state = new_state

    def record_part(self, part: CompletedPart) -> None:
        expected = len(self.completed_parts) + 1
        if part.part_number != expected:
            raise ValueError(
                f"Out of order part {part.part_number}, expected {expected}"
            )
        self.completed_parts.append(part)

    @property
    def completed_chunks(self) -> int:
        return len(self.completed_parts)

    def ordered_parts(self) -> List[CompletedPart]:
        return sorted(self.completed_parts, key=lambda p: p.part_number)


@dataclass(frozen=True, slots=True)
class UploadProgress:
    object_key: str
    completed_chunks: int
    total_chunks: int
    percent: int


@dataclass(frozen=True, slots=True)
class MultipartUploadResult:
    object_key: str
    upload_id: str
    byte_size: int
    parts: List[CompletedPart]
    location: Optional[str] = None
