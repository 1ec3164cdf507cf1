"""Image records passed between ingestion, scoring and analysis."""

import base64
import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class QualityRating(str, Enum):
    POOR = "Poor"
    FAIR = "Fair"
    GOOD = "Good"
    EXCELLENT = "Excellent"
    ERROR = "Error"


@dataclass(frozen=True)
class CandidateFile:
    """A file offered for upload, before validation."""

    name: str
    mime_type: str
    data: bytes

    @property
    def size_bytes(self) -> int:
        return len(self.data)


@dataclass
class UploadedImage:
    """An accepted image file."""

    raw_bytes: bytes
    mime_type: str
    size_bytes: int
    name: str

    @classmethod
    def from_candidate(cls, candidate: CandidateFile) -> "UploadedImage":
        return cls(
            raw_bytes=candidate.data,
            mime_type=candidate.mime_type,
            size_bytes=candidate.size_bytes,
            name=candidate.name,
        )


@dataclass(frozen=True)
class EncodedImage:
    """Base64 payload handed to the remote services."""

    base64_payload: str
    mime_type: str

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64_payload}"


def encode_image(image: UploadedImage) -> EncodedImage:
    return EncodedImage(
        base64_payload=base64.b64encode(image.raw_bytes).decode("ascii"),
        mime_type=image.mime_type,
    )


@dataclass
class ImageQualityResult:
    """Quality score for one image; ``pending`` until the scorer answers."""

    score: Optional[int] = None
    rating: Optional[QualityRating] = None
    feedback: Optional[str] = None
    pending: bool = True

    @classmethod
    def failed(cls, feedback: str) -> "ImageQualityResult":
        return cls(rating=QualityRating.ERROR, feedback=feedback, pending=False)


_slot_ids = itertools.count(1)


def next_slot_id() -> int:
    return next(_slot_ids)


@dataclass
class ImageSlot:
    """
    One image in the working set.

    The image, its encoding (which doubles as the preview handle) and its
    quality result move together, so reordering or removal is one operation.
    """

    image: UploadedImage
    encoded: EncodedImage
    quality: ImageQualityResult = field(default_factory=ImageQualityResult)
    slot_id: int = field(default_factory=next_slot_id)

    @property
    def preview_uri(self) -> str:
        return self.encoded.data_uri
