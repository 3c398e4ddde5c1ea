"""Data models for Image Uploader.

Contains data classes for image geometry, file sizes, job specifications,
status events, and object-store configuration.
"""

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional


@dataclass(frozen=True)
class ImageDimensions:
    """Natural size of an image as decoded.

    Attributes:
        width: Width in pixels
        height: Height in pixels
    """
    width: int
    height: int

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid dimensions: {self.width}x{self.height}")


# Multipliers that convert a size unit to megabytes
_UNIT_TO_MB = {
    'B': 1 / (1024 * 1024),
    'K': 1 / 1024,
    'M': 1.0,
    'G': 1024.0,
}

_SIZE_PATTERN = re.compile(r'^\s*(\d+(?:\.\d+)?)\s*([BKMG]?)B?\s*$', re.IGNORECASE)


@dataclass(frozen=True)
class FileSize:
    """A measured file size tagged with its unit.

    Attributes:
        magnitude: Numeric size in the given unit
        unit: One of B, K, M, G
    """
    magnitude: float
    unit: str = 'B'

    def __post_init__(self):
        if self.unit not in _UNIT_TO_MB:
            raise ValueError(f"Unknown size unit: {self.unit}")
        if self.magnitude < 0:
            raise ValueError(f"Negative file size: {self.magnitude}")

    @classmethod
    def parse(cls, text: str) -> "FileSize":
        """Parse a size string such as "2048K", "1.5G", "3.2M" or "512".

        A bare number is read as bytes.

        Raises:
            ValueError: If the string is not a recognizable size
        """
        match = _SIZE_PATTERN.match(text)
        if not match:
            raise ValueError(f"Unrecognized file size: {text!r}")
        magnitude, unit = match.groups()
        return cls(float(magnitude), unit.upper() or 'B')

    @property
    def megabytes(self) -> float:
        return self.magnitude * _UNIT_TO_MB[self.unit]

    def __str__(self) -> str:
        return f"{self.magnitude:g}{self.unit}"


@dataclass(frozen=True)
class SizeLimit:
    """Upper bound on a source file's size: unlimited or a megabyte ceiling.

    Use SizeLimit.unlimited() or SizeLimit.bound(mb) rather than the
    constructor.
    """
    megabytes: Optional[float] = None

    def __post_init__(self):
        if self.megabytes is not None and self.megabytes <= 0:
            raise ValueError(f"Size limit must be positive, got {self.megabytes}")

    @classmethod
    def unlimited(cls) -> "SizeLimit":
        return cls(None)

    @classmethod
    def bound(cls, megabytes: float) -> "SizeLimit":
        return cls(float(megabytes))

    @property
    def is_unlimited(self) -> bool:
        return self.megabytes is None

    def __str__(self) -> str:
        if self.megabytes is None:
            return "unlimited"
        return f"{self.megabytes:g}MB"


@dataclass(frozen=True)
class ResizeSpec:
    """A caller's request to resize one image.

    Attributes:
        file_id: Correlation id carried by every status event of the job
        source: Path to the input image
        destination: Path the transformed image is written to
        target_width: Target width in pixels, None to derive from aspect ratio
        target_height: Target height in pixels, None to derive from aspect ratio
        square: Produce an exact target_width x target_height square
        quality: Output quality 1-100 (default: 90)
        strip_metadata: Remove EXIF/ICC/comments from the output
        max_size: Admission ceiling for the source file
    """
    file_id: str
    source: Path
    destination: Path
    target_width: Optional[int] = None
    target_height: Optional[int] = None
    square: bool = False
    quality: int = 90
    strip_metadata: bool = True
    max_size: SizeLimit = field(default_factory=SizeLimit.unlimited)

    @property
    def is_square(self) -> bool:
        """Square mode only applies when both targets are present and equal."""
        return (
            self.square
            and self.target_width is not None
            and self.target_width == self.target_height
        )


@dataclass(frozen=True)
class TransferSpec:
    """A caller's request to upload one file to the object store.

    Attributes:
        file_id: Correlation id carried by every status event of the job
        bucket_name: Destination bucket
        source: Local file to upload
        remote_key: Object key in the bucket
        acl: ACL override (defaults to the uploader's configured ACL)
        extra_params: Store-specific upload arguments merged over the defaults
    """
    file_id: str
    bucket_name: str
    source: Path
    remote_key: str
    acl: Optional[str] = None
    extra_params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CropBox:
    """Crop rectangle, offset relative to a centered gravity."""
    width: int
    height: int
    x: int = 0
    y: int = 0


@dataclass(frozen=True)
class TransformInstructions:
    """Output of the geometry planner.

    Attributes:
        resize_width: Pixel width to resize to, None to preserve aspect
        resize_height: Pixel height to resize to, None to preserve aspect
        crop: Center crop applied after resizing, if any
        keep_aspect: When both axes are set, treat them as a box to fit
            inside instead of exact pins
    """
    resize_width: Optional[int] = None
    resize_height: Optional[int] = None
    crop: Optional[CropBox] = None
    keep_aspect: bool = False

    @property
    def resizes(self) -> bool:
        return self.resize_width is not None or self.resize_height is not None


class EventKind(str, Enum):
    PROGRESS = 'progress'
    RESULT = 'result'
    ERROR = 'error'


@dataclass(frozen=True)
class StatusEvent:
    """One lifecycle notification of a job.

    Attributes:
        kind: progress, result or error
        job_id: file_id of the job that produced the event
        payload: Kind-specific fields
    """
    kind: EventKind
    job_id: str
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def progress(cls, job_id: str, amount: int, total: int) -> "StatusEvent":
        return cls(EventKind.PROGRESS, job_id, {'progressAmount': amount, 'progressTotal': total})

    @classmethod
    def result(cls, job_id: str, **payload: Any) -> "StatusEvent":
        return cls(EventKind.RESULT, job_id, payload)

    @classmethod
    def error(cls, job_id: str, message: str) -> "StatusEvent":
        return cls(EventKind.ERROR, job_id, {'message': message})

    @property
    def is_terminal(self) -> bool:
        return self.kind is not EventKind.PROGRESS

    def to_dict(self) -> dict[str, Any]:
        return {'type': self.kind.value, 'id': self.job_id, **self.payload}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


@dataclass
class S3Config:
    """Object store configuration.

    Attributes:
        key: Access key id
        secret: Secret access key
        acl: Default ACL for uploads
        region: Optional region name
        endpoint_url: Optional endpoint for S3-compatible stores (e.g. R2)
        bucket: Optional default bucket used by the CLI
    """
    key: str
    secret: str
    acl: str = 'public-read'
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    bucket: Optional[str] = None
