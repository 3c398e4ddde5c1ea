"""Image Uploader - resize images and publish them to object storage.

Plans and applies resize/crop transforms, gates oversized sources, uploads
files to S3-compatible buckets, and reports job progress through a single
replaceable status channel.
"""

__version__ = "0.1.0"

from .channel import StatusChannel
from .errors import (
    ConfigError,
    ContentTypeError,
    FileTooLargeError,
    TransferError,
    TransformError,
    UploaderError,
    ValidationError,
)
from .jobs import Job
from .models import (
    EventKind,
    ImageDimensions,
    ResizeSpec,
    S3Config,
    SizeLimit,
    StatusEvent,
    TransferSpec,
)
from .uploader import Uploader

__all__ = [
    "__version__",
    "ConfigError",
    "ContentTypeError",
    "EventKind",
    "FileTooLargeError",
    "ImageDimensions",
    "Job",
    "ResizeSpec",
    "S3Config",
    "SizeLimit",
    "StatusChannel",
    "StatusEvent",
    "TransferError",
    "TransferSpec",
    "TransformError",
    "Uploader",
    "UploaderError",
    "ValidationError",
]
