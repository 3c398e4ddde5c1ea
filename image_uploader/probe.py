"""Read-only image measurements.

Queries Pillow and the filesystem for an image's natural size, file size
and basic metadata. Nothing here modifies the file.
"""

from pathlib import Path
from typing import Any

from PIL import Image, UnidentifiedImageError

from .errors import TransformError
from .models import FileSize, ImageDimensions

# EXIF tag holding the orientation flag
ORIENTATION_TAG = 0x0112


def measure_dimensions(path: Path) -> ImageDimensions:
    """Get the natural width and height of an image.

    Only the header is read; pixel data is not decoded.

    Args:
        path: Path to image

    Returns:
        ImageDimensions as stored in the file (before auto-orient)

    Raises:
        TransformError: If the file cannot be opened as an image
    """
    try:
        with Image.open(path) as image:
            width, height = image.size
    except (OSError, UnidentifiedImageError) as e:
        raise TransformError(f"Could not read image dimensions of {path}: {e}")

    return ImageDimensions(width, height)


def measure_file_size(path: Path) -> FileSize:
    """Get the size of a file on disk.

    Args:
        path: Path to file

    Returns:
        FileSize in bytes

    Raises:
        TransformError: If the file cannot be stat'ed
    """
    try:
        size = Path(path).stat().st_size
    except OSError as e:
        raise TransformError(f"Could not read file size of {path}: {e}")

    return FileSize(size, 'B')


def identify(path: Path) -> dict[str, Any]:
    """Collect basic metadata about an image.

    Args:
        path: Path to image

    Returns:
        Dict with format, mode, width, height, file_size (bytes),
        orientation (EXIF flag or None) and has_icc_profile

    Raises:
        TransformError: If the file cannot be opened as an image
    """
    try:
        with Image.open(path) as image:
            exif = image.getexif()
            return {
                'format': image.format,
                'mode': image.mode,
                'width': image.width,
                'height': image.height,
                'file_size': Path(path).stat().st_size,
                'orientation': exif.get(ORIENTATION_TAG),
                'has_icc_profile': 'icc_profile' in image.info,
            }
    except (OSError, UnidentifiedImageError) as e:
        raise TransformError(f"Could not identify {path}: {e}")
