"""Remote key helpers for Image Uploader.

Handles filename sanitization and date-based object key generation.
"""

import re
from datetime import datetime
from pathlib import Path


def sanitize_name(name: str, max_length: int = 50) -> str:
    """Sanitize a string for use in object keys.

    Converts to snake_case, removes special characters,
    and truncates to max length.

    Args:
        name: String to sanitize
        max_length: Maximum length of result

    Returns:
        Sanitized string suitable for URLs (may be empty)
    """
    result = name.lower()
    result = re.sub(r'[\s-]+', '_', result)
    result = re.sub(r'[^\w]', '', result)
    result = re.sub(r'_+', '_', result)
    result = result.strip('_')

    if len(result) > max_length:
        result = result[:max_length].rstrip('_')

    return result


def get_date_path(dt: datetime | None = None) -> str:
    """Generate date-based path component.

    Args:
        dt: Datetime to use (defaults to now)

    Returns:
        Path string in format YYYY/MM/DD
    """
    if dt is None:
        dt = datetime.now()

    return f"{dt.year}/{dt.month:02d}/{dt.day:02d}"


def build_object_key(
    file_path: Path,
    prefix: str = "images",
    dt: datetime | None = None,
) -> str:
    """Build a default object key for a local file.

    Args:
        file_path: Local file being uploaded
        prefix: Leading key component
        dt: Datetime for the date path (defaults to now)

    Returns:
        Object key, e.g. images/2025/03/16/sunset_beach.jpg
    """
    stem = sanitize_name(file_path.stem) or "file"
    filename = f"{stem}{file_path.suffix.lower()}"
    parts = [p.strip('/') for p in (prefix, get_date_path(dt), filename) if p and p.strip('/')]
    return '/'.join(parts)
