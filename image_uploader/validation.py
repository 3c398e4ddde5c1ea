"""Content type checks for incoming files."""

from typing import Any, Iterable, Mapping, Optional

from .errors import ContentTypeError

CONTENT_TYPE_ERROR_MESSAGE = "This file type is not allowed"


def resolve_content_type(file_metadata: Mapping[str, Any]) -> Optional[str]:
    """Find a file's content type in upload metadata.

    The first present of `mimetype`, `headers['content-type']` and
    `content_type` wins. Header names are matched case-insensitively.

    Args:
        file_metadata: Metadata describing an uploaded file

    Returns:
        Lower-cased content type without parameters, or None
    """
    content_type = file_metadata.get('mimetype')

    if not content_type:
        headers = file_metadata.get('headers') or {}
        for name, value in headers.items():
            if name.lower() == 'content-type' and value:
                content_type = value
                break

    if not content_type:
        content_type = file_metadata.get('content_type')

    if not content_type:
        return None

    # Drop parameters such as "; charset=binary"
    return content_type.split(';', 1)[0].strip().lower()


def check_content_type(
    file_metadata: Mapping[str, Any],
    allowed_types: Iterable[str],
) -> str:
    """Ensure a file's content type is in the allowed set.

    Args:
        file_metadata: Metadata describing an uploaded file
        allowed_types: Accepted content types, e.g. {"image/jpeg", "image/png"}

    Returns:
        The resolved content type

    Raises:
        ContentTypeError: If the type is missing or not allowed
    """
    allowed = {t.lower() for t in allowed_types}
    content_type = resolve_content_type(file_metadata)

    if content_type is None or content_type not in allowed:
        raise ContentTypeError(CONTENT_TYPE_ERROR_MESSAGE)

    return content_type
