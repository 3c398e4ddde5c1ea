"""File size admission check run before any transform work."""

from .errors import FileTooLargeError
from .models import FileSize, SizeLimit


def admit(size: FileSize, limit: SizeLimit) -> None:
    """Reject a source file that is larger than the configured limit.

    The comparison is strict: a file exactly at the limit is accepted.

    Args:
        size: Measured size of the source file, in any unit
        limit: Configured ceiling

    Raises:
        FileTooLargeError: If the file is larger than the limit
    """
    if limit.is_unlimited:
        return

    if size.megabytes > limit.megabytes:
        raise FileTooLargeError(
            f"File is too large. The maximum allowed size is {limit.megabytes:g}MB."
        )
