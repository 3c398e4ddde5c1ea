"""Object store transfers.

Manages S3 client initialization, streaming uploads with progress,
batch deletes, and connection checks.
"""

import threading
from pathlib import Path
from typing import Any, Callable, Optional

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from .errors import TransferError
from .logging_config import get_logger
from .models import S3Config, TransferSpec

logger = get_logger("upload")

UPLOAD_ERROR_MESSAGE = "There was a problem uploading this file"
DELETE_ERROR_MESSAGE = "There was a problem deleting these files"

# S3 delete_objects accepts at most 1000 keys per request
DELETE_BATCH_SIZE = 1000

ProgressCallback = Callable[[int, int], None]


def init_s3_client(config: S3Config) -> Any:
    """Create and return a boto3 S3 client.

    Args:
        config: Object store configuration with credentials

    Returns:
        Configured boto3 S3 client
    """
    session = boto3.session.Session()
    client = session.client(
        service_name='s3',
        endpoint_url=config.endpoint_url,
        aws_access_key_id=config.key,
        aws_secret_access_key=config.secret,
        region_name=config.region,
    )
    return client


def remote_path(bucket: str, key: str) -> str:
    """Logical address of an uploaded object: /{bucket}/{key}."""
    return f"/{bucket}/{key}"


def build_upload_args(spec: TransferSpec, default_acl: str = 'public-read') -> dict[str, Any]:
    """Build ExtraArgs for an upload; caller extras win over the defaults.

    Args:
        spec: Transfer request
        default_acl: ACL used when the request has no override

    Returns:
        ExtraArgs dictionary for boto3's upload_file
    """
    extra_args: dict[str, Any] = {'ACL': spec.acl or default_acl}
    extra_args.update(spec.extra_params)
    return extra_args


class _ProgressTracker:
    """Turns boto3's per-chunk byte counts into cumulative progress.

    boto3 may invoke the callback from several transfer threads at once, so
    totals can reach on_progress slightly out of order.
    """

    def __init__(self, total: int, on_progress: ProgressCallback):
        self.total = total
        self.transferred = 0
        self._on_progress = on_progress
        self._lock = threading.Lock()

    def __call__(self, bytes_amount: int) -> None:
        with self._lock:
            self.transferred += bytes_amount
            transferred = self.transferred
        self._on_progress(transferred, self.total)


def upload_file(
    client: Any,
    spec: TransferSpec,
    default_acl: str = 'public-read',
    on_progress: Optional[ProgressCallback] = None,
) -> str:
    """Stream a local file to the object store.

    Args:
        client: Configured boto3 S3 client
        spec: Transfer request
        default_acl: ACL used when the request has no override
        on_progress: Called with (bytes_so_far, total_bytes) as chunks go out

    Returns:
        Remote path of the uploaded object (/{bucket}/{key})

    Raises:
        TransferError: With a generic message; the cause is kept in .detail
    """
    source = Path(spec.source)

    try:
        total = source.stat().st_size
    except OSError as e:
        logger.error("Cannot read %s for upload", source, exc_info=True)
        raise TransferError(UPLOAD_ERROR_MESSAGE, detail=f"Cannot read {source}: {e}") from e

    callback = _ProgressTracker(total, on_progress) if on_progress else None

    try:
        client.upload_file(
            Filename=str(source),
            Bucket=spec.bucket_name,
            Key=spec.remote_key,
            ExtraArgs=build_upload_args(spec, default_acl),
            Callback=callback,
        )
    except (ClientError, BotoCoreError, S3UploadFailedError, OSError, ValueError) as e:
        logger.error(
            "Upload of %s to s3://%s/%s failed",
            source, spec.bucket_name, spec.remote_key, exc_info=True,
        )
        raise TransferError(UPLOAD_ERROR_MESSAGE, detail=repr(e)) from e

    return remote_path(spec.bucket_name, spec.remote_key)


def delete_objects(
    client: Any,
    bucket: str,
    keys: list[str],
) -> tuple[int, int]:
    """Delete multiple objects.

    Args:
        client: Configured boto3 S3 client
        bucket: Bucket name
        keys: List of object keys to delete

    Returns:
        Tuple of (deleted_count, failed_count)

    Raises:
        TransferError: If no batch could be deleted at all
    """
    if not keys:
        return (0, 0)

    deleted = 0
    failed = 0
    last_error: Optional[Exception] = None

    for i in range(0, len(keys), DELETE_BATCH_SIZE):
        batch = keys[i:i + DELETE_BATCH_SIZE]
        delete_request = {
            'Objects': [{'Key': key} for key in batch],
            'Quiet': True,
        }

        try:
            response = client.delete_objects(Bucket=bucket, Delete=delete_request)
            errors = response.get('Errors', [])
            for error in errors:
                logger.warning("Could not delete %s: %s", error.get('Key'), error.get('Message'))
            failed += len(errors)
            deleted += len(batch) - len(errors)
        except (ClientError, BotoCoreError) as e:
            logger.error("Batch delete in %s failed", bucket, exc_info=True)
            last_error = e
            failed += len(batch)

    if deleted == 0 and last_error is not None:
        raise TransferError(DELETE_ERROR_MESSAGE, detail=repr(last_error)) from last_error

    return (deleted, failed)


def verify_connection(client: Any, bucket: str) -> bool:
    """Verify the connection by checking bucket access.

    Args:
        client: Configured boto3 S3 client
        bucket: Bucket name

    Returns:
        True if connection successful

    Raises:
        TransferError: If the bucket is missing or inaccessible
    """
    try:
        client.head_bucket(Bucket=bucket)
        return True
    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', 'Unknown')
        if error_code == '404':
            raise TransferError(f"Bucket '{bucket}' not found", detail=repr(e))
        elif error_code == '403':
            raise TransferError(
                f"Access denied to bucket '{bucket}'. Check your credentials.", detail=repr(e)
            )
        else:
            raise TransferError(f"Failed to connect to the object store: {error_code}", detail=repr(e))
    except BotoCoreError as e:
        raise TransferError("Failed to connect to the object store", detail=repr(e))
