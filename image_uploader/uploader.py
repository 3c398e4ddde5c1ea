"""Caller-facing entry point: resize images and transfer files as jobs.

Each call returns a Job immediately and runs the work on a thread pool.
Progress and terminal events go to the job and to the shared status
channel; the terminal outcome also goes to the optional callbacks.
"""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Optional

from .admission import admit
from .channel import NullChannel, StatusChannel
from .config import check_s3_config
from .errors import (
    ContentTypeError,
    TransferError,
    TransformError,
    UploaderError,
    ValidationError,
)
from .geometry import plan_transform
from .jobs import ErrorCallback, Job, SuccessCallback
from .logging_config import get_logger
from .models import ResizeSpec, S3Config, StatusEvent, TransferSpec
from .probe import measure_dimensions, measure_file_size
from .process import execute_transform
from .upload import (
    DELETE_ERROR_MESSAGE,
    UPLOAD_ERROR_MESSAGE,
    delete_objects,
    init_s3_client,
    upload_file,
)
from .validation import check_content_type

logger = get_logger("uploader")

# Work functions return (value for the future/callback, result event payload)
Work = Callable[[Job], tuple[Any, dict[str, Any]]]


class Uploader:
    """Resizes images and uploads files, reporting through a status channel.

    Args:
        config: Object store credentials and defaults
        channel: Status channel to publish events on; None disables it
        client: Pre-built S3 client (built from config when omitted)
        max_workers: Number of jobs that may run at once

    Raises:
        ConfigError: If the key or secret is missing
    """

    def __init__(
        self,
        config: S3Config,
        channel: Optional[StatusChannel] = None,
        client: Any = None,
        max_workers: int = 4,
    ):
        check_s3_config(config)
        self.config = config
        self.channel = channel if channel is not None else NullChannel()
        self.client = client if client is not None else init_s3_client(config)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="uploader")

    def __enter__(self) -> "Uploader":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self, wait: bool = True) -> None:
        """Stop accepting jobs; optionally wait for running ones to finish.

        When waiting, events already sent to the channel are delivered
        before this returns.
        """
        self._executor.shutdown(wait=wait)
        if wait:
            self.channel.flush()

    def resize(
        self,
        spec: ResizeSpec,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> Job:
        """Start a resize job.

        The job resolves to the destination path. Its result event carries
        the requested width and height.
        """
        job = Job(spec.file_id, self.channel, on_success, on_error)
        self._submit(job, lambda job: _resize(spec), _transform_failure)
        return job

    def upload(
        self,
        spec: TransferSpec,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> Job:
        """Start an upload job.

        The job resolves to the remote path (/{bucket}/{key}) and publishes
        byte progress while the file streams.
        """
        job = Job(spec.file_id, self.channel, on_success, on_error)
        self._submit(job, lambda job: self._upload(job, spec), _upload_failure)
        return job

    def delete(
        self,
        job_id: str,
        bucket: str,
        keys: list[str],
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> Job:
        """Start a job deleting objects; resolves to (deleted, failed)."""
        job = Job(job_id, self.channel, on_success, on_error)
        self._submit(job, lambda job: self._delete(bucket, keys), _delete_failure)
        return job

    def validate_file_type(
        self,
        file_metadata: Mapping[str, Any],
        job_id: str,
        allowed_types: Iterable[str],
    ) -> bool:
        """Check a file's content type against an allowed set.

        A rejection is published as an error event for job_id.

        Returns:
            True if the content type is allowed
        """
        try:
            check_content_type(file_metadata, allowed_types)
        except ContentTypeError as e:
            logger.info("Rejected file type for job %s", job_id)
            self.channel.send(StatusEvent.error(job_id, e.message))
            return False
        return True

    def _submit(self, job: Job, work: Work, failure: Callable[[Exception], UploaderError]) -> None:
        self._executor.submit(run_job, job, work, failure)

    def _upload(self, job: Job, spec: TransferSpec) -> tuple[Any, dict[str, Any]]:
        check_transfer_spec(spec)
        path = upload_file(self.client, spec, self.config.acl, on_progress=job.progress)
        return path, {'path': path}

    def _delete(self, bucket: str, keys: list[str]) -> tuple[Any, dict[str, Any]]:
        if not bucket:
            raise ValidationError("A bucket name is required")
        deleted, failed = delete_objects(self.client, bucket, keys)
        return (deleted, failed), {'deleted': deleted, 'failed': failed}


def run_job(job: Job, work: Work, failure: Callable[[Exception], UploaderError]) -> None:
    """Run work on the calling thread and finish job with its outcome.

    Args:
        job: Job to finish
        work: Returns (value, result payload) or raises
        failure: Turns an unexpected exception into the error to publish
    """
    try:
        value, payload = work(job)
    except UploaderError as e:
        job.fail(e)
    except Exception as e:
        logger.exception("Job %s failed unexpectedly", job.job_id)
        job.fail(failure(e))
    else:
        job.succeed(value, **payload)


def run_resize(job: Job, spec: ResizeSpec) -> None:
    """Run a resize job on the calling thread; no object store is needed."""
    run_job(job, lambda job: _resize(spec), _transform_failure)


def _resize(spec: ResizeSpec) -> tuple[Any, dict[str, Any]]:
    written = transform_image(spec)
    return written, {'width': spec.target_width, 'height': spec.target_height}


def transform_image(spec: ResizeSpec) -> Path:
    """Run the resize pipeline synchronously.

    The admission check runs first and short-circuits everything else.
    An image whose dimensions cannot be measured is still transformed,
    planned from the target dimensions alone.

    Args:
        spec: Resize request

    Returns:
        Path the transformed image was written to

    Raises:
        ValidationError: If the request is invalid or the file too large
        TransformError: If the image cannot be decoded or written
    """
    check_resize_spec(spec)

    if not spec.max_size.is_unlimited:
        admit(measure_file_size(spec.source), spec.max_size)

    try:
        natural = measure_dimensions(spec.source)
    except TransformError as e:
        logger.debug("Dimensions unknown for job %s: %s", spec.file_id, e.message)
        natural = None

    instructions = plan_transform(natural, spec)
    logger.debug("Job %s plan: %s", spec.file_id, instructions)

    return execute_transform(
        spec.source,
        spec.destination,
        instructions,
        quality=spec.quality,
        strip_metadata=spec.strip_metadata,
    )


def check_resize_spec(spec: ResizeSpec) -> None:
    """Validate the per-job fields of a resize request.

    Raises:
        ValidationError: If a required field is missing or out of range
    """
    if not spec.file_id:
        raise ValidationError("A file id is required")
    if not spec.source:
        raise ValidationError("A source path is required")
    if not spec.destination:
        raise ValidationError("A destination path is required")
    for name, value in (('width', spec.target_width), ('height', spec.target_height)):
        if value is not None and value <= 0:
            raise ValidationError(f"Target {name} must be a positive number")
    if not 1 <= spec.quality <= 100:
        raise ValidationError("Quality must be between 1 and 100")


def check_transfer_spec(spec: TransferSpec) -> None:
    """Validate the per-job fields of a transfer request.

    Raises:
        ValidationError: If a required field is missing
    """
    if not spec.file_id:
        raise ValidationError("A file id is required")
    if not spec.bucket_name:
        raise ValidationError("A bucket name is required")
    if not spec.source:
        raise ValidationError("A source path is required")
    if not spec.remote_key:
        raise ValidationError("A remote key is required")


def _upload_failure(e: Exception) -> UploaderError:
    return TransferError(UPLOAD_ERROR_MESSAGE, detail=repr(e))


def _delete_failure(e: Exception) -> UploaderError:
    return TransferError(DELETE_ERROR_MESSAGE, detail=repr(e))


def _transform_failure(e: Exception) -> UploaderError:
    return TransformError(f"Could not transform image: {e}")
