"""Tests for upload.py module.

Tests S3 client initialization, uploads with progress, ACL handling,
error sanitizing, batch deletes and connection checks.
"""

import pytest
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError, EndpointConnectionError

from image_uploader.errors import TransferError
from image_uploader.models import S3Config, TransferSpec
from image_uploader.upload import (
    UPLOAD_ERROR_MESSAGE,
    build_upload_args,
    delete_objects,
    init_s3_client,
    remote_path,
    upload_file,
    verify_connection,
)


@pytest.fixture
def s3_config():
    """Sample object store configuration for testing."""
    return S3Config(
        key="test_key",
        secret="test_secret",
        region="us-east-1",
        endpoint_url="https://account.r2.cloudflarestorage.com",
    )


@pytest.fixture
def mock_client():
    """Mock boto3 S3 client whose upload_file reports progress in two chunks."""
    client = MagicMock()

    def fake_upload(Filename, Bucket, Key, ExtraArgs=None, Callback=None):
        if Callback:
            with open(Filename, 'rb') as f:
                size = len(f.read())
            Callback(size // 2)
            Callback(size - size // 2)

    client.upload_file.side_effect = fake_upload
    return client


@pytest.fixture
def local_file(tmp_path):
    path = tmp_path / "photo.jpg"
    path.write_bytes(b"x" * 1000)
    return path


def make_spec(source, **kwargs):
    return TransferSpec(
        file_id="job-1",
        bucket_name="my-bucket",
        source=source,
        remote_key="images/photo.jpg",
        **kwargs,
    )


class TestInitS3Client:
    """Tests for init_s3_client function."""

    @patch('image_uploader.upload.boto3.session.Session')
    def test_uses_provided_credentials(self, mock_session, s3_config):
        """Should pass credentials, region and endpoint to boto3."""
        init_s3_client(s3_config)

        mock_session.return_value.client.assert_called_once_with(
            service_name='s3',
            endpoint_url="https://account.r2.cloudflarestorage.com",
            aws_access_key_id="test_key",
            aws_secret_access_key="test_secret",
            region_name="us-east-1",
        )


class TestBuildUploadArgs:
    """Tests for build_upload_args function."""

    def test_defaults_to_public_read(self, local_file):
        """Default ACL is public-read."""
        assert build_upload_args(make_spec(local_file)) == {'ACL': 'public-read'}

    def test_acl_override(self, local_file):
        """The spec's ACL wins over the default."""
        args = build_upload_args(make_spec(local_file, acl='private'))
        assert args['ACL'] == 'private'

    def test_extra_params_win(self, local_file):
        """Caller extras are merged over the defaults."""
        spec = make_spec(local_file, extra_params={'ACL': 'authenticated-read', 'ContentType': 'image/jpeg'})
        assert build_upload_args(spec) == {'ACL': 'authenticated-read', 'ContentType': 'image/jpeg'}


class TestUploadFile:
    """Tests for upload_file function."""

    def test_uploads_file_to_bucket(self, mock_client, local_file):
        """Should upload the file to the specified bucket/key."""
        upload_file(mock_client, make_spec(local_file))

        kwargs = mock_client.upload_file.call_args.kwargs
        assert kwargs['Filename'] == str(local_file)
        assert kwargs['Bucket'] == 'my-bucket'
        assert kwargs['Key'] == 'images/photo.jpg'
        assert kwargs['ExtraArgs'] == {'ACL': 'public-read'}

    def test_uses_default_acl_argument(self, mock_client, local_file):
        """The configured default ACL is used without an override."""
        upload_file(mock_client, make_spec(local_file), default_acl='private')
        assert mock_client.upload_file.call_args.kwargs['ExtraArgs'] == {'ACL': 'private'}

    def test_returns_remote_path(self, mock_client, local_file):
        """Should return /{bucket}/{key}."""
        assert upload_file(mock_client, make_spec(local_file)) == "/my-bucket/images/photo.jpg"

    def test_reports_cumulative_progress(self, mock_client, local_file):
        """Progress is cumulative against the file size."""
        progress = MagicMock()
        upload_file(mock_client, make_spec(local_file), on_progress=progress)

        assert [c.args for c in progress.call_args_list] == [(500, 1000), (1000, 1000)]

    def test_no_callback_without_progress(self, mock_client, local_file):
        """Without on_progress, boto3 gets no callback."""
        upload_file(mock_client, make_spec(local_file))
        assert mock_client.upload_file.call_args.kwargs['Callback'] is None

    def test_client_error_is_sanitized(self, mock_client, local_file):
        """Store errors surface a generic message and keep the detail local."""
        mock_client.upload_file.side_effect = ClientError(
            {'Error': {'Code': 'AccessDenied', 'Message': 'key AKIA123 denied'}}, 'PutObject'
        )

        with pytest.raises(TransferError) as exc_info:
            upload_file(mock_client, make_spec(local_file))

        assert exc_info.value.message == UPLOAD_ERROR_MESSAGE
        assert 'AKIA123' not in exc_info.value.message
        assert 'AccessDenied' in exc_info.value.detail

    def test_network_error_is_sanitized(self, mock_client, local_file):
        """Connection failures are TransferErrors too."""
        mock_client.upload_file.side_effect = EndpointConnectionError(endpoint_url="https://x")

        with pytest.raises(TransferError, match=UPLOAD_ERROR_MESSAGE):
            upload_file(mock_client, make_spec(local_file))

    def test_missing_source(self, mock_client, tmp_path):
        """A missing local file fails before contacting the store."""
        with pytest.raises(TransferError):
            upload_file(mock_client, make_spec(tmp_path / "missing.jpg"))
        mock_client.upload_file.assert_not_called()

    @patch('image_uploader.upload.logger')
    def test_missing_source_is_logged(self, mock_logger, mock_client, tmp_path):
        """An unreadable source is logged locally with its cause."""
        with pytest.raises(TransferError) as exc_info:
            upload_file(mock_client, make_spec(tmp_path / "missing.jpg"))

        assert exc_info.value.message == UPLOAD_ERROR_MESSAGE
        assert "missing.jpg" in exc_info.value.detail
        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args.kwargs['exc_info'] is True

    def test_progress_callback_runs_outside_tracker_lock(self, mock_client, local_file):
        """on_progress may feed the tracker again without deadlocking."""
        callbacks = []
        seen = []

        def fake_upload(Filename, Bucket, Key, ExtraArgs=None, Callback=None):
            callbacks.append(Callback)
            Callback(500)

        def on_progress(amount, total):
            seen.append(amount)
            if amount == 500:
                callbacks[0](250)

        mock_client.upload_file.side_effect = fake_upload
        upload_file(mock_client, make_spec(local_file), on_progress=on_progress)

        assert seen == [500, 750]


class TestRemotePath:
    """Tests for remote_path function."""

    def test_format(self):
        assert remote_path("bucket", "a/b.jpg") == "/bucket/a/b.jpg"


class TestDeleteObjects:
    """Tests for delete_objects function."""

    def test_empty_keys(self, mock_client):
        """Nothing to delete means no request."""
        assert delete_objects(mock_client, "bucket", []) == (0, 0)
        mock_client.delete_objects.assert_not_called()

    def test_counts_errors(self, mock_client):
        """Per-key errors are counted as failures."""
        mock_client.delete_objects.return_value = {'Errors': [{'Key': 'b', 'Message': 'denied'}]}

        assert delete_objects(mock_client, "bucket", ["a", "b", "c"]) == (2, 1)

    def test_batches_by_thousand(self, mock_client):
        """Requests carry at most 1000 keys."""
        mock_client.delete_objects.return_value = {}
        keys = [f"k{i}" for i in range(2500)]

        assert delete_objects(mock_client, "bucket", keys) == (2500, 0)
        sizes = [len(c.kwargs['Delete']['Objects']) for c in mock_client.delete_objects.call_args_list]
        assert sizes == [1000, 1000, 500]

    def test_total_failure_raises(self, mock_client):
        """If every batch fails the call raises."""
        mock_client.delete_objects.side_effect = ClientError(
            {'Error': {'Code': '500', 'Message': 'boom'}}, 'DeleteObjects'
        )

        with pytest.raises(TransferError):
            delete_objects(mock_client, "bucket", ["a"])


class TestVerifyConnection:
    """Tests for verify_connection function."""

    def test_success(self, mock_client):
        assert verify_connection(mock_client, "bucket") is True

    @pytest.mark.parametrize("code,text", [("404", "not found"), ("403", "Access denied")])
    def test_maps_error_codes(self, mock_client, code, text):
        """404 and 403 produce readable messages."""
        mock_client.head_bucket.side_effect = ClientError({'Error': {'Code': code}}, 'HeadBucket')

        with pytest.raises(TransferError, match=text):
            verify_connection(mock_client, "bucket")
