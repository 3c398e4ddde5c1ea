"""Tests for probe.py module."""

import pytest
from PIL import Image

from image_uploader.errors import TransformError
from image_uploader.models import ImageDimensions
from image_uploader.probe import identify, measure_dimensions, measure_file_size


@pytest.fixture
def sample_image_path(tmp_path):
    """Create sample PNG image for testing."""
    img_path = tmp_path / "test.png"
    Image.new('RGB', (640, 480), color=(10, 20, 30)).save(img_path, 'PNG')
    return img_path


class TestMeasureDimensions:
    """Tests for measure_dimensions function."""

    def test_returns_natural_size(self, sample_image_path):
        """Should report width and height."""
        assert measure_dimensions(sample_image_path) == ImageDimensions(640, 480)

    def test_non_image_raises(self, tmp_path):
        """Undecodable files raise TransformError."""
        path = tmp_path / "bad.png"
        path.write_text("nope")

        with pytest.raises(TransformError):
            measure_dimensions(path)


class TestMeasureFileSize:
    """Tests for measure_file_size function."""

    def test_reports_bytes(self, tmp_path):
        """Should report the size in bytes."""
        path = tmp_path / "blob.bin"
        path.write_bytes(b"x" * 2048)

        size = measure_file_size(path)

        assert size.unit == 'B'
        assert size.magnitude == 2048
        assert size.megabytes == pytest.approx(2048 / (1024 * 1024))

    def test_missing_file_raises(self, tmp_path):
        """Missing files raise TransformError."""
        with pytest.raises(TransformError):
            measure_file_size(tmp_path / "missing.bin")


class TestIdentify:
    """Tests for identify function."""

    def test_basic_metadata(self, sample_image_path):
        """Should report format, mode, size and file size."""
        info = identify(sample_image_path)

        assert info['format'] == 'PNG'
        assert info['mode'] == 'RGB'
        assert (info['width'], info['height']) == (640, 480)
        assert info['file_size'] == sample_image_path.stat().st_size
        assert info['orientation'] is None
        assert info['has_icc_profile'] is False

    def test_reads_orientation(self, tmp_path):
        """Should report the EXIF orientation flag."""
        path = tmp_path / "rotated.jpg"
        exif = Image.Exif()
        exif[0x0112] = 8
        Image.new('RGB', (20, 10)).save(path, 'JPEG', exif=exif.tobytes())

        assert identify(path)['orientation'] == 8
