"""Tests for validation.py module."""

import pytest

from image_uploader.errors import ContentTypeError
from image_uploader.validation import check_content_type, resolve_content_type

ALLOWED = {"image/jpeg", "image/png"}


class TestResolveContentType:
    """Tests for resolve_content_type function."""

    def test_mimetype_wins(self):
        """mimetype takes priority over headers."""
        metadata = {'mimetype': 'image/png', 'headers': {'content-type': 'text/plain'}}
        assert resolve_content_type(metadata) == 'image/png'

    def test_falls_back_to_headers(self):
        """Header content type is used when mimetype is absent."""
        assert resolve_content_type({'headers': {'Content-Type': 'image/jpeg'}}) == 'image/jpeg'

    def test_falls_back_to_content_type(self):
        assert resolve_content_type({'content_type': 'image/gif'}) == 'image/gif'

    def test_strips_parameters_and_case(self):
        assert resolve_content_type({'mimetype': 'Image/JPEG; charset=binary'}) == 'image/jpeg'

    def test_missing(self):
        assert resolve_content_type({'headers': {}}) is None


class TestCheckContentType:
    """Tests for check_content_type function."""

    def test_allowed_type(self):
        assert check_content_type({'mimetype': 'image/jpeg'}, ALLOWED) == 'image/jpeg'

    def test_disallowed_type(self):
        with pytest.raises(ContentTypeError):
            check_content_type({'mimetype': 'application/pdf'}, ALLOWED)

    def test_missing_type(self):
        with pytest.raises(ContentTypeError):
            check_content_type({}, ALLOWED)

    def test_allowed_set_is_case_insensitive(self):
        assert check_content_type({'mimetype': 'image/png'}, {"IMAGE/PNG"}) == 'image/png'
