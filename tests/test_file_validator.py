"""
Pure unit tests for app/core/file_validator.py.

Content sniffing runs against real in-memory images built with Pillow.
"""

import logging

import pytest

from app.config import settings
from app.core.errors import ValidationError
from app.core.file_validator import sanitize_log_message, sniff_media_type, validate_upload
from tests.conftest import make_tiny_bmp, make_tiny_jpeg, make_tiny_png


# ---------------------------------------------------------------------------
# Type sniffing
# ---------------------------------------------------------------------------


def test_sniff_jpeg():
    detected = sniff_media_type(make_tiny_jpeg())
    assert detected.mime == "image/jpeg"
    assert detected.ext == "jpg"


def test_sniff_png():
    detected = sniff_media_type(make_tiny_png())
    assert detected.mime == "image/png"
    assert detected.ext == "png"


def test_sniff_unknown_bytes_returns_none():
    assert sniff_media_type(b"this is not an image") is None


def test_sniff_empty_bytes_returns_none():
    assert sniff_media_type(b"") is None


# ---------------------------------------------------------------------------
# validate_upload
# ---------------------------------------------------------------------------


def test_valid_jpeg_passes():
    detected = validate_upload(make_tiny_jpeg(), "image/jpeg")
    assert detected.mime == "image/jpeg"


def test_declared_type_is_ignored_for_detection():
    detected = validate_upload(make_tiny_png(), "image/jpeg")
    assert detected.mime == "image/png"


def test_declared_type_mismatch_logs_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="app.core.file_validator"):
        validate_upload(make_tiny_png(), "image/jpeg")
    assert "MIME mismatch" in caplog.text


def test_oversized_upload_rejected():
    data = make_tiny_jpeg() + b"\0" * settings.max_upload_bytes
    with pytest.raises(ValidationError) as exc:
        validate_upload(data)
    assert exc.value.status_code == 400
    assert exc.value.step == "validation"
    assert "File too large" in exc.value.message
    assert "50MB" in exc.value.message


def test_size_is_checked_before_type():
    with pytest.raises(ValidationError) as exc:
        validate_upload(b"x" * 11, max_size=10)
    assert "File too large" in exc.value.message


def test_exactly_max_size_is_allowed():
    data = make_tiny_jpeg()
    assert validate_upload(data, max_size=len(data)).ext == "jpg"


def test_unknown_content_rejected():
    with pytest.raises(ValidationError) as exc:
        validate_upload(b"plain text pretending to be a photo", "image/jpeg")
    assert exc.value.message == "Could not determine file type from content"


def test_disallowed_type_rejected():
    with pytest.raises(ValidationError) as exc:
        validate_upload(make_tiny_bmp(), "image/bmp")
    assert "image/bmp" in exc.value.message
    assert "not allowed" in exc.value.message


# ---------------------------------------------------------------------------
# sanitize_log_message
# ---------------------------------------------------------------------------


def test_sanitize_log_message_strips_temp_path():
    msg = "Processing /tmp/tmpABCDEF/uploaded_file.jpg successfully"
    sanitized = sanitize_log_message(msg)
    assert "/tmp/tmpABCDEF" not in sanitized


def test_sanitize_log_message_keeps_non_path_content():
    msg = "No issues found"
    assert sanitize_log_message(msg) == msg
