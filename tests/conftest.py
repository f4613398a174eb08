"""
Shared pytest fixtures for all test modules.

IMPORTANT: environment overrides must be in place before the app is imported:
TESTING skips the periodic cleanup task, credentials are cleared so every
adapter starts in mock mode, and uploads go to a throwaway directory.
"""

import io
import os
import tempfile

os.environ["TESTING"] = "true"
for _var in ("HUGGINGFACE_API_KEY", "PINATA_API_KEY", "PINATA_SECRET_KEY", "PRIVATE_KEY", "CONTRACT_ADDRESS"):
    os.environ.pop(_var, None)
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="deeptrust-test-")

import pytest
from fastapi.testclient import TestClient
from PIL import Image

# App import happens AFTER the environment is prepared above.
from app.main import app  # noqa: E402


# ---------------------------------------------------------------------------
# Core infrastructure fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def client():
    """FastAPI TestClient; the lifespan builds fresh mock-mode services per test."""
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def services(client):
    """The Services bundle the running app resolved its dependencies from."""
    return client.app.state.services


# ---------------------------------------------------------------------------
# Shared test-data helpers
# ---------------------------------------------------------------------------


def make_tiny_jpeg(color=(128, 128, 128)) -> bytes:
    """Create a minimal 10×10 JPEG in memory — fast and valid."""
    buf = io.BytesIO()
    Image.new("RGB", (10, 10), color=color).save(buf, format="JPEG")
    return buf.getvalue()


def make_tiny_png() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color=(10, 200, 30)).save(buf, format="PNG")
    return buf.getvalue()


def make_tiny_bmp() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (4, 4)).save(buf, format="BMP")
    return buf.getvalue()


@pytest.fixture
def tiny_jpg() -> bytes:
    return make_tiny_jpeg()
