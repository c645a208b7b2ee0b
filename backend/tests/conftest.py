"""
Test configuration and fixtures for colorextract tests.
"""
import io

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Import the main app
from main import app


@pytest.fixture
def test_client():
    """Create test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def reset_metrics():
    """Reset metrics before each test."""
    from colorextract.utils.metrics import reset_metrics
    reset_metrics()


def encode_png(rgba: np.ndarray) -> bytes:
    """Encode an (H, W, 4) uint8 array as PNG bytes."""
    buffer = io.BytesIO()
    Image.fromarray(rgba).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def two_blocks_rgba():
    """20×20 image, left half red, right half blue, fully opaque."""
    img = np.zeros((20, 20, 4), dtype=np.uint8)
    img[:, :10] = (255, 0, 0, 255)
    img[:, 10:] = (0, 0, 255, 255)
    return img


@pytest.fixture
def two_blocks_png(two_blocks_rgba):
    return encode_png(two_blocks_rgba)


@pytest.fixture
def transparent_png():
    """Fully transparent 16×16 PNG."""
    return encode_png(np.zeros((16, 16, 4), dtype=np.uint8))
