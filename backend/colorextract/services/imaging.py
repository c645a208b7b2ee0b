"""
colorextract Imaging Utilities
Acquires images from uploads or remote URLs and decodes them into RGBA.
"""
import io
from typing import Optional
from urllib.parse import urlparse

import requests
from loguru import logger
from PIL import Image

from colorextract.config import config
from colorextract.errors import AcquisitionError, InvalidInputError
from colorextract.utils.metrics import get_metrics


def validate_image_upload(content_type: Optional[str], size: Optional[int] = None) -> None:
    """
    Validate an uploaded file before decoding.

    Args:
        content_type: MIME type reported by the client
        size: Payload size in bytes, when known

    Raises:
        InvalidInputError: For non-image types or oversized files
    """
    if not content_type or not content_type.startswith("image/"):
        raise InvalidInputError("please choose a valid image file")

    if size is not None and size > config.max_file_bytes():
        raise InvalidInputError(f"File too large. Maximum size: {config.MAX_FILE_MB}MB")


def decode_image_bytes(data: bytes) -> Image.Image:
    """
    Decode raw image bytes into an RGBA Pillow image.

    Raises:
        AcquisitionError: If the bytes are not a decodable image
    """
    if not data:
        raise AcquisitionError("image data is empty")

    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise AcquisitionError(f"image failed to load: {e}") from e

    if image.mode != "RGBA":
        image = image.convert("RGBA")
    return image


def validate_url(url: str) -> str:
    """
    Check that url is an absolute http(s) URL.

    Returns:
        The URL stripped of surrounding whitespace

    Raises:
        InvalidInputError: For malformed URLs or unsupported schemes
    """
    url = (url or "").strip()
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise InvalidInputError("please provide a valid URL") from e

    if parsed.scheme not in config.SUPPORTED_URL_SCHEMES or not parsed.netloc:
        raise InvalidInputError("please provide a valid URL")
    return url


def load_remote_image(url: str, timeout: Optional[float] = None) -> Image.Image:
    """
    Load an image directly from a URL.

    Raises:
        AcquisitionError: On any network, status or decode failure
    """
    timeout = timeout or config.DOWNLOAD_TIMEOUT_S
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise AcquisitionError(f"image failed to load: {e}") from e

    return decode_image_bytes(response.content)


def download_image(url: str, timeout: Optional[float] = None) -> bytes:
    """
    Download image bytes, insisting on an image content type.

    Raises:
        AcquisitionError: On network failure, non-2xx status or non-image content
    """
    timeout = timeout or config.DOWNLOAD_TIMEOUT_S
    try:
        response = requests.get(url, headers={"Accept": "image/*"}, timeout=timeout)
        if not response.ok:
            raise AcquisitionError(f"HTTP error! status: {response.status_code}")

        content_type = response.headers.get("Content-Type", "")
        if not content_type.startswith("image/"):
            raise AcquisitionError("downloaded file is not an image")

        return response.content
    except (requests.RequestException, AcquisitionError) as e:
        raise AcquisitionError(f"image download failed: {e}", status_code=502) from e


def fetch_remote_image(url: str, timeout: Optional[float] = None) -> Image.Image:
    """
    Fetch and decode a remote image.

    Tries a direct load first. If that fails the image is downloaded once more
    with an explicit image Accept header and decoded locally. The fallback is
    not retried.
    """
    try:
        return load_remote_image(url, timeout)
    except AcquisitionError as direct_error:
        logger.warning(f"Direct load failed, trying download: {direct_error.message}")
        get_metrics().increment_fallback_count()

    data = download_image(url, timeout)
    return decode_image_bytes(data)
