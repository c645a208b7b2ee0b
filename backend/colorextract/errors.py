"""
colorextract Error Taxonomy
Failures raised by the acquisition layer before the clustering engine runs.
"""
from typing import Optional


class ColorExtractError(Exception):
    """Base exception for color extraction failures."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidInputError(ColorExtractError):
    """Wrong file type, oversized upload or malformed URL."""

    status_code = 400


class AcquisitionError(ColorExtractError):
    """Decode, network, HTTP status or content-type failure."""

    status_code = 422
