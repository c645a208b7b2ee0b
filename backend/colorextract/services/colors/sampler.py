"""
Pixel sampling for color extraction.

Downscales a decoded image to a bounded resolution and flattens it into the
contiguous (N, 3) uint8 pixel buffer the clustering engine works on.
"""

import math
from typing import Tuple

import cv2
import numpy as np
from loguru import logger

from .types import PixelArray, PixelSource


def compute_target_size(width: int, height: int, max_size: int) -> Tuple[int, int]:
    """
    Compute sampling dimensions so neither edge exceeds max_size.

    Images already within bounds are never upscaled.

    Returns:
        Tuple of (target_width, target_height)
    """
    if width <= 0 or height <= 0:
        return 0, 0
    scale = min(max_size / width, max_size / height, 1)
    return math.floor(width * scale), math.floor(height * scale)


def resize_rgba(rgba: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Downscale an RGBA array with INTER_AREA on premultiplied alpha.

    Color is averaged weighted by coverage, so partly covered texels at the
    edge of a shape keep the shape's color instead of blending toward the
    RGB hidden under transparent pixels.
    """
    if rgba.shape[1] == width and rgba.shape[0] == height:
        return rgba

    premultiplied = rgba.astype(np.float32)
    premultiplied[..., :3] *= premultiplied[..., 3:] / 255.0
    resized = cv2.resize(premultiplied, (width, height), interpolation=cv2.INTER_AREA)

    alpha = resized[..., 3:]
    rgb = np.divide(
        resized[..., :3] * 255.0, alpha,
        out=np.zeros_like(resized[..., :3]),
        where=alpha > 0
    )
    out = np.empty((height, width, 4), dtype=np.uint8)
    out[..., :3] = np.clip(np.floor(rgb + 0.5), 0, 255)
    out[..., 3:] = np.clip(np.floor(alpha + 0.5), 0, 255)
    return out


def sample_pixels(source: PixelSource, max_size: int) -> PixelArray:
    """
    Sample opaque RGB pixels from a decoded image.

    Args:
        source: Decoded RGBA pixel source
        max_size: Maximum edge length of the sampled image

    Returns:
        Contiguous (N, 3) uint8 array of RGB triples. Texels whose alpha is 0
        are dropped, so a fully transparent image yields an empty array.
    """
    target_w, target_h = compute_target_size(source.width, source.height, max_size)
    if target_w == 0 or target_h == 0:
        logger.debug(f"Nothing to sample from {source.width}×{source.height} image at max_size={max_size}")
        return np.empty((0, 3), dtype=np.uint8)

    rgba = resize_rgba(source.to_array(), target_w, target_h)
    flat = rgba.reshape(-1, 4)
    opaque = flat[flat[:, 3] > 0]
    pixels = np.ascontiguousarray(opaque[:, :3])

    logger.debug(
        f"Sampled {len(pixels)}/{len(flat)} opaque pixels at {target_w}×{target_h} "
        f"(source {source.width}×{source.height})"
    )
    return pixels
