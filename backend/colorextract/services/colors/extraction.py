"""
Color extraction engine.

Runs sampling, K-means clustering and ranking over a decoded pixel source.
The engine keeps no state between calls, so independent extractions can run
side by side.
"""

import math
import time
from typing import List, Optional

from loguru import logger

from .kmeans import run_kmeans
from .ranking import format_results
from .sampler import sample_pixels
from .types import ColorResult, ExtractOptions, ExtractResult, PixelArray, PixelSource, RandomSource


def cluster_colors(pixels: PixelArray, color_count: int = 6, max_iterations: int = 20,
                   rng: RandomSource = None) -> List[ColorResult]:
    """
    Cluster sampled pixels and return ranked colors.

    Args:
        pixels: (N, 3) uint8 opaque RGB pixels
        color_count: Requested palette size, clamped to the pixel count
        max_iterations: Upper bound on K-means passes
        rng: Seed or Generator for K-means++ seeding

    Returns:
        ColorResult list sorted by percentage, largest first. Empty when
        there are no pixels.
    """
    if len(pixels) == 0:
        return []

    result = run_kmeans(pixels, color_count, max_iterations, rng)
    return format_results(result.centers, result.sizes, len(pixels))


def extract_colors(source: PixelSource, options: Optional[ExtractOptions] = None,
                   rng: RandomSource = None) -> ExtractResult:
    """
    Extract the dominant colors of a decoded image.

    analysis_time_ms covers clustering and formatting only; decoding and
    sampling are not counted, and it is 0 when no opaque pixels remain.

    Args:
        source: Decoded RGBA image
        options: Palette size, sampling edge and iteration budget
        rng: Seed or Generator for K-means++ seeding

    Returns:
        ExtractResult with ranked colors and analysis duration
    """
    options = options or ExtractOptions()
    pixels = sample_pixels(source, options.max_size)

    if len(pixels) == 0:
        logger.info("No opaque pixels to analyse, returning empty palette")
        return ExtractResult(colors=[], analysis_time_ms=0)

    start_time = time.perf_counter()
    colors = cluster_colors(pixels, options.color_count, options.max_iterations, rng)
    analysis_time_ms = math.floor((time.perf_counter() - start_time) * 1000 + 0.5)

    logger.info(f"Extracted {len(colors)} colors from {len(pixels)} pixels in {analysis_time_ms}ms")
    return ExtractResult(colors=colors, analysis_time_ms=analysis_time_ms)
