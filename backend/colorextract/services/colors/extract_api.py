"""
Color Extraction API Orchestrator

Acquires an image from an upload, a local path or a URL, then hands the
decoded pixels to the extraction engine. Acquisition time is kept out of the
reported analysis duration.
"""

import asyncio
import mimetypes
import time
from pathlib import Path
from typing import List, Optional, Sequence, Union

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from colorextract.errors import ColorExtractError
from colorextract.services.colors.extraction import extract_colors
from colorextract.services.colors.types import (
    ColorResult, ExtractOptions, ExtractResult, PixelSource, RandomSource
)
from colorextract.services.imaging import (
    decode_image_bytes, fetch_remote_image, validate_image_upload, validate_url
)
from colorextract.utils.logging import get_logger
from colorextract.utils.metrics import get_metrics


def _rewrap(error: ColorExtractError, context: str) -> ColorExtractError:
    """Same error class, message prefixed with the failing operation."""
    return type(error)(f"{context}: {error.message}", status_code=error.status_code)


def _record(result: ExtractResult, acquisition_ms: float) -> None:
    metrics = get_metrics()
    metrics.increment_success_count()
    metrics.record_timing("acquisition", acquisition_ms)
    metrics.record_timing("analysis", result.analysis_time_ms)


async def extract_colors_from_file(
    data: bytes,
    content_type: Optional[str],
    options: Optional[ExtractOptions] = None,
    rng: RandomSource = None,
    request_id: Optional[str] = None
) -> ExtractResult:
    """
    Extract colors from uploaded image bytes.

    Args:
        data: Raw file contents
        content_type: MIME type reported for the file
        options: Extraction options
        rng: Seed or Generator for K-means++ seeding
        request_id: Identifier bound to log records

    Returns:
        ExtractResult with ranked colors and analysis duration

    Raises:
        InvalidInputError: For non-image or oversized files
        AcquisitionError: If the image cannot be decoded
    """
    log = get_logger(request_id)
    metrics = get_metrics()
    metrics.increment_request_count("file")

    try:
        acquire_start = time.time()
        validate_image_upload(content_type, len(data))
        image = decode_image_bytes(data)
        acquisition_ms = (time.time() - acquire_start) * 1000
        log.info(f"Decoded {image.width}×{image.height} upload in {acquisition_ms:.1f}ms")

        result = extract_colors(PixelSource.from_image(image), options, rng)
    except ColorExtractError as e:
        metrics.increment_failure_count(type(e).__name__)
        log.error(f"File extraction failed: {e.message}")
        raise _rewrap(e, "file processing failed") from e

    _record(result, acquisition_ms)
    return result


async def extract_colors_from_upload(
    upload: UploadFile,
    options: Optional[ExtractOptions] = None,
    rng: RandomSource = None,
    request_id: Optional[str] = None
) -> ExtractResult:
    """
    Extract colors from a multipart upload.

    The declared content type and size are checked before the body is read,
    so non-image or oversized uploads are never buffered.
    """
    try:
        validate_image_upload(upload.content_type, upload.size)
    except ColorExtractError as e:
        metrics = get_metrics()
        metrics.increment_request_count("file")
        metrics.increment_failure_count(type(e).__name__)
        get_logger(request_id).warning(f"Upload rejected before reading: {e.message}")
        raise _rewrap(e, "file processing failed") from e

    data = await upload.read()
    return await extract_colors_from_file(data, upload.content_type, options, rng, request_id)


async def extract_colors_from_path(
    path: Union[str, Path],
    options: Optional[ExtractOptions] = None,
    rng: RandomSource = None
) -> ExtractResult:
    """Extract colors from an image file on disk."""
    path = Path(path)
    content_type, _ = mimetypes.guess_type(path.name)
    data = await run_in_threadpool(path.read_bytes)
    return await extract_colors_from_file(data, content_type, options, rng, request_id=path.name)


async def extract_colors_from_url(
    url: str,
    options: Optional[ExtractOptions] = None,
    rng: RandomSource = None,
    request_id: Optional[str] = None
) -> ExtractResult:
    """
    Extract colors from an image URL.

    Network I/O runs in the thread pool so the event loop stays free.

    Raises:
        InvalidInputError: For malformed URLs
        AcquisitionError: If both the direct load and the download fallback fail
    """
    log = get_logger(request_id)
    metrics = get_metrics()
    metrics.increment_request_count("url")

    try:
        url = validate_url(url)
        acquire_start = time.time()
        image = await run_in_threadpool(fetch_remote_image, url)
        acquisition_ms = (time.time() - acquire_start) * 1000
        log.info(f"Fetched {image.width}×{image.height} image from {url} in {acquisition_ms:.1f}ms")

        result = extract_colors(PixelSource.from_image(image), options, rng)
    except ColorExtractError as e:
        metrics.increment_failure_count(type(e).__name__)
        log.error(f"URL extraction failed: {e.message}")
        raise _rewrap(e, "url processing failed") from e

    _record(result, acquisition_ms)
    return result


async def extract_batch_from_files(
    paths: Sequence[Union[str, Path]],
    options: Optional[ExtractOptions] = None
) -> List[List[ColorResult]]:
    """
    Extract colors from several files one after another.

    A file that fails contributes an empty color list.
    """
    results = []
    for path in paths:
        try:
            result = await extract_colors_from_path(path, options)
            results.append(result.colors)
        except (ColorExtractError, OSError) as e:
            get_logger().warning(f"Skipping {path}: {e}")
            results.append([])
    return results


async def extract_batch_from_urls(
    urls: Sequence[str],
    options: Optional[ExtractOptions] = None
) -> List[List[ColorResult]]:
    """
    Extract colors from several URLs concurrently.

    Results keep the order of urls; a URL that fails contributes an empty list.
    """
    async def _one(index: int, url: str) -> List[ColorResult]:
        try:
            result = await extract_colors_from_url(url, options, request_id=f"batch-{index}")
            return result.colors
        except ColorExtractError as e:
            get_logger().warning(f"Skipping URL {index + 1} ({url}): {e.message}")
            return []

    return list(await asyncio.gather(*(_one(i, url) for i, url in enumerate(urls))))
