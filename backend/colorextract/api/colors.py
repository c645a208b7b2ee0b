"""
colorextract Color Extraction Routes
Implements /colors/extract for uploads and URLs.
"""
from typing import Optional

from fastapi import APIRouter, File, HTTPException, Query, UploadFile

from colorextract.config import config
from colorextract.errors import ColorExtractError
from colorextract.schemas import (
    BatchExtractResponse, ColorExtractResponse, ErrorResponse, ExtractUrlRequest,
    ExtractUrlsRequest, PaletteSummary, build_options, color_entries
)
from colorextract.services.colors.extract_api import (
    extract_batch_from_urls, extract_colors_from_upload, extract_colors_from_url
)
from colorextract.services.colors.summary import summarize_palette
from colorextract.services.colors.types import ExtractResult
from colorextract.utils.ids import generate_request_id
from colorextract.utils.logging import get_logger

router = APIRouter(prefix="/colors", tags=["colors"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    422: {"model": ErrorResponse, "description": "Image could not be acquired"},
    502: {"model": ErrorResponse, "description": "Remote image could not be downloaded"},
}


def _to_http_error(request_id: str, error: ColorExtractError) -> HTTPException:
    log = get_logger(request_id).bind(status_code=error.status_code)
    if error.status_code >= 500:
        log.error(f"Extraction failed: {error.message}")
    else:
        log.warning(f"Extraction rejected: {error.message}")
    return HTTPException(status_code=error.status_code, detail=error.message)


def _to_response(request_id: str, result: ExtractResult) -> ColorExtractResponse:
    get_logger(request_id).bind(ms_analysis=result.analysis_time_ms).info(
        f"Served {len(result.colors)} colors"
    )
    summary = summarize_palette(result.colors)
    primary = summary["primary_color"]
    return ColorExtractResponse(
        request_id=request_id,
        colors=color_entries(result.colors),
        analysis_time_ms=result.analysis_time_ms,
        summary=PaletteSummary(
            primary_color=color_entries([primary])[0] if primary else None,
            hex_colors=summary["hex_colors"],
            significant_colors=color_entries(summary["significant_colors"]),
            average_rgb=summary["average_rgb"]
        )
    )


@router.post("/extract", response_model=ColorExtractResponse, responses=ERROR_RESPONSES)
async def extract_from_upload(
    file: UploadFile = File(..., description="Image file"),
    color_count: Optional[int] = Query(None, ge=1, le=config.MAX_COLOR_COUNT, description="Number of colors"),
    max_size: Optional[int] = Query(None, ge=1, le=config.MAX_SAMPLE_EDGE, description="Sampling edge size"),
    max_iterations: Optional[int] = Query(
        None, ge=1, le=config.MAX_ITERATIONS_LIMIT, description="K-means iteration budget"
    )
):
    """
    Extract the dominant colors of an uploaded image.

    - **file**: any image type Pillow can decode
    - **color_count**: palette size (default 6)
    - **max_size**: longest edge used for sampling (default 100)
    - **max_iterations**: K-means iteration budget (default 20)
    """
    request_id = generate_request_id("file")
    try:
        result = await extract_colors_from_upload(
            file,
            build_options(color_count, max_size, max_iterations),
            request_id=request_id
        )
    except ColorExtractError as e:
        raise _to_http_error(request_id, e) from e
    return _to_response(request_id, result)


@router.post("/extract-url", response_model=ColorExtractResponse, responses=ERROR_RESPONSES)
async def extract_from_url(request: ExtractUrlRequest):
    """
    Extract the dominant colors of a remote image.

    The image is loaded directly; if that fails it is downloaded once more
    with an image Accept header and decoded locally.
    """
    request_id = generate_request_id("url")
    try:
        result = await extract_colors_from_url(request.url, request.to_options(), request_id=request_id)
    except ColorExtractError as e:
        raise _to_http_error(request_id, e) from e
    return _to_response(request_id, result)


@router.post("/extract-urls", response_model=BatchExtractResponse)
async def extract_from_urls(request: ExtractUrlsRequest):
    """Extract palettes for several remote images concurrently."""
    palettes = await extract_batch_from_urls(request.urls, request.to_options())
    return BatchExtractResponse(results=[color_entries(colors) for colors in palettes])
