"""
colorextract API Schemas
Pydantic models for color extraction request/response validation.
"""
from dataclasses import asdict
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, field_validator

from colorextract.config import config
from colorextract.services.colors.types import ColorResult, ExtractOptions


class HealthResponse(BaseModel):
    """Health check response."""
    ok: bool = Field(True, description="Service health status")
    version: str = Field(..., description="Service version")
    service: str = Field("colorextract", description="Service name")


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str = Field(..., description="Error message")


class ColorEntry(BaseModel):
    """Single palette color with its share of the image."""
    hex: str = Field(
        ...,
        pattern=r"^#[0-9a-f]{6}$",
        description="Lowercase hex color code in format #rrggbb"
    )
    rgb: str = Field(..., description="CSS color string, e.g. 'rgb(42, 59, 76)'")
    r: int = Field(..., ge=0, le=255)
    g: int = Field(..., ge=0, le=255)
    b: int = Field(..., ge=0, le=255)
    percentage: str = Field(
        ...,
        pattern=r"^\d{1,3}\.\d$",
        description="Share of sampled pixels, one decimal place"
    )

    @classmethod
    def from_result(cls, color: ColorResult) -> "ColorEntry":
        return cls(**asdict(color))


class PaletteSummary(BaseModel):
    """At-a-glance view of a palette."""
    primary_color: Optional[ColorEntry] = Field(None, description="Color with the largest share")
    hex_colors: List[str] = Field(default_factory=list)
    significant_colors: List[ColorEntry] = Field(
        default_factory=list,
        description="Colors covering more than 10% of the image"
    )
    average_rgb: Dict[str, int] = Field(..., description="Unweighted mean of palette channels")


class ColorExtractResponse(BaseModel):
    """Color extraction response."""
    request_id: str = Field(..., description="Request identifier for tracing")
    colors: List[ColorEntry] = Field(..., description="Palette ordered by percentage, largest first")
    analysis_time_ms: int = Field(
        ...,
        ge=0,
        description="Clustering time in milliseconds, excluding image loading"
    )
    summary: PaletteSummary


class BatchExtractResponse(BaseModel):
    """Palettes for several images, in request order."""
    results: List[List[ColorEntry]] = Field(
        ...,
        description="One palette per input; failed inputs yield an empty list"
    )


class ExtractOptionsModel(BaseModel):
    """Optional overrides of the extraction defaults."""
    color_count: Optional[int] = Field(None, ge=1, le=config.MAX_COLOR_COUNT, description="Number of colors")
    max_size: Optional[int] = Field(None, ge=1, le=config.MAX_SAMPLE_EDGE, description="Sampling edge size")
    max_iterations: Optional[int] = Field(
        None, ge=1, le=config.MAX_ITERATIONS_LIMIT, description="K-means iteration budget"
    )

    def to_options(self) -> ExtractOptions:
        return build_options(self.color_count, self.max_size, self.max_iterations)


class ExtractUrlRequest(ExtractOptionsModel):
    """Extract colors from a single remote image."""
    url: str = Field(..., min_length=1, max_length=2048, description="Image URL")


class ExtractUrlsRequest(ExtractOptionsModel):
    """Extract colors from several remote images."""
    urls: List[str] = Field(..., min_length=1, description="Image URLs")

    @field_validator("urls")
    @classmethod
    def validate_urls(cls, v):
        if len(v) > config.MAX_BATCH_URLS:
            raise ValueError(f"maximum {config.MAX_BATCH_URLS} urls allowed")
        return v


def build_options(color_count: Optional[int] = None, max_size: Optional[int] = None,
                  max_iterations: Optional[int] = None) -> ExtractOptions:
    """Fill unset options from the configured defaults."""
    return ExtractOptions(
        color_count=color_count if color_count is not None else config.DEFAULT_COLOR_COUNT,
        max_size=max_size if max_size is not None else config.DEFAULT_MAX_SIZE,
        max_iterations=max_iterations if max_iterations is not None else config.DEFAULT_MAX_ITERATIONS
    )


def color_entries(colors: Sequence[ColorResult]) -> List[ColorEntry]:
    return [ColorEntry.from_result(color) for color in colors]
