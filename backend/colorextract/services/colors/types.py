"""Data types shared by the color extraction engine."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Union

import numpy as np
from PIL import Image

# Type aliases
PixelArray = np.ndarray   # (N, 3) uint8, one opaque RGB triple per row
CenterArray = np.ndarray  # (k, 3) int64, channel values in [0, 255]
RandomSource = Union[None, int, np.random.Generator]


@dataclass(frozen=True)
class ExtractOptions:
    """Configuration for a single extraction run."""

    color_count: int = 6
    max_size: int = 100
    max_iterations: int = 20


@dataclass(frozen=True)
class ColorResult:
    """One ranked palette entry."""

    hex: str
    rgb: str
    r: int
    g: int
    b: int
    percentage: str


@dataclass(frozen=True)
class ExtractResult:
    """Ranked colors plus the time spent clustering them."""

    colors: List[ColorResult] = field(default_factory=list)
    analysis_time_ms: int = 0


class ConvergenceState(str, Enum):
    """Lifecycle of the assign/update loop."""

    RUNNING = "running"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"


@dataclass
class ClusteringResult:
    """Final centers and sizes produced by the clustering loop."""

    centers: CenterArray
    sizes: np.ndarray
    iterations: int
    state: ConvergenceState


@dataclass(frozen=True)
class PixelSource:
    """
    Decoded image handed over by the acquisition layer.

    ``data`` holds 4 bytes (R, G, B, A) per texel, row-major, without padding.
    """

    width: int
    height: int
    data: bytes

    def __post_init__(self):
        expected = self.width * self.height * 4
        if len(self.data) != expected:
            raise ValueError(
                f"Pixel buffer size mismatch: expected {expected} bytes "
                f"for {self.width}×{self.height} RGBA, got {len(self.data)}"
            )

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelSource":
        """Build a pixel source from a Pillow image of any mode."""
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        width, height = image.size
        return cls(width=width, height=height, data=image.tobytes())

    @classmethod
    def from_array(cls, rgba: np.ndarray) -> "PixelSource":
        """Build a pixel source from an (H, W, 4) uint8 array."""
        if rgba.ndim != 3 or rgba.shape[2] != 4:
            raise ValueError(f"Expected (H, W, 4) RGBA array, got shape {rgba.shape}")
        height, width = rgba.shape[:2]
        return cls(width=width, height=height, data=np.ascontiguousarray(rgba, dtype=np.uint8).tobytes())

    def to_array(self) -> np.ndarray:
        """View the buffer as an (H, W, 4) uint8 array."""
        return np.frombuffer(self.data, dtype=np.uint8).reshape(self.height, self.width, 4)
