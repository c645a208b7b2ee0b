"""
Ranking and formatting of clustered colors.

Turns final centers and cluster sizes into ColorResult records ordered by
share of the image, largest first.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import List, Sequence, Tuple

import numpy as np

from .types import CenterArray, ColorResult

_ONE_DECIMAL = Decimal("0.1")


def rgb_to_hex(r: int, g: int, b: int) -> str:
    """Convert RGB channels to a lowercase #rrggbb string."""
    return f"#{r:02x}{g:02x}{b:02x}"


def rgb_to_css(r: int, g: int, b: int) -> str:
    """Convert RGB channels to an rgb(r, g, b) string."""
    return f"rgb({r}, {g}, {b})"


def format_percentage(value: float) -> str:
    """
    Format a percentage with exactly one decimal place.

    The exact binary value of the float is rounded half up, so 6.25 becomes
    "6.3" and 25.35 (stored slightly above 25.35) becomes "25.4".
    """
    return str(Decimal(value).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def rank_clusters(centers: CenterArray, sizes: Sequence[int],
                  pixel_count: int) -> List[Tuple[Tuple[int, int, int], float]]:
    """
    Pair each center with its percentage and sort descending.

    The sort is stable: clusters with equal share keep their index order.
    """
    ranked = []
    for center, size in zip(np.asarray(centers).tolist(), np.asarray(sizes).tolist()):
        percentage = size / pixel_count * 100 if pixel_count else 0.0
        ranked.append((tuple(int(ch) for ch in center), percentage))
    return sorted(ranked, key=lambda item: item[1], reverse=True)


def format_color(color: Tuple[int, int, int], percentage: float) -> ColorResult:
    """Build the display record for a single color."""
    r, g, b = color
    return ColorResult(
        hex=rgb_to_hex(r, g, b),
        rgb=rgb_to_css(r, g, b),
        r=r,
        g=g,
        b=b,
        percentage=format_percentage(percentage)
    )


def format_results(centers: CenterArray, sizes: Sequence[int],
                   pixel_count: int) -> List[ColorResult]:
    """Rank clusters by share and format them as ColorResult records."""
    return [format_color(color, pct) for color, pct in rank_clusters(centers, sizes, pixel_count)]
