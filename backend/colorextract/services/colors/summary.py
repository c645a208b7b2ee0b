"""
Palette summaries for extracted colors.

Condenses a ranked palette into the figures clients usually want at a
glance: the primary color, all hex codes, the significant colors and the
average RGB value.
"""

import math
from typing import Any, Dict, List, Sequence

from .types import ColorResult

# Colors covering more than this share (in percent) count as significant
SIGNIFICANT_PERCENTAGE = 10.0


def significant_colors(colors: Sequence[ColorResult],
                       threshold: float = SIGNIFICANT_PERCENTAGE) -> List[ColorResult]:
    """Colors whose percentage is strictly above threshold."""
    return [color for color in colors if float(color.percentage) > threshold]


def average_rgb(colors: Sequence[ColorResult]) -> Dict[str, int]:
    """Unweighted mean of the palette channels, rounded half up."""
    if not colors:
        return {"r": 0, "g": 0, "b": 0}
    n = len(colors)
    return {
        channel: math.floor(sum(getattr(color, channel) for color in colors) / n + 0.5)
        for channel in ("r", "g", "b")
    }


def summarize_palette(colors: Sequence[ColorResult]) -> Dict[str, Any]:
    """
    Summarize a ranked palette.

    Args:
        colors: ColorResult list, largest share first

    Returns:
        Dict with primary_color, hex_colors, significant_colors and average_rgb
    """
    return {
        "primary_color": colors[0] if colors else None,
        "hex_colors": [color.hex for color in colors],
        "significant_colors": significant_colors(colors),
        "average_rgb": average_rgb(colors)
    }
