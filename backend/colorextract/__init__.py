"""
colorextract

Extracts a small, ranked palette of representative colors from raster
images by clustering their pixels in RGB space.
"""

__version__ = "1.0.0"
