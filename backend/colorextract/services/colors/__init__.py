"""
colorextract Colors Module

Provides pixel sampling, K-means palette clustering and ranked color
formatting for decoded raster images.
"""

__version__ = "1.0.0"
