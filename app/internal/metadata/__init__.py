"""
Remote image metadata for series.

Provides the TheTVDB client and the image provider that merges and ranks the
artwork of every image category.
"""

from .series_images import SeriesImageProvider
from .tvdb import TvdbClient

__all__ = ["SeriesImageProvider", "TvdbClient"]
