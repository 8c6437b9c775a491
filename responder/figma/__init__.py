"""
Figma Adapters

REST client for comments/files/images and the screenshot region resolver.
"""

from .client import FigmaClient, FigmaAPIError, FIGMA_API_BASE
from .images import RegionResolver, RegionSnapshot, find_region_id

__all__ = [
    "FigmaClient",
    "FigmaAPIError",
    "FIGMA_API_BASE",
    "RegionResolver",
    "RegionSnapshot",
    "find_region_id",
]
