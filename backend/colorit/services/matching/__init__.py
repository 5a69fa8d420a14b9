"""
Colorit Matching Module

Nearest named-color lookups for live sampling, photo palettes and favorites.
"""

from .nearest import ColorMatch, NearestMatchIndex, linear_nearest

__all__ = ["ColorMatch", "NearestMatchIndex", "linear_nearest"]
