"""
Colorit Colors Module

Color value type, hex parsing/formatting and RGB distance.
"""

from .color_value import (
    Color,
    HexParseError,
    MAX_DISTANCE,
    distance,
    normalize_hex,
    parse_hex,
    precision,
    to_hex,
    try_parse_hex,
)

__all__ = [
    "Color",
    "HexParseError",
    "MAX_DISTANCE",
    "distance",
    "normalize_hex",
    "parse_hex",
    "precision",
    "to_hex",
    "try_parse_hex",
]
