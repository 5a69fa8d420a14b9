"""
Color value and distance utilities.

Canonical 8-bit RGB representation, hex parsing/formatting and the Euclidean
RGB distance used as the similarity score by every matcher in the engine.
"""

import math
import operator
import string
from dataclasses import dataclass
from typing import Optional, Tuple

from colorit.config import config

HEX_DIGITS = frozenset(string.hexdigits)

# Black vs white: sqrt(3 * 255^2)
MAX_DISTANCE = math.sqrt(3 * 255 ** 2)


class HexParseError(ValueError):
    """Raised when a string is not a valid 3- or 6-digit hex color."""

    def __init__(self, text: str, reason: str):
        self.text = text
        self.reason = reason
        super().__init__(f"Invalid hex color {text!r}: {reason}")


@dataclass(frozen=True)
class Color:
    """Immutable 8-bit RGB color."""

    r: int
    g: int
    b: int

    def __post_init__(self):
        for channel in ("r", "g", "b"):
            value = getattr(self, channel)
            if isinstance(value, bool):
                raise ValueError(f"Channel {channel} must be an int, got {value!r}")
            try:
                # accepts numpy integers from pixel pipelines
                value = operator.index(value)
            except TypeError:
                raise ValueError(f"Channel {channel} must be an int, got {value!r}")
            if not config.validate_channel(value):
                raise ValueError(f"Channel {channel}={value} outside 0-255")
            object.__setattr__(self, channel, value)

    @property
    def hex(self) -> str:
        return to_hex(self)

    @property
    def rgb_text(self) -> str:
        return f"RGB({self.r}, {self.g}, {self.b})"

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)

    def distance(self, other: "Color") -> float:
        return distance(self, other)

    @classmethod
    def from_hex(cls, text: str) -> "Color":
        return parse_hex(text)


def normalize_hex(text: str) -> str:
    """Strip whitespace and one leading '#', uppercase the rest."""
    s = text.strip().upper()
    if s.startswith("#"):
        s = s[1:]
    return s


def parse_hex(text: str) -> Color:
    """
    Parse '#RGB', '#RRGGBB', 'RGB' or 'RRGGBB' (case-insensitive).

    Args:
        text: Hex color string, surrounding whitespace allowed

    Returns:
        Parsed Color

    Raises:
        HexParseError: If the length is not 3 or 6 or a digit is not hex
    """
    if not isinstance(text, str):
        raise HexParseError(repr(text), "not a string")

    digits = normalize_hex(text)
    if len(digits) not in (3, 6):
        raise HexParseError(text, f"expected 3 or 6 hex digits, got {len(digits)}")
    if not all(ch in HEX_DIGITS for ch in digits):
        raise HexParseError(text, "contains non-hex characters")

    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)

    return Color(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


def try_parse_hex(text: str) -> Optional[Color]:
    """Parse a hex color, returning None instead of raising."""
    try:
        return parse_hex(text)
    except HexParseError:
        return None


def to_hex(color: Color) -> str:
    """Color -> '#RRGGBB' (uppercase)."""
    return f"#{color.r:02X}{color.g:02X}{color.b:02X}"


def distance(a: Color, b: Color) -> float:
    """Euclidean distance in RGB space, 0 (identical) to ~441.67."""
    dr = a.r - b.r
    dg = a.g - b.g
    db = a.b - b.b
    return math.sqrt(dr * dr + dg * dg + db * db)


def precision(dist: float, max_distance: float = config.MAX_RGB_DISTANCE) -> float:
    """Convert a distance to a 0-100 match percentage."""
    return max(0.0, 1.0 - dist / max_distance) * 100.0
