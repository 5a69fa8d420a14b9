"""
Catalog data model.

NamedColor entries as decoded from catalog JSON, the descriptors that tell the
loader where each catalog lives, and the per-catalog load state exposed to
callers.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from colorit.services.colors import Color, try_parse_hex


class VendorInfo(BaseModel):
    """Vendor record attached to a catalog entry."""
    model_config = ConfigDict(frozen=True)

    brand: Optional[str] = None
    line: Optional[str] = None
    code: Optional[str] = None
    locator: Optional[str] = None
    domain: Optional[str] = None  # e.g. "paint_architectural", "print"
    source: Optional[str] = None


class NamedColor(BaseModel):
    """One named color plus optional vendor metadata."""
    model_config = ConfigDict(frozen=True)

    name: str
    hex: str
    vendor: Optional[VendorInfo] = None
    rgb: Optional[Tuple[int, ...]] = None

    @property
    def key(self) -> str:
        """Identity used for deduplication and lookups."""
        if self.vendor is not None and self.vendor.code is not None:
            return self.vendor.code
        return f"{self.name}|{self.hex.lower()}"

    def color(self) -> Optional[Color]:
        """Parsed hex, falling back to the raw rgb triple."""
        parsed = try_parse_hex(self.hex)
        if parsed is not None:
            return parsed
        return self.raw_color()

    def raw_color(self) -> Optional[Color]:
        if self.rgb is None or len(self.rgb) != 3:
            return None
        try:
            return Color(*self.rgb)
        except ValueError:
            return None

    @classmethod
    def placeholder(cls, color: Color) -> "NamedColor":
        """Entry standing in for an unmatched color: its own hex as the name."""
        return cls(name=color.hex, hex=color.hex)


@dataclass(frozen=True)
class CatalogDescriptor:
    """Where a catalog lives. Only the loader reads filename/subdirectory."""
    id: str
    display_name: str
    filename: str  # without ".json"
    subdirectory: Optional[str] = None


DEFAULT_CATALOGS: Dict[str, CatalogDescriptor] = {
    "generic": CatalogDescriptor("generic", "General", "NamedColors"),
    "sherwin_williams": CatalogDescriptor(
        "sherwin_williams", "Sherwin-Williams", "catalog_sherwin_williams", "catalogs"
    ),
    "behr": CatalogDescriptor("behr", "Behr", "catalog_behr", "catalogs"),
    "benjamin_moore": CatalogDescriptor(
        "benjamin_moore", "Benjamin Moore", "catalog_benjamin_moore", "catalogs"
    ),
}


class CatalogState(str, Enum):
    NOT_REQUESTED = "not_requested"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


@dataclass(frozen=True)
class CatalogStatus:
    """Point-in-time view of one catalog for UI feedback."""
    id: str
    display_name: str
    state: CatalogState
    entry_count: int = 0
    error: Optional[Exception] = None

    @property
    def error_message(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None
