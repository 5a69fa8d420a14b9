"""
Colorit API Schemas
Pydantic models for catalog, search and nearest-match request/response validation.
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from colorit.services.catalog.models import CatalogStatus, NamedColor
from colorit.services.matching import ColorMatch


class HealthResponse(BaseModel):
    """Health check response."""
    ok: bool = Field(True, description="Service health status")
    version: str = Field(..., description="Service version")
    service: str = Field("colorit-catalog", description="Service name")


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str = Field(..., description="Error message")


# ============================================================================
# CATALOG SCHEMAS
# ============================================================================

class VendorOut(BaseModel):
    """Vendor metadata of a catalog entry."""
    brand: Optional[str] = None
    line: Optional[str] = None
    code: Optional[str] = None
    locator: Optional[str] = None
    domain: Optional[str] = None
    source: Optional[str] = None


class ColorEntryOut(BaseModel):
    """One named color."""
    name: str = Field(..., description="Display name")
    hex: str = Field(..., description="Hex code as stored in the catalog")
    vendor: Optional[VendorOut] = Field(None, description="Vendor record, if any")

    @classmethod
    def from_entry(cls, entry: NamedColor) -> "ColorEntryOut":
        vendor = VendorOut(**entry.vendor.model_dump()) if entry.vendor is not None else None
        return cls(name=entry.name, hex=entry.hex, vendor=vendor)


class CatalogStatusOut(BaseModel):
    """Load state of one catalog."""
    id: str
    display_name: str
    state: str = Field(..., pattern="^(not_requested|loading|loaded|failed)$")
    entry_count: int = Field(0, ge=0)
    error: Optional[str] = Field(None, description="Load failure message")
    error_kind: Optional[str] = Field(
        None, description="not_found, bad_encoding, decode_failed or load_failed"
    )
    active: bool = Field(False, description="Whether the catalog backs search and matching")

    @classmethod
    def from_status(cls, status: CatalogStatus, active: bool = False) -> "CatalogStatusOut":
        return cls(
            id=status.id,
            display_name=status.display_name,
            state=status.state.value,
            entry_count=status.entry_count,
            error=status.error_message,
            error_kind=getattr(status.error, "kind", None),
            active=active
        )


class CatalogListResponse(BaseModel):
    """All known catalogs plus the active selection."""
    catalogs: List[CatalogStatusOut]
    active: List[str]


class ActiveCatalogsRequest(BaseModel):
    """Ordered catalog selection; earlier ids win on duplicate entries."""
    catalog_ids: List[str] = Field(..., max_length=32)


class ActiveCatalogsResponse(BaseModel):
    active: List[str]
    entry_count: int = Field(..., ge=0, description="Entries in the merged active pool")


# ============================================================================
# SEARCH SCHEMAS
# ============================================================================

class SearchResponse(BaseModel):
    """Incremental search result."""
    request_id: str
    query: str
    ascending: bool
    sort: str = Field("name", description="name or luminance")
    total: int = Field(..., ge=0, description="Matches before the limit was applied")
    count: int = Field(..., ge=0, description="Results returned")
    results: List[ColorEntryOut]
    reused_previous: bool = Field(False, description="Narrowed the previous result set")
    duration_ms: float = Field(0.0, ge=0.0)
    error: Optional[str] = None


# ============================================================================
# MATCH SCHEMAS
# ============================================================================

class NearestResponse(BaseModel):
    """Closest catalog entry for a target color."""
    target_hex: str = Field(..., pattern=r"^#[0-9A-F]{6}$")
    target_rgb: List[int] = Field(..., min_length=3, max_length=3)
    entry: ColorEntryOut
    distance: Optional[float] = Field(None, ge=0.0, description="Euclidean RGB distance")
    precision: Optional[float] = Field(None, ge=0.0, le=100.0, description="Closeness, 0-100")
    placeholder: bool = Field(False, description="No catalog entry matched; entry is the target itself")

    @classmethod
    def from_match(cls, match: ColorMatch) -> "NearestResponse":
        return cls(
            target_hex=match.target.hex,
            target_rgb=list(match.target.as_tuple()),
            entry=ColorEntryOut.from_entry(match.entry),
            distance=round(match.distance, 4),
            precision=round(match.precision, 2)
        )


class MatchRequest(BaseModel):
    """Batch of colors to name, e.g. a photo-derived palette."""
    colors: List[str] = Field(..., min_length=1, max_length=64, description="Hex codes")


class MatchResponse(BaseModel):
    matches: List[NearestResponse]


class MetricsResponse(BaseModel):
    """In-process counters and timing statistics."""
    counters: Dict[str, int]
    timing_stats: Dict[str, Dict[str, float]]
    uptime_seconds: float
