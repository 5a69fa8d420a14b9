"""
Colorit v1 API Routes
Catalog management, incremental search and nearest-color matching.
"""
import asyncio
import time
from concurrent.futures import Future
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger

from colorit.config import config
from colorit.schemas import (
    ActiveCatalogsRequest,
    ActiveCatalogsResponse,
    CatalogListResponse,
    CatalogStatusOut,
    ColorEntryOut,
    MatchRequest,
    MatchResponse,
    MetricsResponse,
    NearestResponse,
    SearchResponse,
)
from colorit.services.catalog.models import CatalogStatus
from colorit.services.catalog.service import CatalogService, UnknownCatalogError
from colorit.services.colors import Color, HexParseError, parse_hex
from colorit.services.matching import ColorMatch
from colorit.services.search.query import SortMode
from colorit.utils.ids import generate_request_id
from colorit.utils.metrics import get_metrics_instance

router = APIRouter(prefix="/v1", tags=["Catalog Engine"])

_service: Optional[CatalogService] = None


def get_service() -> CatalogService:
    """Get or create the process-wide catalog service."""
    global _service
    if _service is None:
        _service = CatalogService()
        _service.preload()
    return _service


def shutdown_service() -> None:
    global _service
    if _service is not None:
        _service.shutdown()
        _service = None


def _status_out(service: CatalogService, status: CatalogStatus) -> CatalogStatusOut:
    return CatalogStatusOut.from_status(status, active=status.id in service.active_ids)


def _parse_color(text: str) -> Color:
    try:
        return parse_hex(text)
    except HexParseError as e:
        raise HTTPException(status_code=422, detail=str(e))


def _nearest_response(service: CatalogService, target: Color,
                      match: Optional[ColorMatch]) -> NearestResponse:
    if match is not None:
        return NearestResponse.from_match(match)
    return NearestResponse(
        target_hex=target.hex,
        target_rgb=list(target.as_tuple()),
        entry=ColorEntryOut.from_entry(service.nearest_or_placeholder(target)),
        placeholder=True
    )


async def _settle(service: CatalogService, catalog_id: str, future: "Future[CatalogStatus]",
                  wait: bool) -> CatalogStatusOut:
    if wait:
        try:
            await asyncio.wait_for(asyncio.wrap_future(future), timeout=config.SEARCH_TIMEOUT_MS / 1000)
        except asyncio.TimeoutError:
            raise HTTPException(status_code=504, detail=f"Catalog {catalog_id} is still loading")
    return _status_out(service, service.registry.status(catalog_id))


# ============================================================================
# CATALOGS
# ============================================================================

@router.get("/catalogs", response_model=CatalogListResponse,
            summary="List catalogs",
            description="Every registered catalog with its load state and the active selection")
def list_catalogs(service: CatalogService = Depends(get_service)) -> CatalogListResponse:
    return CatalogListResponse(
        catalogs=[_status_out(service, status) for status in service.statuses()],
        active=service.active_ids
    )


@router.get("/catalogs/active", response_model=ActiveCatalogsResponse)
def get_active_catalogs(service: CatalogService = Depends(get_service)) -> ActiveCatalogsResponse:
    return ActiveCatalogsResponse(active=service.active_ids, entry_count=len(service.pool()))


@router.put("/catalogs/active", response_model=ActiveCatalogsResponse,
            summary="Select active catalogs",
            description="Ordered selection backing search and matching; earlier catalogs win duplicates")
def set_active_catalogs(body: ActiveCatalogsRequest,
                        service: CatalogService = Depends(get_service)) -> ActiveCatalogsResponse:
    try:
        active = service.set_active(body.catalog_ids)
    except UnknownCatalogError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ActiveCatalogsResponse(active=active, entry_count=len(service.pool()))


@router.post("/catalogs/{catalog_id}/load", response_model=CatalogStatusOut)
async def load_catalog(
    catalog_id: str,
    wait: bool = Query(False, description="Block until the load settles"),
    service: CatalogService = Depends(get_service)
) -> CatalogStatusOut:
    try:
        future = service.load(catalog_id)
    except UnknownCatalogError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return await _settle(service, catalog_id, future, wait)


@router.post("/catalogs/{catalog_id}/reload", response_model=CatalogStatusOut)
async def reload_catalog(
    catalog_id: str,
    wait: bool = Query(False, description="Block until the load settles"),
    service: CatalogService = Depends(get_service)
) -> CatalogStatusOut:
    try:
        future = service.reload(catalog_id)
    except UnknownCatalogError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return await _settle(service, catalog_id, future, wait)


@router.delete("/catalogs/{catalog_id}", response_model=CatalogStatusOut)
def unload_catalog(catalog_id: str, service: CatalogService = Depends(get_service)) -> CatalogStatusOut:
    try:
        status = service.unload(catalog_id)
    except UnknownCatalogError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _status_out(service, status)


# ============================================================================
# COLORS
# ============================================================================

@router.get("/colors/search", response_model=SearchResponse,
            summary="Incremental search",
            description="Name, brand, code or hex fragment search over the active catalogs")
async def search_colors(
    q: str = Query("", max_length=64, description="Raw query text"),
    ascending: bool = Query(True, description="Sort direction"),
    sort: SortMode = Query(SortMode.NAME, description="Order by name or by luminance"),
    limit: Optional[int] = Query(None, ge=1, description="Maximum results returned"),
    service: CatalogService = Depends(get_service)
) -> SearchResponse:
    if not config.validate_limit(limit):
        raise HTTPException(
            status_code=422,
            detail=f"limit must be between 1 and {config.SEARCH_MAX_LIMIT}"
        )

    request_id = generate_request_id("srch")
    start_time = time.time()
    try:
        result = await asyncio.wait_for(
            asyncio.wrap_future(service.search(q, ascending, sort=sort)),
            timeout=config.SEARCH_TIMEOUT_MS / 1000
        )
    except asyncio.TimeoutError:
        logger.bind(request_id=request_id).warning(f"Search timed out for {q!r}")
        raise HTTPException(status_code=504, detail="Search timed out")

    entries = result.entries if limit is None else result.entries[:limit]
    logger.bind(request_id=request_id).debug(
        f"Search {q!r}: {len(result.entries)} results in {(time.time() - start_time) * 1000:.1f}ms"
    )
    return SearchResponse(
        request_id=request_id,
        query=q,
        ascending=ascending,
        sort=sort.value,
        total=len(result.entries),
        count=len(entries),
        results=[ColorEntryOut.from_entry(entry) for entry in entries],
        reused_previous=result.reused_previous,
        duration_ms=round(result.duration_ms, 3),
        error=result.error
    )


@router.get("/colors/nearest", response_model=NearestResponse,
            summary="Nearest named color",
            description="Provide either hex or all of r, g and b")
def nearest_color(
    hex: Optional[str] = Query(None, max_length=16, description="Hex code, #RGB or #RRGGBB"),
    r: Optional[int] = Query(None, ge=0, le=255),
    g: Optional[int] = Query(None, ge=0, le=255),
    b: Optional[int] = Query(None, ge=0, le=255),
    service: CatalogService = Depends(get_service)
) -> NearestResponse:
    if hex is not None:
        target = _parse_color(hex)
    elif r is not None and g is not None and b is not None:
        target = Color(r, g, b)
    else:
        raise HTTPException(status_code=422, detail="Provide hex or all of r, g, b")

    return _nearest_response(service, target, service.nearest(target))


@router.post("/colors/match", response_model=MatchResponse,
             summary="Name a palette",
             description="Nearest catalog entry for each color of a palette")
def match_colors(body: MatchRequest, service: CatalogService = Depends(get_service)) -> MatchResponse:
    targets: List[Color] = [_parse_color(text) for text in body.colors]
    matches = service.match_palette(targets)
    return MatchResponse(matches=[
        _nearest_response(service, target, match) for target, match in zip(targets, matches)
    ])


# ============================================================================
# METRICS
# ============================================================================

@router.get("/metrics", response_model=MetricsResponse)
def get_metrics() -> MetricsResponse:
    if not config.METRICS_ENABLED:
        raise HTTPException(status_code=404, detail="Metrics are disabled")
    summary = get_metrics_instance().get_summary()
    return MetricsResponse(**summary)
