"""
Colorit Catalog Module

Catalog models, JSON loading and the lazy registry. The active-catalog
facade lives in colorit.services.catalog.service.
"""

from .models import (
    DEFAULT_CATALOGS,
    CatalogDescriptor,
    CatalogState,
    CatalogStatus,
    NamedColor,
    VendorInfo,
)
from .errors import CatalogBadEncoding, CatalogDecodeFailed, CatalogLoadError, CatalogNotFound
from .loader import JsonCatalogLoader, dump_entries
from .registry import CatalogRegistry, merge_unique

__all__ = [
    "DEFAULT_CATALOGS",
    "CatalogDescriptor",
    "CatalogState",
    "CatalogStatus",
    "NamedColor",
    "VendorInfo",
    "CatalogLoadError",
    "CatalogNotFound",
    "CatalogBadEncoding",
    "CatalogDecodeFailed",
    "JsonCatalogLoader",
    "dump_entries",
    "CatalogRegistry",
    "merge_unique",
]
