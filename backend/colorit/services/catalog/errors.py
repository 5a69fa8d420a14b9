"""
Catalog load errors.

Recorded per catalog by the registry and surfaced as queryable state; they
never propagate across the registry.
"""

from typing import Optional


class CatalogLoadError(Exception):
    """Base class for per-catalog load failures."""

    kind = "load_failed"

    def __init__(self, catalog_id: str, message: str, cause: Optional[BaseException] = None):
        self.catalog_id = catalog_id
        self.cause = cause
        super().__init__(message)


class CatalogNotFound(CatalogLoadError):
    kind = "not_found"

    def __init__(self, catalog_id: str, display_name: Optional[str] = None):
        super().__init__(catalog_id, f"File not found for catalog: {display_name or catalog_id}")


class CatalogBadEncoding(CatalogLoadError):
    kind = "bad_encoding"

    def __init__(self, catalog_id: str, display_name: Optional[str] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(catalog_id, f"Bad encoding for catalog: {display_name or catalog_id}", cause)


class CatalogDecodeFailed(CatalogLoadError):
    kind = "decode_failed"

    def __init__(self, catalog_id: str, cause: BaseException, display_name: Optional[str] = None):
        super().__init__(
            catalog_id,
            f"Decode failed for catalog {display_name or catalog_id}: {cause}",
            cause,
        )
