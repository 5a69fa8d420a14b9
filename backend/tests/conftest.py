"""
Test configuration and fixtures for the Colorit catalog engine tests.
"""
import pytest
from fastapi.testclient import TestClient

from main import app
from colorit.api.v1 import get_service
from colorit.services.catalog import (
    CatalogDescriptor,
    CatalogRegistry,
    JsonCatalogLoader,
    NamedColor,
    VendorInfo,
    dump_entries,
)
from colorit.services.catalog.service import CatalogService


@pytest.fixture
def make_entry():
    """Factory for catalog entries with optional vendor data."""
    def _make(name, hex, code=None, brand=None, rgb=None):
        vendor = VendorInfo(brand=brand, code=code) if (code or brand) else None
        return NamedColor(name=name, hex=hex, vendor=vendor, rgb=rgb)
    return _make


@pytest.fixture
def primary_entries(make_entry):
    """Red, Crimson and Blue in catalog order."""
    return [
        make_entry("Red", "#FF0000"),
        make_entry("Crimson", "#DC143C"),
        make_entry("Blue", "#0000FF"),
    ]


@pytest.fixture
def catalog_dir(tmp_path, primary_entries, make_entry):
    """Resource directory with a generic catalog and one vendor catalog."""
    (tmp_path / "NamedColors.json").write_text(dump_entries(primary_entries), encoding="utf-8")

    vendor_dir = tmp_path / "catalogs"
    vendor_dir.mkdir()
    vendor_entries = [
        make_entry("Tricorn Black", "#2F2F30", code="SW 6258", brand="Sherwin-Williams"),
        make_entry("Positive Red", "#AD2C34", code="SW 6871", brand="Sherwin-Williams"),
    ]
    (vendor_dir / "catalog_sherwin_williams.json").write_text(dump_entries(vendor_entries), encoding="utf-8")
    return tmp_path


@pytest.fixture
def descriptors():
    return [
        CatalogDescriptor("generic", "General", "NamedColors"),
        CatalogDescriptor("sherwin_williams", "Sherwin-Williams", "catalog_sherwin_williams", "catalogs"),
        CatalogDescriptor("behr", "Behr", "catalog_behr", "catalogs"),
    ]


@pytest.fixture
def registry(catalog_dir, descriptors):
    """Registry over the temporary resource directory."""
    registry = CatalogRegistry(loader=JsonCatalogLoader(catalog_dir), descriptors=descriptors)
    yield registry
    registry.shutdown()


@pytest.fixture
def service():
    """Catalog service over the bundled resources with the generic catalog loaded."""
    service = CatalogService(registry=CatalogRegistry(loader=JsonCatalogLoader()), active=["generic"])
    service.preload([])
    assert service.registry.wait(timeout=10)
    yield service
    service.shutdown()


@pytest.fixture
def test_client(service):
    """Create test client for the FastAPI app."""
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_metrics():
    """Reset metrics before each test."""
    from colorit.utils.metrics import reset_metrics
    reset_metrics()
