"""
Unit tests for the active-catalog service.

Tests the glue between registry, search and matching:
- registry transitions refresh the search backing set
- selection order decides duplicate precedence
- unknown catalog ids are rejected
"""

import pytest

from colorit.services.catalog import CatalogRegistry, CatalogState, JsonCatalogLoader
from colorit.services.catalog.service import CatalogService, UnknownCatalogError
from colorit.services.colors import Color

TIMEOUT = 10


@pytest.fixture
def local_service(catalog_dir, descriptors):
    registry = CatalogRegistry(loader=JsonCatalogLoader(catalog_dir), descriptors=descriptors)
    service = CatalogService(registry=registry, active=["generic"])
    yield service
    service.shutdown()


class TestCatalogService:
    """Test the active-catalog facade"""

    def test_search_sees_loaded_catalog(self, local_service):
        assert local_service.search("cr").result(timeout=TIMEOUT).names == ()

        local_service.preload([])
        assert local_service.registry.wait(timeout=TIMEOUT)

        assert local_service.search("cr").result(timeout=TIMEOUT).names == ("Crimson",)
        assert len(local_service.pool()) == 3

    def test_unload_empties_search_and_matching(self, local_service):
        local_service.load("generic").result(timeout=TIMEOUT)
        assert local_service.nearest(Color(254, 0, 1)).entry.name == "Red"

        status = local_service.unload("generic")

        assert status.state == CatalogState.NOT_REQUESTED
        assert local_service.search("").result(timeout=TIMEOUT).names == ()
        assert local_service.nearest(Color(254, 0, 1)) is None
        assert local_service.nearest_or_placeholder(Color(254, 0, 1)).name == "#FE0001"

    def test_set_active_order_and_loading(self, local_service):
        active = local_service.set_active(["sherwin_williams", "generic", "sherwin_williams"])
        assert active == ["sherwin_williams", "generic"]
        assert local_service.registry.wait(timeout=TIMEOUT)

        names = [entry.name for entry in local_service.pool()]
        assert names[:2] == ["Tricorn Black", "Positive Red"]
        assert local_service.search("sw").result(timeout=TIMEOUT).names == ("Positive Red", "Tricorn Black")

    def test_set_active_rejects_unknown_id(self, local_service):
        with pytest.raises(UnknownCatalogError):
            local_service.set_active(["generic", "nope"])
        assert local_service.active_ids == ["generic"]

    def test_failed_catalog_does_not_block_others(self, local_service):
        local_service.set_active(["behr", "generic"])
        assert local_service.registry.wait(timeout=TIMEOUT)

        statuses = {status.id: status for status in local_service.statuses()}
        assert statuses["behr"].state == CatalogState.FAILED
        assert statuses["generic"].state == CatalogState.LOADED
        assert len(local_service.pool()) == 3

    def test_match_palette(self, local_service):
        local_service.load("generic").result(timeout=TIMEOUT)
        matches = local_service.match_palette([Color(0, 0, 250), Color(221, 21, 61)])
        assert [match.entry.name for match in matches] == ["Blue", "Crimson"]

    def test_unknown_id_operations(self, local_service):
        with pytest.raises(UnknownCatalogError):
            local_service.load("nope")
        with pytest.raises(UnknownCatalogError):
            local_service.unload("nope")
