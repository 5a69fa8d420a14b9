"""
Unit tests for the nearest-match index.

Tests nearest-color lookup:
- closest entry and distance for live samples
- first-wins tie breaking, identical to a linear scan
- raw rgb fallback, placeholder entries and the match memo
"""

import math
import random

import pytest

from colorit.services.catalog import NamedColor
from colorit.services.colors import Color
from colorit.services.matching import ColorMatch, NearestMatchIndex, linear_nearest
from colorit.utils.metrics import MetricsCollector


@pytest.fixture
def index():
    return NearestMatchIndex(metrics=MetricsCollector())


class TestNearest:
    """Test closest-entry lookup"""

    def test_live_sample_matches_red(self, index, primary_entries):
        """RGB(254, 0, 1) resolves to Red at distance sqrt(2)"""
        match = index.match(primary_entries, Color(254, 0, 1))

        assert match.entry.name == "Red"
        assert math.isclose(match.distance, math.sqrt(2))
        assert index.nearest(primary_entries, Color(254, 0, 1)).name == "Red"

    def test_exact_match_has_full_precision(self, index, primary_entries):
        match = index.match(primary_entries, Color(220, 20, 60))

        assert match.entry.name == "Crimson"
        assert match.distance == 0.0
        assert match.precision == 100.0

    def test_ties_resolve_to_first_pool_member(self, index, make_entry):
        """Equidistant entries: the earlier one wins"""
        low = make_entry("Low", "#000000")
        high = make_entry("High", "#000002")
        target = Color(0, 0, 1)

        assert index.nearest([low, high], target).name == "Low"
        assert index.nearest([high, low], target).name == "High"

    def test_matches_linear_scan(self, index):
        """Vectorized lookup equals the plain scan, ties included"""
        rng = random.Random(7)
        # coarse channel values force plenty of ties
        pool = [
            NamedColor(name=f"C{i}", hex=Color(*(rng.choice([0, 64, 128, 192, 255]) for _ in range(3))).hex)
            for i in range(60)
        ]
        for _ in range(200):
            target = Color(rng.randint(0, 255), rng.randint(0, 255), rng.randint(0, 255))
            assert index.nearest(pool, target) is linear_nearest(pool, target)

    def test_empty_pool(self, index):
        assert index.nearest([], Color(1, 2, 3)) is None
        assert index.match([], Color(1, 2, 3)) is None
        assert linear_nearest([], Color(1, 2, 3)) is None


class TestUnparseableEntries:
    """Test entries whose hex cannot be parsed"""

    def test_raw_rgb_fallback(self, index, make_entry):
        raw = make_entry("Raw", "not-a-hex", rgb=(10, 20, 30))
        pool = [make_entry("Black", "#000000"), raw]

        match = index.match(pool, Color(10, 20, 30))
        assert match.entry is raw
        assert match.distance == 0.0
        assert linear_nearest(pool, Color(10, 20, 30)) is raw

    def test_entries_without_color_are_skipped(self, index, make_entry):
        broken = make_entry("Broken", "zzz")
        assert index.nearest([broken], Color(0, 0, 0)) is None

        blue = make_entry("Blue", "#0000FF")
        assert index.nearest([broken, blue], Color(0, 0, 0)) is blue


class TestPlaceholder:
    """Test the unmatched-color placeholder"""

    def test_placeholder_named_after_target(self, index):
        entry = index.nearest_or_placeholder([], Color(10, 11, 12))

        assert entry.name == "#0A0B0C"
        assert entry.hex == "#0A0B0C"
        assert entry.vendor is None

    def test_real_match_preferred(self, index, primary_entries):
        assert index.nearest_or_placeholder(primary_entries, Color(0, 0, 250)).name == "Blue"


class TestBatchAndMemo:
    """Test palette matching and cache invalidation"""

    def test_match_many_keeps_order(self, index, primary_entries):
        targets = [Color(0, 0, 200), Color(250, 5, 5), Color(210, 30, 70)]
        names = [match.entry.name for match in index.match_many(primary_entries, targets)]
        assert names == ["Blue", "Red", "Crimson"]

    def test_repeat_lookup_hits_memo(self, primary_entries):
        metrics = MetricsCollector()
        index = NearestMatchIndex(metrics=metrics)
        pool = tuple(primary_entries)

        first = index.match(pool, Color(254, 0, 1))
        second = index.match(pool, Color(254, 0, 1))

        assert first == second
        counters = metrics.get_counters()
        assert counters["match_requests_total"] == 2
        assert counters["match_memo_hits_total"] == 1

    def test_new_pool_is_not_served_from_memo(self, index, make_entry):
        target = Color(254, 0, 1)
        assert index.nearest((make_entry("Red", "#FF0000"),), target).name == "Red"
        assert index.nearest((make_entry("Navy", "#000080"),), target).name == "Navy"

    def test_invalidate_rebuilds(self, index, primary_entries):
        pool = tuple(primary_entries)
        index.match(pool, Color(0, 0, 0))
        index.invalidate()

        assert index.nearest(pool, Color(0, 0, 250)).name == "Blue"
        assert index.color_cache.get_stats()["size"] == 3

    def test_rebuilt_arrays_never_reuse_memo_keys(self, index, make_entry, primary_entries):
        """A memo entry from discarded arrays cannot answer for the rebuilt ones"""
        pool = tuple(primary_entries)
        target = Color(254, 0, 1)
        stale = index._arrays_for(pool)
        index.invalidate()
        index._memo.set((stale.generation, target.as_tuple()),
                        ColorMatch(target=target, entry=make_entry("Stale", "#FE0001"), distance=0.0))

        assert index.match(pool, target).entry.name == "Red"
        assert index._arrays_for(pool).generation > stale.generation


class TestDoubleHashEntries:
    """Test that '##RRGGBB' entries stay unparseable through the color cache"""

    def test_double_hash_entry_is_skipped(self, index, make_entry):
        pool = [make_entry("Bad", "##00FF00"), make_entry("Red", "#FF0000")]
        target = Color(0, 255, 0)

        assert index.nearest(pool, target) is linear_nearest(pool, target)
        assert index.nearest(pool, target).name == "Red"
