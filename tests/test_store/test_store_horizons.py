"""
Tests for horizon computation, admission and eviction.

All scenarios use pages of ten records. With the default load horizon
the store keeps one page worth of records loaded on each side of the
read offset.
"""

import pytest

from lazystore.primitives import Horizon, StoreStats
from lazystore.storage.store import Store


def records_for(offset, page_size=10):
    return [f"Record {offset * page_size + i}" for i in range(page_size)]


def settle(store, offset):
    """Fetch and resolve the page at offset."""
    store = store.fetch(store.index.search(offset))
    return store.resolve(records_for(offset, store.page_size), offset)


def offsets(pages):
    return [page.offset for page in pages]


class TestLoadHorizons:
    """Pages admitted around the read offset."""

    def test_read_offset_zero_admits_one_page(self):
        """Test that read offset zero admits a single page."""
        store = Store(page_size=10).set_read_offset(0)

        assert offsets(store.pages) == [0]
        assert offsets(store.unrequested) == [0]
        assert store.read_offset == 0
        assert store.length == 10

    def test_load_horizons(self):
        """Test load horizon bounds around the read offset."""
        store = Store(page_size=10).set_read_offset(35)

        assert store.load_horizons() == Horizon(2, 5)
        assert offsets(store.unrequested) == [2, 3, 4]
        assert store.length == 50

    def test_less_than_one_page_load_horizon(self):
        """Test a load horizon smaller than one page."""
        store = Store(page_size=10, load_horizon=5).set_read_offset(0)

        assert offsets(store.pages) == [0]
        assert store.length == 10

    def test_less_than_two_pages_load_horizon(self):
        """Test a load horizon between one and two pages."""
        store = Store(page_size=10, load_horizon=15).set_read_offset(0)

        assert offsets(store.pages) == [0, 1]
        assert store.length == 20

    def test_zero_load_horizon(self):
        """Test that a zero load horizon admits only the current page."""
        assert Store(page_size=10, load_horizon=0).set_read_offset(0).pages == []

        store = Store(page_size=10, load_horizon=0).set_read_offset(35)
        assert offsets(store.pages) == [3]
        assert store.length == 40

    def test_negative_read_offset_is_clamped(self):
        """Test that a negative read offset is clamped to zero."""
        store = Store(page_size=10).set_read_offset(-5)

        assert store.read_offset == 0
        assert offsets(store.pages) == [0]

    def test_total_pages_caps_load_horizon(self):
        """Test that total_pages caps the load horizon."""
        store = Store(page_size=10, load_horizon=30,
                      stats=StoreStats(total_pages=2)).set_read_offset(0)

        assert store.load_horizons() == Horizon(0, 2)
        assert offsets(store.pages) == [0, 1]
        assert store.length == 20

    def test_set_read_offset_is_idempotent(self):
        """Test that setting the same read offset changes nothing."""
        once = Store(page_size=10, unload_horizon=30).set_read_offset(0)
        once = settle(once, 0).set_read_offset(35)
        twice = once.set_read_offset(35)

        assert offsets(twice.pages) == offsets(once.pages)
        assert [p.status for p in twice.pages] == [p.status for p in once.pages]
        assert twice.length == once.length
        assert twice.unfetchable == once.unfetchable

    @pytest.mark.parametrize("read_offset", [0, 7, 35, 99, 250])
    def test_larger_load_horizon_never_requests_fewer_pages(self, read_offset):
        """Test that a larger load horizon admits a superset of pages."""
        counts = []
        for load_horizon in (0, 5, 10, 15, 25, 40, 100):
            store = Store(page_size=10, load_horizon=load_horizon,
                          read_offset=read_offset)
            store = store.fetch(store.unrequested)
            counts.append(len(store.requested))

        assert counts == sorted(counts)


class TestUnloadHorizons:
    """Eviction of pages that drift away from the read offset."""

    def test_unsettled_pages_outside_load_horizon_are_dropped(self):
        """Test that unsettled pages outside the load horizon are dropped."""
        store = Store(page_size=10).set_read_offset(0)
        store = store.fetch(store.unrequested)

        store = store.set_read_offset(35)

        assert offsets(store.pages) == [2, 3, 4]
        assert store.pending == []
        assert store.unfetchable == []
        assert store.length == 50

    def test_settled_pages_are_kept_inside_unload_horizon(self):
        """Test that resolved pages survive inside the unload horizon."""
        store = settle(Store(page_size=10).set_read_offset(0), 0)

        store = store.set_read_offset(35)

        assert offsets(store.pages) == [0, 2, 3, 4]
        assert offsets(store.resolved) == [0]
        assert offsets(store.unrequested) == [2, 3, 4]
        assert store.length == 50

    def test_rejected_pages_are_kept_inside_unload_horizon(self):
        """Test that rejected pages survive inside the unload horizon."""
        store = Store(page_size=10).set_read_offset(0)
        store = store.fetch(store.unrequested).reject(IOError("boom"), 0)

        store = store.set_read_offset(35)

        assert offsets(store.rejected) == [0]
        assert store.length == 40

    def test_resolved_pages_beyond_unload_horizon_become_unfetchable(self):
        """Test that resolved pages past the unload horizon become unfetchable."""
        store = settle(Store(page_size=10, unload_horizon=20).set_read_offset(0), 0)
        resolved_page = store.resolved[0]

        store = store.set_read_offset(50)

        assert offsets(store.pages) == [4, 5]
        assert store.unfetchable == [resolved_page]
        assert store.unfetchable[0].records == tuple(records_for(0))
        assert store.length == 60

    def test_hysteresis_between_load_and_unload_horizons(self):
        """Test that pages between the two horizons are retained."""
        store = settle(Store(page_size=10, unload_horizon=30).set_read_offset(0), 0)

        store = store.set_read_offset(20)
        assert offsets(store.pages) == [0, 1, 2]

        store = store.set_read_offset(40)

        # Unrequested pages 1 and 2 are dropped, resolved page 0 is evicted
        assert offsets(store.pages) == [3, 4]
        assert offsets(store.unfetchable) == [0]

    def test_pages_above_unload_horizon_are_evicted(self):
        """Test that pages above the unload horizon are evicted."""
        store = Store(page_size=10, unload_horizon=20).set_read_offset(100)
        for offset in (9, 10):
            store = settle(store, offset)

        store = store.set_read_offset(0)

        assert offsets(store.pages) == [0]
        assert offsets(store.unfetchable) == [10, 9]

    def test_unfetch_acknowledges_released_pages(self):
        """Test that unfetch clears acknowledged pages."""
        store = settle(Store(page_size=10, unload_horizon=20).set_read_offset(0), 0)
        store = store.set_read_offset(50)

        acknowledged = store.unfetch(store.unfetchable)

        assert acknowledged.unfetchable == []
        assert offsets(acknowledged.pages) == [4, 5]
        assert len(store.unfetchable) == 1

    def test_unfetch_of_unknown_pages_keeps_the_queue(self):
        """Test that unfetch with unknown pages keeps the queue."""
        store = settle(Store(page_size=10, unload_horizon=20).set_read_offset(0), 0)
        store = store.set_read_offset(50)

        assert store.unfetch([]) is store
        assert len(store.unfetch(store.pages).unfetchable) == 1

    def test_unload_horizons_bound_every_indexed_page(self):
        """Test that every indexed page lies within the unload horizons."""
        store = Store(page_size=10, load_horizon=15, unload_horizon=40)
        for read_offset in (0, 12, 55, 57, 90, 31, 0, 140, 135):
            store = store.set_read_offset(read_offset)
            store = store.fetch(store.unrequested)
            for page in store.pending[::2]:
                store = store.resolve(records_for(page.offset), page.offset)

            unload = store.unload_horizons()
            load = store.load_horizons()
            for page in store.pages:
                assert page.offset in unload
            for offset in load.offsets():
                assert offset in store.index
