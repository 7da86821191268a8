"""
Unit tests for ProductCache.

The upstream client is a MagicMock; snapshot ages come from a FakeClock.
"""

import threading
import time
from unittest.mock import MagicMock

import pytest

from core.exceptions import UpstreamAuthError, UpstreamUnavailable
from models.product import ProductRecord
from services.product_cache import ProductCache
from tests.conftest import make_products


@pytest.fixture
def upstream():
    client = MagicMock()
    client.fetch_catalog.return_value = make_products(3)
    return client


@pytest.fixture
def cache(upstream, clock):
    return ProductCache(upstream, refresh_interval_seconds=1800, clock=clock)


class TestColdReads:
    """Reads before any refresh has filled the cache."""

    def test_unfiltered_read_fills_cache(self, cache, upstream):
        first = cache.get_products()
        second = cache.get_products()

        assert first == second
        assert len(first) == 3
        upstream.fetch_catalog.assert_called_once_with()
        assert cache.snapshot is not None

    def test_sku_lookup_bypasses_cache(self, cache, upstream):
        upstream.fetch_catalog.return_value = make_products(1, prefix="ZX")

        result = cache.get_products(sku="ZX0")

        assert [p.sku for p in result] == ["ZX0"]
        upstream.fetch_catalog.assert_called_once_with("ZX0")
        assert cache.snapshot is None

    def test_upstream_failure_raises(self, cache, upstream):
        upstream.fetch_catalog.side_effect = UpstreamUnavailable("catalog", status=502)

        with pytest.raises(UpstreamUnavailable):
            cache.get_products()

        assert cache.snapshot is None

    def test_token_failure_reported_as_unavailable(self, cache, upstream):
        upstream.fetch_catalog.side_effect = UpstreamAuthError("token endpoint down")

        with pytest.raises(UpstreamUnavailable):
            cache.get_products(brand="Dell")


class TestFilters:
    """In-memory filtering of a warm cache."""

    def test_brand_filter(self, cache, upstream):
        upstream.fetch_catalog.return_value = (
            make_products(5, brand="Dell", prefix="D") + make_products(3, brand="HP", prefix="H")
        )
        cache.refresh()

        dell = cache.get_products(brand="Dell")

        assert len(dell) == 5
        assert all(p.brand == "Dell" for p in dell)
        assert cache.get_products(brand="dell") == dell

    def test_category_never_matches_uncategorized(self, cache, upstream):
        cache.refresh()

        assert cache.get_products(category="Laptop") == []

    def test_category_case_insensitive(self, cache, upstream):
        upstream.fetch_catalog.return_value = [
            ProductRecord(sku="L1", brand="Dell", category="Laptop"),
            ProductRecord(sku="M1", brand="Dell", category="Monitor"),
            ProductRecord(sku="N1", brand="Dell"),
        ]
        cache.refresh()

        assert [p.sku for p in cache.get_products(category="laptop")] == ["L1"]

    def test_sku_substring_on_warm_cache(self, cache, upstream):
        upstream.fetch_catalog.return_value = [
            ProductRecord(sku="ABC-100"),
            ProductRecord(sku="XYZ-200"),
            ProductRecord(sku="ABC-300"),
        ]
        cache.refresh()
        upstream.fetch_catalog.reset_mock()

        result = cache.get_products(sku="ABC")

        assert [p.sku for p in result] == ["ABC-100", "ABC-300"]
        upstream.fetch_catalog.assert_not_called()

    def test_combined_filters(self, cache, upstream):
        upstream.fetch_catalog.return_value = [
            ProductRecord(sku="A1", brand="Dell", category="Laptop"),
            ProductRecord(sku="A2", brand="HP", category="Laptop"),
            ProductRecord(sku="B1", brand="Dell", category="Laptop"),
        ]
        cache.refresh()

        result = cache.get_products(sku="A", brand="DELL", category="Laptop")

        assert [p.sku for p in result] == ["A1"]


class TestRefresh:
    """Snapshot replacement and failure handling."""

    def test_refresh_replaces_snapshot(self, cache, upstream):
        upstream.fetch_catalog.return_value = make_products(100)
        assert cache.refresh() is True
        assert len(cache.get_products()) == 100

        upstream.fetch_catalog.return_value = make_products(80)
        assert cache.refresh() is True
        assert len(cache.get_products()) == 80

    def test_failed_refresh_keeps_old_snapshot(self, cache, upstream):
        cache.refresh()
        before = cache.snapshot

        upstream.fetch_catalog.side_effect = UpstreamUnavailable("catalog", status=500)
        assert cache.refresh() is False

        assert cache.snapshot is before
        assert len(cache.get_products()) == 3

    def test_unexpected_error_keeps_old_snapshot(self, cache, upstream):
        cache.refresh()
        before = cache.snapshot

        upstream.fetch_catalog.side_effect = RuntimeError("boom")
        assert cache.refresh() is False

        assert cache.snapshot is before

    def test_repeated_failures_then_recovery(self, cache, upstream):
        upstream.fetch_catalog.side_effect = UpstreamUnavailable("catalog")
        for _ in range(6):
            assert cache.refresh() is False

        upstream.fetch_catalog.side_effect = None
        assert cache.refresh() is True
        assert len(cache.snapshot) == 3

    def test_stale_after_interval(self, cache, clock):
        assert cache.is_stale is True

        cache.refresh()
        assert cache.is_stale is False

        clock.advance(1801)
        assert cache.is_stale is True
        # Stale data is still served
        assert len(cache.get_products()) == 3

    def test_invalidate_forces_fetch(self, cache, upstream):
        cache.get_products()
        cache.invalidate()
        cache.get_products()

        assert upstream.fetch_catalog.call_count == 2

    def test_reader_sees_whole_snapshots(self, cache, upstream):
        catalogs = [make_products(100), make_products(80)]
        upstream.fetch_catalog.side_effect = lambda *args: catalogs[upstream.fetch_catalog.call_count % 2]
        cache.refresh()

        sizes = set()
        done = threading.Event()

        def reader():
            while not done.is_set():
                sizes.add(len(cache.get_products()))

        t = threading.Thread(target=reader)
        t.start()
        for _ in range(50):
            cache.refresh()
        done.set()
        t.join(timeout=5)

        assert sizes <= {100, 80}


class TestLifecycle:
    """Background refresh thread."""

    def test_start_refreshes_immediately(self, upstream):
        cache = ProductCache(upstream, refresh_interval_seconds=60)
        cache.start()
        try:
            deadline = time.time() + 2
            while cache.snapshot is None and time.time() < deadline:
                time.sleep(0.01)
            assert cache.is_running is True
            assert cache.snapshot is not None
        finally:
            cache.stop()

        assert cache.is_running is False

    def test_periodic_refresh(self, upstream):
        cache = ProductCache(upstream, refresh_interval_seconds=0.01)
        cache.start()
        try:
            deadline = time.time() + 2
            while upstream.fetch_catalog.call_count < 3 and time.time() < deadline:
                time.sleep(0.01)
        finally:
            cache.stop()

        assert upstream.fetch_catalog.call_count >= 3

    def test_start_twice_is_noop(self, upstream):
        cache = ProductCache(upstream, refresh_interval_seconds=60)
        cache.start()
        thread = cache._thread
        cache.start()
        try:
            assert cache._thread is thread
        finally:
            cache.stop()

    def test_thread_survives_unexpected_error(self, upstream):
        catalog = make_products(2)
        upstream.fetch_catalog.side_effect = [KeyError("serviceresponse")] + [catalog] * 1000
        cache = ProductCache(upstream, refresh_interval_seconds=0.01)
        cache.start()
        try:
            deadline = time.time() + 2
            while cache.snapshot is None and time.time() < deadline:
                time.sleep(0.01)
            assert cache._thread.is_alive()
        finally:
            cache.stop()

        assert len(cache.snapshot) == 2

    def test_stop_without_start(self, cache):
        cache.stop()
        assert cache.is_running is False


class TestUpstreamFieldTypes:
    """Catalog entries with non-string fields stay filterable."""

    @pytest.fixture
    def odd_catalog(self, upstream):
        upstream.fetch_catalog.return_value = [
            ProductRecord.from_upstream({
                "ingrampartnumber": 12345,
                "vendorname": "Dell",
                "category": {"id": 3},
            }),
            ProductRecord.from_upstream({
                "ingrampartnumber": "77001",
                "vendorname": None,
                "category": "Laptop",
            }),
        ]

    def test_numeric_sku_filter(self, cache, odd_catalog):
        cache.refresh()

        assert [p.sku for p in cache.get_products(sku="123")] == ["12345"]

    def test_non_string_category_never_matches(self, cache, odd_catalog):
        cache.refresh()

        assert [p.sku for p in cache.get_products(category="laptop")] == ["77001"]

    def test_missing_brand_filter(self, cache, odd_catalog):
        cache.refresh()

        assert [p.sku for p in cache.get_products(brand="dell")] == ["12345"]
