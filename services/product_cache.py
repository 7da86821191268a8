"""
Product catalog cache with background refresh thread.

This service keeps the distributor catalog in memory so product reads do
not hit the upstream API. A background thread refreshes the whole catalog
every 30 minutes.

Thread Safety:
    - Each refresh builds a new ProductSnapshot (frozen, tuple of records)
    - The snapshot reference is swapped with a single assignment
    - Readers grab the reference once, so a request sees either the old
      catalog or the new one, never a mix

Read path:
    - Snapshot present          -> served from memory (even when stale)
    - Empty, sku given          -> single-SKU upstream lookup, not cached
    - Empty, no sku             -> full catalog read-through, cached
    - brand/category filters    -> applied in memory, case-insensitive

Usage:
    # At app startup
    product_cache = ProductCache(upstream_client, refresh_interval_seconds=1800)
    product_cache.start()

    # In routes
    products = product_cache.get_products(brand="Dell")

    # At app shutdown
    product_cache.stop()
"""

from __future__ import annotations

import threading
import time
from typing import Callable, List, Optional

from core.exceptions import UpstreamError, UpstreamUnavailable
from core.upstream_client import UpstreamClient
from logging_config import get_logger, set_thread_name
from models.product import ProductRecord, ProductSnapshot


# Module logger
logger = get_logger(__name__)

DEFAULT_REFRESH_INTERVAL_SECONDS = 1800.0


class ProductCache:
    """
    Catalog cache with a periodic background refresh.

    The TTL equals the refresh interval. A failed refresh keeps the old
    snapshot and is retried on the next scheduled tick, not immediately.

    Attributes:
        refresh_interval_seconds: Time between refreshes (default 1800)
        is_running: Whether the background thread is active
    """

    def __init__(
        self,
        upstream_client: UpstreamClient,
        refresh_interval_seconds: float = DEFAULT_REFRESH_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self._upstream = upstream_client
        self._refresh_interval = refresh_interval_seconds
        self._clock = clock

        # Thread control
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._is_running = False

        # Current catalog (atomic reference), None until the first fetch
        self._snapshot: Optional[ProductSnapshot] = None

        # Track consecutive failures for logging
        self._consecutive_failures = 0

        logger.info(f"ProductCache initialized (refresh interval: {refresh_interval_seconds}s)")

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def refresh_interval_seconds(self) -> float:
        return self._refresh_interval

    @property
    def snapshot(self) -> Optional[ProductSnapshot]:
        """The catalog currently being served, or None before the first fetch."""
        return self._snapshot

    @property
    def is_stale(self) -> bool:
        """Whether the cached catalog is older than the TTL (or missing)."""
        snapshot = self._snapshot
        if snapshot is None:
            return True
        return snapshot.age_seconds(self._clock()) > self._refresh_interval

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> None:
        """
        Start the background refresh thread.

        The thread fetches the catalog immediately, then every
        refresh_interval_seconds until stop() is called.

        Safe to call multiple times - only starts if not already running.
        """
        if self._is_running:
            logger.warning("ProductCache refresh already running")
            return

        logger.info("Starting product refresh thread...")
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._refresh_loop,
            name="ProductRefresh",
            daemon=True
        )
        self._is_running = True
        self._thread.start()

    def stop(self) -> None:
        """
        Stop the background refresh thread and wait for it to finish.

        Safe to call multiple times.
        """
        if not self._is_running:
            return

        logger.info("Stopping product refresh thread...")
        self._stop_event.set()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)
            if self._thread.is_alive():
                logger.warning("Product refresh thread did not stop cleanly")

        self._is_running = False
        self._thread = None
        logger.info("Product refresh thread stopped")

    def _refresh_loop(self) -> None:
        set_thread_name("ProductRefresh")
        logger.info("Product refresh loop starting")

        self.refresh()

        while not self._stop_event.is_set():
            if self._stop_event.wait(timeout=self._refresh_interval):
                break
            self.refresh()

        logger.info("Product refresh loop exiting")

    # =========================================================================
    # REFRESH
    # =========================================================================

    def refresh(self) -> bool:
        """
        Perform one refresh tick: fetch the unfiltered catalog and swap it in.

        Runs in the calling thread. Failures are logged and leave the
        current snapshot untouched.

        Returns:
            True if refresh succeeded, False otherwise
        """
        logger.debug("Refreshing product catalog...")

        try:
            products = self._upstream.fetch_catalog()
        except Exception as e:
            self._log_refresh_failure(e)
            return False

        self._snapshot = ProductSnapshot.create(products, fetched_at=self._clock())

        if self._consecutive_failures > 0:
            logger.info(
                f"Product refresh recovered after {self._consecutive_failures} failures"
            )
        self._consecutive_failures = 0

        logger.info(f"Product cache updated: {len(products)} products")
        return True

    def invalidate(self) -> None:
        """Drop the cached catalog; the next unfiltered read fetches it again."""
        self._snapshot = None
        logger.info("Product cache invalidated")

    def _log_refresh_failure(self, error: Exception) -> None:
        self._consecutive_failures += 1

        if self._consecutive_failures == 1:
            logger.warning(f"Product refresh failed: {error}")
        elif self._consecutive_failures <= 3:
            logger.error(
                f"Product refresh failed ({self._consecutive_failures} consecutive): {error}"
            )
        elif self._consecutive_failures % 5 == 0:
            # Only log every 5th failure after that to avoid spam
            logger.error(
                f"Product refresh still failing ({self._consecutive_failures} consecutive): {error}"
            )

    # =========================================================================
    # READS
    # =========================================================================

    def get_products(
        self,
        sku: Optional[str] = None,
        brand: Optional[str] = None,
        category: Optional[str] = None,
    ) -> List[ProductRecord]:
        """
        Return catalog entries matching the filters.

        Args:
            sku: Substring of the distributor part number
            brand: Vendor name, case-insensitive exact match
            category: Category, case-insensitive exact match; records
                without a category never match

        Returns:
            Matching products in catalog order

        Raises:
            UpstreamUnavailable: If the cache is empty and the upstream
                lookup fails
        """
        products = self._load(sku)

        if sku:
            products = [p for p in products if sku in p.sku]
        if brand:
            products = [p for p in products if p.matches_brand(brand)]
        if category:
            products = [p for p in products if p.matches_category(category)]

        return products

    def _load(self, sku: Optional[str]) -> List[ProductRecord]:
        snapshot = self._snapshot
        if snapshot is not None:
            return list(snapshot.products)

        try:
            if sku:
                # SKU lookups on a cold cache bypass it
                logger.debug(f"Cache empty, looking up SKU {sku} upstream")
                return self._upstream.fetch_catalog(sku)

            logger.info("Cache empty, fetching full catalog")
            products = self._upstream.fetch_catalog()
        except UpstreamUnavailable:
            raise
        except UpstreamError as e:
            raise UpstreamUnavailable("catalog", str(e)) from e

        self._snapshot = ProductSnapshot.create(products, fetched_at=self._clock())
        return list(products)
