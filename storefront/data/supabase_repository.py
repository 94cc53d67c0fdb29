"""
Supabase-backed ProductRepository.

Reads and writes the ``products`` table through PostgREST. Transport and
HTTP failures are retried with exponential backoff; once the attempts are
used up the public methods fall back to the repository contract (empty
list, ``None``, ``False``) and log the failure.

The realtime channel itself lives outside this package. ``poll_changes``
stands in for it: it diffs the table against the previous poll and pushes
the differences to subscribers as change events.
"""
from typing import Any, Callable, Dict, List, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from storefront.catalogue.models import ChangeEvent, Product
from storefront.core.config import StorefrontConfig, get_config
from storefront.data.repository import ChangeFeed, ChangeListener, RepositoryError, Subscription
from storefront.utils.logger import get_logger
from storefront.utils.supabase_client import SupabaseClient

logger = get_logger("data.supabase_repository")


class SupabaseProductRepository:
    def __init__(
        self,
        client: Optional[SupabaseClient] = None,
        config: Optional[StorefrontConfig] = None,
    ):
        self.config = config or get_config()
        self.client = client or SupabaseClient(
            url=self.config.supabase_url,
            key=self.config.supabase_key,
            timeout=self.config.http_timeout,
        )
        self.table = self.config.products_table
        self.feed = ChangeFeed()
        self._snapshot: Optional[Dict[str, Dict[str, Any]]] = None

    def _retry(self):
        return retry(
            reraise=True,
            stop=stop_after_attempt(max(self.config.retry_attempts, 1)),
            wait=wait_exponential(
                multiplier=self.config.retry_backoff_min,
                min=self.config.retry_backoff_min,
                max=self.config.retry_backoff_max,
            ),
            retry=retry_if_exception_type(RepositoryError),
        )

    def _call(self, action: str, fn: Callable[..., Any], *args, **kwargs) -> Any:
        def attempt():
            try:
                return fn(*args, **kwargs)
            except httpx.HTTPError as e:
                logger.warning(f"Supabase {action} attempt failed: {e}")
                raise RepositoryError(f"{action} failed: {e}") from e

        return self._retry()(attempt)()

    def _fetch_rows(self) -> List[Dict[str, Any]]:
        return self._call("select", self.client.select, self.table, order="created_at.desc")

    def list(self) -> List[Product]:
        """All product rows, newest first; empty when the store is unreachable."""
        try:
            rows = self._fetch_rows()
        except RepositoryError as e:
            logger.error(f"Failed to load products: {e}")
            return []
        products = [p for p in (Product.from_row(row) for row in rows) if p is not None]
        logger.info(f"Loaded products from Supabase: count={len(products)}")
        return products

    def upsert(self, product: Product) -> Optional[Product]:
        """Insert or update; None when the write could not be confirmed."""
        try:
            saved = self._call("upsert", self.client.upsert, self.table, product.to_row())
        except RepositoryError as e:
            logger.error(f"Failed to upsert product after retries: id={product.id} error={e}")
            return None
        if not saved:
            return product
        return Product.from_row(saved) or product

    def delete(self, product_id: str) -> bool:
        try:
            self._call("delete", self.client.delete, self.table, {"id": product_id})
        except RepositoryError as e:
            logger.error(f"Failed to delete product: id={product_id} error={e}")
            return False
        return True

    def subscribe(self, on_change: ChangeListener) -> Subscription:
        return self.feed.subscribe(on_change)

    def poll_changes(self) -> List[ChangeEvent]:
        """
        Compare the table with the previous poll and emit the differences.

        The first poll only records a baseline. A failed fetch emits nothing
        and keeps the old baseline.
        """
        try:
            rows = self._fetch_rows()
        except RepositoryError as e:
            logger.warning(f"Change poll failed: {e}")
            return []

        current: Dict[str, Dict[str, Any]] = {}
        products: Dict[str, Product] = {}
        for row in rows:
            product = Product.from_row(row)
            if product is None:
                continue
            current[product.id] = row
            products[product.id] = product

        previous = self._snapshot
        self._snapshot = current
        if previous is None:
            return []

        events: List[ChangeEvent] = []
        for product_id, row in current.items():
            if product_id not in previous:
                events.append(ChangeEvent.inserted(products[product_id]))
            elif previous[product_id] != row:
                events.append(ChangeEvent.updated(products[product_id]))
        for product_id in previous:
            if product_id not in current:
                events.append(ChangeEvent.deleted(product_id))

        for event in events:
            self.feed.emit(event)
        if events:
            logger.info(f"Change poll: events={len(events)}")
        return events

    def close(self) -> None:
        self.client.close()
