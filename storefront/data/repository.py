"""
Product repository interface and an in-memory implementation.

``upsert`` returning None means "kept locally, not confirmed remotely";
``delete`` returns whether the store accepted the delete. Implementations
report failures through those return values rather than by raising.
"""
from typing import Callable, Dict, List, Optional, Protocol

from storefront.catalogue.models import ChangeEvent, Product
from storefront.utils.logger import get_logger

logger = get_logger("data.repository")

ChangeListener = Callable[[ChangeEvent], None]


class RepositoryError(RuntimeError):
    """A product store request failed."""


class Subscription:
    """Handle returned by ``subscribe``; call ``unsubscribe`` to stop receiving events."""

    def __init__(self, listeners: List[ChangeListener], listener: ChangeListener):
        self._listeners = listeners
        self.listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if self.active and self.listener in self._listeners:
            self._listeners.remove(self.listener)
        self.active = False


class ProductRepository(Protocol):
    def list(self) -> List[Product]:
        ...

    def upsert(self, product: Product) -> Optional[Product]:
        ...

    def delete(self, product_id: str) -> bool:
        ...

    def subscribe(self, on_change: ChangeListener) -> Subscription:
        ...


class ChangeFeed:
    """Listener registry shared by the repository implementations."""

    def __init__(self):
        self._listeners: List[ChangeListener] = []

    def subscribe(self, on_change: ChangeListener) -> Subscription:
        self._listeners.append(on_change)
        return Subscription(self._listeners, on_change)

    def emit(self, event: ChangeEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Change listener failed: event={event.kind.value} id={event.id} error={e}")

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


class InMemoryProductRepository:
    """
    Dictionary-backed store that pushes change events synchronously.

    ``fail_writes`` / ``fail_deletes`` make it behave like an unreachable
    remote so callers' pending-sync paths can be exercised.
    """

    def __init__(self, records: Optional[List[Product]] = None):
        self._rows: Dict[str, Product] = {}
        for record in records or []:
            self._rows[record.id] = record
        self.feed = ChangeFeed()
        self.fail_writes = False
        self.fail_deletes = False

    def list(self) -> List[Product]:
        # Newest first, like the remote listing.
        return list(reversed(list(self._rows.values())))

    def get(self, product_id: str) -> Optional[Product]:
        return self._rows.get(product_id)

    def upsert(self, product: Product) -> Optional[Product]:
        if self.fail_writes:
            logger.warning(f"Upsert rejected (store offline): id={product.id}")
            return None
        existed = product.id in self._rows
        stored = product.model_copy(deep=True)
        self._rows[product.id] = stored
        self.feed.emit(ChangeEvent.updated(stored) if existed else ChangeEvent.inserted(stored))
        return stored.model_copy(deep=True)

    def delete(self, product_id: str) -> bool:
        if self.fail_deletes:
            logger.warning(f"Delete rejected (store offline): id={product_id}")
            return False
        if self._rows.pop(product_id, None) is not None:
            self.feed.emit(ChangeEvent.deleted(product_id))
        return True

    def subscribe(self, on_change: ChangeListener) -> Subscription:
        return self.feed.subscribe(on_change)
