"""
Owner-side catalogue editing with optimistic local state.

Every edit is applied to the local record set first, then written to the
repository. A write the repository does not confirm leaves the record in
place but marks it pending ("local-only, sync pending"); ``retry_pending``
tries those again. Deletes are the exception: they only take effect
locally once the repository confirms them, and the deleted id is then
remembered so a late change-feed update cannot restore it.
"""
import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence

from storefront.catalogue.base import base_catalogue
from storefront.catalogue.merge import merged_catalogue
from storefront.catalogue.models import ChangeEvent, ChangeKind, Product
from storefront.catalogue.owner_records import apply_event, find_record, override_for, update_tombstones
from storefront.catalogue.settings import CatalogueConfig, config_from_records, config_record
from storefront.utils.logger import get_logger
from storefront.variants.combinations import combination_keys
from storefront.variants.keys import BASE_KEY
from storefront.variants.pricing import canonicalize_keys

logger = get_logger("catalogue.owner_service")

OWNER_ID_PREFIX = "owner-"
HIDE_ID_PREFIX = "owner-hide-"

_PRICE_EPSILON = 1e-9


@dataclass
class SaveResult:
    success: bool
    record: Optional[Product] = None
    persisted: bool = False
    error: Optional[str] = None


def prune_variant_maps(product: Product) -> Product:
    """
    Drop stock and price entries that no longer match a combination.

    Price overrides equal to the base price are dropped as well, and stock
    ceilings are floored to whole units.
    """
    valid = set(combination_keys(product.variants))
    inventory = {
        key: int(math.floor(value))
        for key, value in canonicalize_keys(product.inventory, product.variants).items()
        if key in valid
    }
    overrides = {
        key: value
        for key, value in canonicalize_keys(product.price_overrides, product.variants).items()
        if key in valid and key != BASE_KEY and abs(value - product.price) >= _PRICE_EPSILON
    }
    return product.model_copy(update={"inventory": inventory, "price_overrides": overrides})


def _keep_timestamp(saved: Product, local: Product) -> Product:
    # Stores whose rows carry no updated_at column echo the record without one.
    if saved.updated_at is None and local.updated_at is not None:
        return saved.model_copy(update={"updated_at": local.updated_at})
    return saved


class OwnerCatalogue:
    """
    The mutable owner layer plus its sync state.

    Args:
        repository: a ProductRepository
        base: base products to merge with; defaults to the compiled-in catalogue
        clock: seconds since the epoch, used for record ids and ``updated_at``
    """

    def __init__(self, repository, base: Optional[Sequence[Product]] = None,
                 clock: Callable[[], float] = time.time):
        self.repository = repository
        self._base = list(base) if base is not None else base_catalogue()
        self._clock = clock
        self._records: List[Product] = []
        self._pending: Dict[str, Product] = {}
        self._deleted: Dict[str, Optional[datetime]] = {}
        self._subscription = None

    # ── State ──────────────────────────────────────────────────────────────

    @property
    def records(self) -> List[Product]:
        return list(self._records)

    @property
    def pending_ids(self) -> List[str]:
        return list(self._pending)

    def products(self, base: Optional[Sequence[Product]] = None, strict: Optional[bool] = None) -> List[Product]:
        """Merged catalogue for the current owner records."""
        return merged_catalogue(self._base if base is None else base, self._records, strict=strict)

    def config(self) -> CatalogueConfig:
        return config_from_records(self._records)

    # ── Sync ───────────────────────────────────────────────────────────────

    def load(self) -> int:
        """Replace local state with the repository's records, keeping pending edits."""
        self._records = list(self.repository.list())
        # The snapshot is authoritative for ids it still holds.
        self._deleted = {
            record_id: deleted_at
            for record_id, deleted_at in self._deleted.items()
            if find_record(self._records, record_id) is None
        }
        for record in self._pending.values():
            self._reduce(ChangeEvent.updated(record))
        logger.info(f"Loaded owner records: count={len(self._records)} pending={len(self._pending)}")
        return len(self._records)

    def subscribe(self):
        if self._subscription is None:
            self._subscription = self.repository.subscribe(self.handle_event)
        return self._subscription

    def unsubscribe(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def handle_event(self, event: ChangeEvent) -> None:
        """
        Feed one pushed change through the reducer.

        A pending record is confirmed only when the pushed record actually
        replaced it; a stale echo leaves it pending for ``retry_pending``.
        """
        self._reduce(event)
        if event.id not in self._pending:
            return
        if event.kind == ChangeKind.DELETED:
            self._pending.pop(event.id)
            logger.info(f"Pending record deleted by change feed: id={event.id}")
        elif find_record(self._records, event.id) is event.record:
            self._pending.pop(event.id)
            logger.info(f"Pending record confirmed by change feed: id={event.id}")

    def retry_pending(self) -> int:
        """Re-send local-only records; returns how many the repository accepted."""
        synced = 0
        for record_id, record in list(self._pending.items()):
            saved = self._upsert(record)
            if saved is None:
                continue
            self._pending.pop(record_id, None)
            self._reduce(ChangeEvent.updated(_keep_timestamp(saved, record)))
            synced += 1
        if self._pending:
            logger.warning(f"Records still pending sync: {sorted(self._pending)}")
        return synced

    # ── Edits ──────────────────────────────────────────────────────────────

    def add_product(self, product: Product) -> SaveResult:
        """Store a brand-new owner product."""
        record_id = product.id
        if not record_id or find_record(self._records, record_id) is not None:
            record_id = self._new_id(OWNER_ID_PREFIX)
        record = product.model_copy(update={"id": record_id, "source_id": None, "hidden": False})
        return self._persist(prune_variant_maps(record))

    def save_edit(self, edited: Product, base_id: Optional[str] = None) -> SaveResult:
        """
        Save an edited product.

        Owner records are updated in place. Editing a base product writes an
        override record that references it, reusing an existing override.
        """
        existing = find_record(self._records, edited.id)
        if existing is not None:
            record = edited.model_copy(update={"source_id": existing.source_id, "hidden": False})
        else:
            source_id = base_id or edited.id
            current = override_for(self._records, source_id)
            record_id = current.id if current is not None else self._new_id(OWNER_ID_PREFIX)
            record = edited.model_copy(update={"id": record_id, "source_id": source_id, "hidden": False})
        return self._persist(prune_variant_maps(record))

    def hide_base(self, base_id: str) -> SaveResult:
        """Suppress a base product; an existing override becomes the hide."""
        current = override_for(self._records, base_id)
        if current is not None:
            record = current.model_copy(update={"hidden": True})
        else:
            record = Product(
                id=self._new_id(HIDE_ID_PREFIX),
                source_id=base_id,
                hidden=True,
                category="All",
            )
        return self._persist(record)

    def save_config(self, config: CatalogueConfig) -> SaveResult:
        return self._persist(config_record(config))

    def delete(self, record_id: str) -> SaveResult:
        try:
            ok = bool(self.repository.delete(record_id))
        except Exception as e:
            logger.error(f"Delete failed: id={record_id} error={e}")
            ok = False
        if not ok:
            return SaveResult(success=False, persisted=False,
                              error="Could not delete product. Check your connection and try again.")
        deleted_at = datetime.fromtimestamp(self._clock(), tz=timezone.utc)
        self._reduce(ChangeEvent.deleted(record_id, occurred_at=deleted_at))
        self._pending.pop(record_id, None)
        logger.info(f"Deleted owner record: id={record_id}")
        return SaveResult(success=True, persisted=True)

    # ── Internals ──────────────────────────────────────────────────────────

    def _new_id(self, prefix: str) -> str:
        millis = int(self._clock() * 1000)
        while (find_record(self._records, f"{prefix}{millis}") is not None
               or f"{prefix}{millis}" in self._deleted):
            millis += 1
        return f"{prefix}{millis}"

    def _reduce(self, event: ChangeEvent) -> None:
        deleted = update_tombstones(self._deleted, self._records, event)
        self._records = apply_event(self._records, event, self._deleted)
        self._deleted = deleted

    def _upsert(self, record: Product) -> Optional[Product]:
        try:
            return self.repository.upsert(record)
        except Exception as e:
            logger.error(f"Upsert failed: id={record.id} error={e}")
            return None

    def _persist(self, record: Product) -> SaveResult:
        record = record.model_copy(update={"updated_at": datetime.fromtimestamp(self._clock(), tz=timezone.utc)})
        # A local save of a deleted id is a deliberate re-create.
        self._deleted.pop(record.id, None)
        self._reduce(ChangeEvent.updated(record))

        saved = self._upsert(record)
        if saved is None:
            self._pending[record.id] = record
            logger.warning(f"Saved locally, sync pending: id={record.id}")
            return SaveResult(success=True, record=record, persisted=False,
                              error="Saved locally. Sync pending.")

        self._pending.pop(record.id, None)
        saved = _keep_timestamp(saved, record)
        self._reduce(ChangeEvent.updated(saved))
        logger.info(f"Saved owner record: id={record.id}")
        return SaveResult(success=True, record=saved, persisted=True)
