"""
Event reducer for the owner record set.

Local edits and the store's change feed both arrive as ``ChangeEvent``s and
may interleave in any order. ``apply_event`` keys everything by record id,
so replaying an event is harmless, and uses ``updated_at`` to refuse an
event that is older than what is already held.

Deleted ids are remembered in a tombstone map (id -> deletion time) kept
beside the record list. An insert or update for a tombstoned id is only
applied when its record is newer than the deletion, so a late update
cannot bring a deleted record back.
"""
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from storefront.catalogue.models import ChangeEvent, ChangeKind, Product
from storefront.utils.logger import get_logger

logger = get_logger("catalogue.owner_records")

Tombstones = Mapping[str, Optional[datetime]]


def _is_stale(incoming: Product, current: Product) -> bool:
    if incoming.updated_at is None or current.updated_at is None:
        return False
    return incoming.updated_at < current.updated_at


def _outlives(record: Product, deleted_at: Optional[datetime]) -> bool:
    # Without a timestamp on the record there is nothing to compare, and
    # the delete stands.
    if record.updated_at is None:
        return False
    if deleted_at is None:
        return True
    return record.updated_at > deleted_at


def apply_event(state: Sequence[Product], event: ChangeEvent,
                tombstones: Optional[Tombstones] = None) -> List[Product]:
    """
    Return the record list after ``event``; ``state`` is left untouched.

    - inserted: replace the record with the same id in place, else prepend
    - updated: replace in place, else insert (the insert may have been missed)
    - deleted: drop the id if present

    Inserts and updates for an id in ``tombstones`` are ignored unless the
    record is newer than the deletion.
    """
    records = list(state)
    index = next((i for i, r in enumerate(records) if r.id == event.id), None)

    if event.kind == ChangeKind.DELETED:
        if index is None:
            return records
        del records[index]
        return records

    record = event.record
    if tombstones and record.id in tombstones and not _outlives(record, tombstones[record.id]):
        logger.info(f"Ignoring {event.kind.value} for deleted record {record.id}")
        return records

    if index is None:
        records.insert(0, record)
        return records

    if _is_stale(record, records[index]):
        logger.info(f"Ignoring stale {event.kind.value} for {record.id}")
        return records
    records[index] = record
    return records


def update_tombstones(tombstones: Optional[Tombstones], state: Sequence[Product],
                      event: ChangeEvent) -> Dict[str, Optional[datetime]]:
    """
    Return the tombstone map after ``event``, given the records held before it.

    A delete records the latest known time for the id: the deleted record's
    ``updated_at``, the event's ``occurred_at`` or an earlier tombstone. A
    record newer than its tombstone clears it.
    """
    result = dict(tombstones or {})
    if event.kind == ChangeKind.DELETED:
        current = find_record(state, event.id)
        times = [
            t for t in (
                current.updated_at if current is not None else None,
                event.occurred_at,
                result.get(event.id),
            )
            if t is not None
        ]
        result[event.id] = max(times) if times else None
    elif event.id in result and _outlives(event.record, result[event.id]):
        del result[event.id]
    return result


def apply_events(state: Sequence[Product], events: Iterable[ChangeEvent],
                 tombstones: Optional[Tombstones] = None) -> List[Product]:
    records = list(state)
    deleted = dict(tombstones or {})
    for event in events:
        next_deleted = update_tombstones(deleted, records, event)
        records = apply_event(records, event, deleted)
        deleted = next_deleted
    return records


def find_record(state: Sequence[Product], record_id: str):
    return next((r for r in state if r.id == record_id), None)


def override_for(state: Sequence[Product], source_id: str):
    """The owner record that overrides or hides ``source_id``, if any."""
    return next((r for r in state if r.source_id == source_id), None)
