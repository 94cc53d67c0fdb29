"""
Option groups and combination expansion.

A product's ``variants`` map option-group label -> allowed values. Labels
starting with ``__`` are reserved for metadata (price overrides, catalogue
configuration) and never become customer-facing groups.
"""
from dataclasses import dataclass, field
from itertools import product as cartesian_product
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence

from storefront.variants.keys import BASE_KEY, variant_key

RESERVED_PREFIX = "__"

# Groups shown first, in this order; the rest follow alphabetically.
GROUP_PRIORITY = ("Model", "Color")


@dataclass(frozen=True)
class Combination:
    """One concrete purchasable selection."""
    key: str
    selection: Dict[str, str] = field(default_factory=dict)

    @property
    def is_base(self) -> bool:
        return self.key == BASE_KEY


def is_reserved_label(label: Any) -> bool:
    return str(label).startswith(RESERVED_PREFIX)


def _clean_values(values: Any) -> List[str]:
    if not isinstance(values, (list, tuple)):
        return []
    seen = []
    for value in values:
        text = str(value).strip() if value is not None else ""
        if text and text not in seen:
            seen.append(text)
    return seen


def option_groups(variants: Optional[Mapping[str, Any]]) -> Dict[str, List[str]]:
    """
    Customer-selectable groups of a variants map.

    Reserved labels, non-list entries and empty lists are excluded; values
    are trimmed and de-duplicated in their original order.
    """
    groups: Dict[str, List[str]] = {}
    if not isinstance(variants, Mapping):
        return groups
    for label, values in variants.items():
        label = str(label).strip()
        if not label or is_reserved_label(label):
            continue
        cleaned = _clean_values(values)
        if cleaned:
            groups[label] = cleaned
    return groups


def ordered_group_labels(labels: Sequence[str]) -> List[str]:
    """Priority groups first (Model, Color), then the rest alphabetically."""
    def sort_key(label: str):
        if label in GROUP_PRIORITY:
            return (0, GROUP_PRIORITY.index(label), "")
        return (1, 0, label.casefold())
    return sorted(labels, key=sort_key)


def combinations(groups: Optional[Mapping[str, Sequence[str]]]) -> Iterator[Combination]:
    """
    Lazily enumerate every combination of the active groups.

    No groups yields exactly the base combination. A group with no active
    values yields nothing: the product is not currently selectable.
    """
    groups = dict(groups or {})
    if not groups:
        yield Combination(key=BASE_KEY, selection={})
        return

    labels = ordered_group_labels(list(groups.keys()))
    value_lists = [list(groups[label] or []) for label in labels]
    if any(not values for values in value_lists):
        return

    for point in cartesian_product(*value_lists):
        selection = dict(zip(labels, point))
        yield Combination(key=variant_key(selection), selection=selection)


def all_combinations(variants: Optional[Mapping[str, Any]]) -> List[Combination]:
    """Materialized list of every theoretically purchasable combination."""
    return list(combinations(option_groups(variants)))


def combination_count(groups: Optional[Mapping[str, Sequence[str]]]) -> int:
    """Number of combinations ``combinations`` would yield, without expanding them."""
    total = 1
    for values in (groups or {}).values():
        total *= len(values or [])
    return total


def combination_keys(variants: Optional[Mapping[str, Any]]) -> List[str]:
    return [combo.key for combo in all_combinations(variants)]
