"""
Per-combination price and stock resolution.

Both override maps are sparse: a key that is absent means "use the base
price" or "no stock limit". Entries are validated on every write and
invalid ones are dropped rather than defaulted, because a dropped stock
entry (unlimited) and a zero stock entry (sold out) mean opposite things.
"""
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Sequence, TypeVar

from storefront.utils.logger import get_logger
from storefront.variants.keys import BASE_KEY, canonical_key, normalize_key

if TYPE_CHECKING:
    from storefront.catalogue.models import Product

logger = get_logger("variants.pricing")

T = TypeVar("T")

# Stock ceiling sentinel: None means unlimited, 0 means sold out.
UNLIMITED = None


def coerce_number(value: Any) -> Optional[float]:
    """Finite, non-negative number or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(numeric) or numeric < 0:
        return None
    return numeric


def coerce_price(value: Any, default: float = 0.0) -> float:
    numeric = coerce_number(value)
    if numeric is None:
        logger.debug(f"Non-numeric price {value!r}, using {default}")
        return default
    return numeric


def _normalize_map(raw: Any, what: str) -> Dict[str, float]:
    if not isinstance(raw, Mapping):
        return {}
    result: Dict[str, float] = {}
    for key, value in raw.items():
        numeric = coerce_number(value)
        if numeric is None:
            logger.debug(f"Dropping invalid {what} entry {key!r}={value!r}")
            continue
        result[normalize_key(key)] = numeric
    return result


def normalize_inventory(raw: Any) -> Dict[str, int]:
    """VariantKey -> whole-unit stock ceiling; fractional values are floored."""
    return {
        key: int(math.floor(value))
        for key, value in _normalize_map(raw, "inventory").items()
    }


def normalize_price_overrides(raw: Any) -> Dict[str, float]:
    """VariantKey -> unit price."""
    return _normalize_map(raw, "price override")


def canonicalize_keys(entries: Mapping[str, T], groups: Optional[Mapping[str, Sequence[str]]]) -> Dict[str, T]:
    """
    Re-key a stock or price map with ``canonical_key``.

    When a legacy key and its canonical form are both present, the
    canonical entry wins.
    """
    result: Dict[str, T] = {}
    for key, value in entries.items():
        canonical = canonical_key(key, groups)
        if canonical == key:
            result[canonical] = value
        else:
            logger.debug(f"Re-keyed legacy variant key {key!r} -> {canonical!r}")
            result.setdefault(canonical, value)
    return result


def base_price(product: "Product") -> float:
    return coerce_price(getattr(product, "price", None))


def unit_price(product: "Product", key: Optional[str] = None) -> float:
    """
    Effective unit price for one combination.

    The override wins when present; otherwise the product's base price
    (0 when the base itself is not a number).
    """
    overrides = getattr(product, "price_overrides", None) or {}
    normalized = normalize_key(key)
    if normalized in overrides:
        override = coerce_number(overrides[normalized])
        if override is not None:
            return override
    return base_price(product)


@dataclass(frozen=True)
class PriceRange:
    min: float
    max: float
    has_overrides: bool = False

    @property
    def is_single(self) -> bool:
        return self.min == self.max


def price_range(product: "Product") -> PriceRange:
    """Lowest and highest price across the base price and every override."""
    base = base_price(product)
    values = [
        numeric
        for numeric in (coerce_number(v) for v in (getattr(product, "price_overrides", None) or {}).values())
        if numeric is not None
    ]
    if not values:
        return PriceRange(min=base, max=base, has_overrides=False)
    low = min([base] + values)
    high = max([base] + values)
    return PriceRange(min=low, max=high, has_overrides=low != high)


def stock_ceiling(product: "Product", key: Optional[str] = None) -> Optional[int]:
    """
    Stock ceiling for one combination.

    Returns the inventory entry for the key, falling back to the base entry
    only for the base key itself; anything else is ``UNLIMITED`` (None).
    """
    inventory = getattr(product, "inventory", None) or {}
    normalized = normalize_key(key)
    if normalized in inventory:
        return inventory[normalized]
    if normalized == BASE_KEY and BASE_KEY in inventory:
        return inventory[BASE_KEY]
    return UNLIMITED


def format_money(amount: float, symbol: str = "£") -> str:
    return f"{symbol}{amount:,.2f}"
