"""
Per-product selection session behind the customer's "choose options" view.

The customer switches option values on and off per group and types a
quantity for each resulting combination. Combinations are only
re-expanded when the active options change; stock and price are resolved
per combination on demand.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from storefront.cart.ledger import CartLine
from storefront.utils.logger import get_logger
from storefront.variants.combinations import Combination, combinations, option_groups, ordered_group_labels
from storefront.variants.pricing import stock_ceiling, unit_price
from storefront.variants.stock import ClampResult, clamp_request, committed_by_key, remaining

logger = get_logger("variants.picker")


@dataclass(frozen=True)
class AddAllResult:
    added: int
    trimmed: bool

    @property
    def notice(self) -> Optional[str]:
        if self.trimmed:
            return "Some items were adjusted to match available stock."
        return None


class VariantPicker:
    """
    Args:
        product: the product being configured
        lines: cart lines already held, used for remaining-stock figures
    """

    def __init__(self, product: Any, lines: Sequence[Any] = ()):
        self.product = product
        self.groups = option_groups(product.variants)
        self.labels = ordered_group_labels(list(self.groups))
        self.active: Dict[str, List[str]] = {label: [values[0]] for label, values in self.groups.items()}
        self.quantities: Dict[str, int] = {}
        self._committed = committed_by_key(lines, product.id)
        self._combinations: Optional[List[Combination]] = None

    # ── Active options ─────────────────────────────────────────────────────

    def _set_active(self, label: str, values: List[str]) -> None:
        order = self.groups[label]
        self.active[label] = [value for value in order if value in values]
        self._combinations = None

    def toggle(self, label: str, value: str) -> bool:
        """Switch one option on or off; False for unknown groups or values."""
        if label not in self.groups or value not in self.groups[label]:
            return False
        current = self.active.get(label, [])
        if value in current:
            self._set_active(label, [v for v in current if v != value])
        else:
            self._set_active(label, current + [value])
        return True

    def select_all(self, label: str) -> None:
        if label in self.groups:
            self._set_active(label, list(self.groups[label]))

    def clear_group(self, label: str) -> None:
        if label in self.groups:
            self._set_active(label, [])

    def combinations(self) -> List[Combination]:
        if self._combinations is None:
            self._combinations = list(combinations(self.active))
            keys = {combo.key for combo in self._combinations}
            self.quantities = {k: q for k, q in self.quantities.items() if k in keys}
        return self._combinations

    # ── Quantities ─────────────────────────────────────────────────────────

    def set_quantity(self, key: str, value: Any) -> None:
        try:
            quantity = max(int(value or 0), 0)
        except (TypeError, ValueError):
            quantity = 0
        self.quantities[key] = quantity

    def remaining(self, key: str) -> Optional[int]:
        return remaining(stock_ceiling(self.product, key), self._committed.get(key, 0))

    def allowed(self, key: str) -> ClampResult:
        return clamp_request(self.quantities.get(key, 0), self.remaining(key))

    def preview_total(self) -> float:
        """Total for the current requests after clamping to stock."""
        total = 0.0
        for combo in self.combinations():
            quantity = self.allowed(combo.key).quantity
            if quantity > 0:
                total += quantity * unit_price(self.product, combo.key)
        return total

    def can_add(self) -> bool:
        return any(self.allowed(combo.key).quantity > 0 for combo in self.combinations())

    def add_all(self, ledger) -> AddAllResult:
        """
        Add every requested combination to ``ledger``, clamped to stock.

        Requests that had to be cut down (or dropped entirely) set ``trimmed``.
        """
        added = 0
        trimmed = False
        for combo in self.combinations():
            requested = self.quantities.get(combo.key, 0)
            if requested <= 0:
                continue
            result = self.allowed(combo.key)
            if result.clamped:
                trimmed = True
            if result.quantity <= 0:
                continue
            ledger.add(CartLine.for_product(self.product, combo.selection, result.quantity))
            self._committed[combo.key] = self._committed.get(combo.key, 0) + result.quantity
            added += 1
        if trimmed:
            logger.info(f"Requests trimmed to stock: product_id={self.product.id}")
        return AddAllResult(added=added, trimmed=trimmed)
