"""
Cart ledger: the ordered list of committed cart lines.

Each line snapshots the product's name, SKU and unit price when it is
added. Later catalogue changes never reach lines already in the cart, so
the subtotal a customer reviewed is the subtotal that gets sent.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from storefront.utils.logger import get_logger
from storefront.variants.keys import normalize_selection, parse_variant_key, variant_key
from storefront.variants.pricing import unit_price

logger = get_logger("cart.ledger")


def _as_quantity(value: Any) -> int:
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class CartLine:
    product_id: str
    name: str = ""
    sku: str = ""
    price: float = 0.0
    selection: Dict[str, str] = field(default_factory=dict)
    key: str = ""
    quantity: int = 0

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    def normalized(self) -> "CartLine":
        """Same line with a canonical key and a selection that matches it."""
        selection = normalize_selection(self.selection)
        if not selection and self.key:
            selection = parse_variant_key(self.key)
        return replace(
            self,
            selection=selection,
            key=variant_key(selection),
            quantity=_as_quantity(self.quantity),
        )

    @classmethod
    def for_product(cls, product: Any, selection: Optional[Mapping[str, Any]] = None,
                    quantity: int = 1) -> "CartLine":
        """Line for ``product`` with its current resolved unit price snapshotted."""
        clean = normalize_selection(selection)
        key = variant_key(clean)
        return cls(
            product_id=product.id,
            name=product.name,
            sku=product.sku,
            price=unit_price(product, key),
            selection=clean,
            key=key,
            quantity=_as_quantity(quantity),
        )


@dataclass(frozen=True)
class AddResult:
    index: int
    quantity: int
    coalesced: bool = False


class CartLedger:
    """Ordered cart lines plus free-text order notes."""

    def __init__(self, lines: Optional[List[CartLine]] = None, notes: str = ""):
        self._lines: List[CartLine] = [line.normalized() for line in (lines or [])]
        self.notes = notes

    @property
    def lines(self) -> Tuple[CartLine, ...]:
        return tuple(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def add(self, line: CartLine) -> AddResult:
        """
        Add a line, merging it into an existing line for the same product
        and combination; quantities add up.
        """
        incoming = line.normalized()
        for index, existing in enumerate(self._lines):
            if existing.product_id == incoming.product_id and existing.key == incoming.key:
                merged = replace(existing, quantity=existing.quantity + incoming.quantity)
                self._lines[index] = merged
                logger.debug(f"Cart coalesced: product_id={incoming.product_id} key={incoming.key} qty={merged.quantity}")
                return AddResult(index=index, quantity=merged.quantity, coalesced=True)
        self._lines.append(incoming)
        logger.debug(f"Cart line added: product_id={incoming.product_id} key={incoming.key} qty={incoming.quantity}")
        return AddResult(index=len(self._lines) - 1, quantity=incoming.quantity)

    def update_quantity(self, index: int, value: Any) -> bool:
        """Set a line's quantity (negative or invalid input becomes 0). Stock is not consulted here."""
        if not 0 <= index < len(self._lines):
            return False
        self._lines[index] = replace(self._lines[index], quantity=_as_quantity(value))
        return True

    def remove(self, index: int) -> bool:
        if not 0 <= index < len(self._lines):
            return False
        del self._lines[index]
        return True

    def clear(self) -> None:
        self._lines = []
        self.notes = ""

    def set_notes(self, notes: str) -> None:
        self.notes = notes or ""

    def active_lines(self) -> List[CartLine]:
        """Lines that would be ordered (quantity > 0)."""
        return [line for line in self._lines if line.quantity > 0]

    def subtotal(self) -> float:
        return sum(line.price * line.quantity for line in self._lines)

    def total_quantity(self) -> int:
        return sum(line.quantity for line in self._lines)

    def committed(self, product_id: str) -> Dict[str, int]:
        """Combination key -> quantity held for one product."""
        totals: Dict[str, int] = {}
        for line in self._lines:
            if line.product_id == product_id:
                totals[line.key] = totals.get(line.key, 0) + line.quantity
        return totals
