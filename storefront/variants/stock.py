"""
Quantity reconciliation against per-combination stock ceilings.

These checks are advisory snapshots, not transactions. Two sessions that
both see "2 remaining" can each commit 2 and oversell; only a server-side
authority can prevent that. What this module offers is best-effort
guidance at edit time plus a hard gate right before an order is sent.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from storefront.variants.keys import normalize_key
from storefront.variants.pricing import UNLIMITED, stock_ceiling


@dataclass(frozen=True)
class ClampResult:
    quantity: int
    clamped: bool = False


@dataclass(frozen=True)
class StockViolation:
    """A cart line that asks for more than is left for its combination."""
    index: int
    product_id: str
    key: str
    name: str
    requested: int
    remaining: int

    @property
    def message(self) -> str:
        return f"Only {self.remaining} available for {self.name} ({self.key})."


def _as_quantity(value: Any) -> int:
    try:
        quantity = int(value or 0)
    except (TypeError, ValueError):
        return 0
    return max(quantity, 0)


def remaining(ceiling: Optional[int], committed_elsewhere: int = 0) -> Optional[int]:
    """Units still purchasable; ``UNLIMITED`` (None) passes straight through."""
    if ceiling is UNLIMITED:
        return UNLIMITED
    return max(int(ceiling) - _as_quantity(committed_elsewhere), 0)


def clamp_request(requested: Any, remaining_quantity: Optional[int]) -> ClampResult:
    """
    Reduce a request to what is left.

    ``clamped`` is True when the request was cut down, so the caller can
    tell the user "reduced to available stock".
    """
    quantity = _as_quantity(requested)
    if remaining_quantity is UNLIMITED:
        return ClampResult(quantity=quantity, clamped=False)
    allowed = min(quantity, max(int(remaining_quantity), 0))
    return ClampResult(quantity=allowed, clamped=allowed < quantity)


def _line_key(line: Any) -> str:
    return normalize_key(getattr(line, "key", None))


def committed_elsewhere(
    lines: Sequence[Any],
    product_id: str,
    key: Optional[str],
    exclude_index: Optional[int] = None,
) -> int:
    """Sum of quantities on other lines holding the same product and combination."""
    target = normalize_key(key)
    total = 0
    for index, line in enumerate(lines):
        if index == exclude_index:
            continue
        if getattr(line, "product_id", None) != product_id or _line_key(line) != target:
            continue
        total += _as_quantity(getattr(line, "quantity", 0))
    return total


def committed_by_key(lines: Iterable[Any], product_id: str) -> Dict[str, int]:
    """Combination key -> quantity already in the cart for one product."""
    totals: Dict[str, int] = {}
    for line in lines:
        if getattr(line, "product_id", None) != product_id:
            continue
        key = _line_key(line)
        totals[key] = totals.get(key, 0) + _as_quantity(getattr(line, "quantity", 0))
    return totals


def remaining_for_line(
    lines: Sequence[Any],
    index: int,
    product: Any,
    committed_orders: Optional[Mapping[str, int]] = None,
) -> Optional[int]:
    """
    What the line at ``index`` may hold, given every other line and any
    quantities already committed by other orders (keyed by combination).
    """
    line = lines[index]
    key = _line_key(line)
    ceiling = stock_ceiling(product, key)
    used = committed_elsewhere(lines, line.product_id, key, exclude_index=index)
    used += _as_quantity((committed_orders or {}).get(key, 0))
    return remaining(ceiling, used)


def find_stock_violations(
    lines: Sequence[Any],
    lookup: Mapping[str, Any],
    committed_orders: Optional[Mapping[str, Mapping[str, int]]] = None,
) -> List[StockViolation]:
    """
    Submit-time gate: every line whose quantity exceeds what remains.

    Lines for products that are no longer in the catalogue have no known
    ceiling and are not reported.
    """
    violations: List[StockViolation] = []
    for index, line in enumerate(lines):
        requested = _as_quantity(getattr(line, "quantity", 0))
        if requested <= 0:
            continue
        product = lookup.get(line.product_id)
        if product is None:
            continue
        other_orders = (committed_orders or {}).get(line.product_id)
        left = remaining_for_line(lines, index, product, other_orders)
        if left is UNLIMITED or requested <= left:
            continue
        violations.append(StockViolation(
            index=index,
            product_id=line.product_id,
            key=_line_key(line),
            name=getattr(line, "name", line.product_id),
            requested=requested,
            remaining=left,
        ))
    return violations
