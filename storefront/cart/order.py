"""
Order submission: message text, order payload and the outbound notifier.

Submission is the one place stock is enforced strictly. Editing the cart
only clamps with a notice; at submit time any line asking for more than
remains blocks the order outright, because the customer has already seen
and approved a specific total.
"""
import webbrowser
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence
from urllib.parse import quote

from storefront.cart.ledger import CartLedger, CartLine
from storefront.core.config import get_config
from storefront.utils.logger import get_logger
from storefront.variants.pricing import format_money
from storefront.variants.stock import StockViolation, find_stock_violations

logger = get_logger("cart.order")

EMPTY_CART_MESSAGE = "Add at least one product before sending an order."
# Left unescaped in the deep link.
_URI_SAFE = "-_.!~*'()"

OVER_STOCK_MESSAGE = (
    "One or more items exceed available stock. "
    "Please adjust the quantities before sending the order."
)


class Notifier(Protocol):
    def send(self, text: str) -> None:
        ...


def format_order_text(
    lines: Sequence[CartLine],
    subtotal: float,
    notes: str = "",
    symbol: Optional[str] = None,
) -> str:
    """
    Order message for the shop: one block per line with quantity > 0,
    then the subtotal and any notes.
    """
    if symbol is None:
        symbol = get_config().currency_symbol
    parts = ["Order Request", ""]
    for line in lines:
        if line.quantity <= 0:
            continue
        parts.append(f"• {line.name} (SKU: {line.sku})")
        if line.selection:
            pairs = ", ".join(f"{label}: {value}" for label, value in line.selection.items())
            parts.append(f"  Variants: {pairs}")
        parts.append(
            f"  Qty: {line.quantity} × {format_money(line.price, symbol)} = "
            f"{format_money(line.price * line.quantity, symbol)}"
        )
        parts.append("")
    parts.append(f"Subtotal: {format_money(subtotal, symbol)}")
    parts.append("")
    if (notes or "").strip():
        parts.append(f"Notes: {notes.strip()}")
        parts.append("")
    parts.append("Please confirm availability and pricing. Thank you!")
    return "\n".join(parts)


def _cents(amount: float) -> int:
    return int(round(amount * 100))


def build_order_payload(ledger: CartLedger, currency: Optional[str] = None) -> Dict[str, Any]:
    """Order record in minor units, one item per cart line."""
    return {
        "currency": currency or get_config().currency,
        "subtotal_cents": _cents(ledger.subtotal()),
        "notes": ledger.notes or "",
        "items": [
            {
                "product_id": line.product_id,
                "sku": line.sku,
                "name": line.name,
                "quantity": line.quantity,
                "unit_price_cents": _cents(line.price),
                "subtotal_cents": _cents(line.price * line.quantity),
                "variants": dict(line.selection),
                "inventory_key": line.key,
            }
            for line in ledger.lines
        ],
    }


@dataclass
class SubmitResult:
    success: bool
    error: Optional[str] = None
    text: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None
    violations: List[StockViolation] = field(default_factory=list)


def submit_order(
    ledger: CartLedger,
    lookup: Mapping[str, Any],
    notifier: Notifier,
    recorder: Optional[Callable[[Dict[str, Any]], Any]] = None,
    committed_orders: Optional[Mapping[str, Mapping[str, int]]] = None,
    currency: Optional[str] = None,
    symbol: Optional[str] = None,
) -> SubmitResult:
    """
    Validate, send and clear.

    Args:
        ledger: the cart to submit
        lookup: product id -> current product, for stock ceilings
        notifier: where the order text goes
        recorder: optional best-effort sink for the order payload
        committed_orders: product id -> key -> quantity held by other orders

    Returns:
        SubmitResult; on any blocking condition the ledger is untouched.
    """
    if not ledger.active_lines():
        return SubmitResult(success=False, error=EMPTY_CART_MESSAGE)

    violations = find_stock_violations(ledger.lines, lookup, committed_orders)
    if violations:
        logger.info(f"Order blocked by stock: lines={[v.index for v in violations]}")
        return SubmitResult(success=False, error=OVER_STOCK_MESSAGE, violations=violations)

    payload = build_order_payload(ledger, currency)
    if recorder is not None:
        try:
            recorder(payload)
        except Exception as e:
            logger.error(f"Failed to record order: {e}")

    text = format_order_text(ledger.lines, ledger.subtotal(), ledger.notes, symbol)
    try:
        notifier.send(text)
    except Exception as e:
        logger.error(f"Failed to send order: {e}")
        return SubmitResult(success=False, error="Could not send the order. Please try again.",
                            text=text, payload=payload)

    ledger.clear()
    logger.info(f"Order sent: items={len(payload['items'])} subtotal_cents={payload['subtotal_cents']}")
    return SubmitResult(success=True, text=text, payload=payload)


class WhatsAppNotifier:
    """Opens a ``wa.me`` deep link carrying the order text."""

    def __init__(self, number: Optional[str] = None, opener: Callable[[str], Any] = webbrowser.open):
        self.number = number or get_config().whatsapp_number
        self.opener = opener

    def link(self, text: str) -> str:
        return f"https://wa.me/{self.number}?text={quote(text, safe=_URI_SAFE)}"

    def send(self, text: str) -> None:
        self.opener(self.link(text))


class LoggingNotifier:
    """Writes the order text to the log; keeps the last message for inspection."""

    def __init__(self):
        self.sent: List[str] = []

    def send(self, text: str) -> None:
        self.sent.append(text)
        logger.info(f"Order message:\n{text}")
