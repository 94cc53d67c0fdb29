from storefront.cart.ledger import AddResult, CartLedger, CartLine
from storefront.cart.order import (
    LoggingNotifier,
    SubmitResult,
    WhatsAppNotifier,
    build_order_payload,
    format_order_text,
    submit_order,
)

__all__ = [
    "CartLine",
    "CartLedger",
    "AddResult",
    "format_order_text",
    "build_order_payload",
    "submit_order",
    "SubmitResult",
    "WhatsAppNotifier",
    "LoggingNotifier",
]
