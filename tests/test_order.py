"""
Tests for order submission: message text, payload, stock gate and
notifier behaviour.
"""

from storefront.cart.ledger import CartLedger, CartLine
from storefront.cart.order import (
    EMPTY_CART_MESSAGE,
    OVER_STOCK_MESSAGE,
    LoggingNotifier,
    WhatsAppNotifier,
    build_order_payload,
    format_order_text,
    submit_order,
)


class _FailingNotifier:
    def send(self, text):
        raise ConnectionError("offline")


def _red_case_ledger():
    ledger = CartLedger(notes="Deliver Friday")
    ledger.add(CartLine(product_id="case", name="Case", sku="C1", price=5.0,
                        selection={"Color": "Red"}, quantity=2))
    return ledger


# ── Message text ─────────────────────────────────────────────────────────

class TestFormatOrderText:
    def test_contents(self):
        ledger = _red_case_ledger()
        text = format_order_text(ledger.lines, ledger.subtotal(), ledger.notes)
        assert text.startswith("Order Request\n")
        assert "Case (SKU: C1)" in text
        assert "Color: Red" in text
        assert "Qty: 2" in text
        assert "= £10.00" in text
        assert "Subtotal: £10.00" in text
        assert "Notes: Deliver Friday" in text
        assert text.endswith("Please confirm availability and pricing. Thank you!")

    def test_zero_quantity_lines_omitted(self):
        lines = [CartLine(product_id="a", name="Gone", sku="G", quantity=0),
                 CartLine(product_id="b", name="Kept", sku="K", price=1.0, quantity=1)]
        text = format_order_text(lines, 1.0)
        assert "Gone" not in text
        assert "Kept (SKU: K)" in text
        assert "Notes:" not in text

    def test_base_lines_have_no_variant_row(self):
        lines = [CartLine(product_id="b", name="Cable", sku="K", price=1.0, quantity=1)]
        assert "Variants:" not in format_order_text(lines, 1.0)

    def test_symbol_override(self):
        ledger = _red_case_ledger()
        assert "Subtotal: $10.00" in format_order_text(ledger.lines, ledger.subtotal(), symbol="$")


class TestPayload:
    def test_minor_units(self):
        payload = build_order_payload(_red_case_ledger())
        assert payload["currency"] == "GBP"
        assert payload["subtotal_cents"] == 1000
        assert payload["notes"] == "Deliver Friday"
        item = payload["items"][0]
        assert item["unit_price_cents"] == 500
        assert item["subtotal_cents"] == 1000
        assert item["inventory_key"] == "Color:Red"
        assert item["variants"] == {"Color": "Red"}


# ── Submission ───────────────────────────────────────────────────────────

class TestSubmitOrder:
    def test_empty_cart(self):
        notifier = LoggingNotifier()
        result = submit_order(CartLedger(), {}, notifier)
        assert not result.success
        assert result.error == EMPTY_CART_MESSAGE
        assert notifier.sent == []

    def test_only_zero_quantity_lines_counts_as_empty(self):
        ledger = CartLedger([CartLine(product_id="a", quantity=0)])
        result = submit_order(ledger, {}, LoggingNotifier())
        assert result.error == EMPTY_CART_MESSAGE
        assert len(ledger) == 1

    def test_over_stock_blocks(self, case_product):
        ledger = CartLedger()
        ledger.add(CartLine.for_product(case_product, {"Color": "Blue"}, 3))
        notifier = LoggingNotifier()
        result = submit_order(ledger, {"case": case_product}, notifier)
        assert not result.success
        assert result.error == OVER_STOCK_MESSAGE
        assert len(result.violations) == 1
        assert result.violations[0].remaining == 1
        assert len(ledger) == 1
        assert notifier.sent == []

    def test_other_orders_count_against_stock(self, case_product):
        ledger = CartLedger()
        ledger.add(CartLine.for_product(case_product, {"Color": "Blue"}, 1))
        result = submit_order(ledger, {"case": case_product}, LoggingNotifier(),
                              committed_orders={"case": {"Color:Blue": 1}})
        assert not result.success

    def test_success_clears_ledger(self, case_product):
        ledger = _red_case_ledger()
        notifier = LoggingNotifier()
        recorded = []
        result = submit_order(ledger, {"case": case_product}, notifier, recorder=recorded.append)
        assert result.success
        assert notifier.sent == [result.text]
        assert recorded == [result.payload]
        assert len(ledger) == 0
        assert ledger.notes == ""

    def test_recorder_failure_does_not_block(self, case_product):
        def broken(payload):
            raise RuntimeError("db down")

        ledger = _red_case_ledger()
        result = submit_order(ledger, {"case": case_product}, LoggingNotifier(), recorder=broken)
        assert result.success

    def test_notifier_failure_keeps_cart(self, case_product):
        ledger = _red_case_ledger()
        result = submit_order(ledger, {"case": case_product}, _FailingNotifier())
        assert not result.success
        assert len(ledger) == 1
        assert ledger.notes == "Deliver Friday"


class TestWhatsAppNotifier:
    def test_link(self):
        opened = []
        notifier = WhatsAppNotifier(number="447000000000", opener=opened.append)
        notifier.send("Order Request\nTotal £5.00")
        assert opened == [notifier.link("Order Request\nTotal £5.00")]
        url = opened[0]
        assert url.startswith("https://wa.me/447000000000?text=")
        assert "Order%20Request%0ATotal%20%C2%A35.00" in url

    def test_default_number_from_config(self):
        assert WhatsAppNotifier(opener=lambda url: None).number == "992935563306"
