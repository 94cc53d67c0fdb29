"""
Tests for the cart ledger: coalescing, quantity edits and price snapshots.
"""

from storefront.cart.ledger import CartLedger, CartLine


class TestAdd:
    def test_same_combination_coalesces(self):
        """Model:A|Color:Red added twice becomes one line with the summed quantity."""
        ledger = CartLedger()
        ledger.add(CartLine(product_id="x", key="Model:A|Color:Red", quantity=2))
        result = ledger.add(CartLine(product_id="x", key="Model:A|Color:Red", quantity=3))
        assert result.coalesced
        assert len(ledger) == 1
        line = ledger.lines[0]
        assert line.quantity == 5
        assert line.key == "Color:Red|Model:A"
        assert line.selection == {"Color": "Red", "Model": "A"}

    def test_selection_order_does_not_split_lines(self):
        ledger = CartLedger()
        ledger.add(CartLine(product_id="x", selection={"Model": "A", "Color": "Red"}, quantity=1))
        ledger.add(CartLine(product_id="x", selection={"Color": "Red", "Model": "A"}, quantity=1))
        assert len(ledger) == 1

    def test_different_combinations_stay_separate(self):
        ledger = CartLedger()
        ledger.add(CartLine(product_id="x", key="Color:Red", quantity=1))
        ledger.add(CartLine(product_id="x", key="Color:Blue", quantity=1))
        ledger.add(CartLine(product_id="y", key="Color:Red", quantity=1))
        assert len(ledger) == 3


class TestEdits:
    def test_update_quantity(self):
        ledger = CartLedger([CartLine(product_id="x", price=2.0, quantity=1)])
        assert ledger.update_quantity(0, 4)
        assert ledger.subtotal() == 8.0
        assert ledger.update_quantity(0, -3)
        assert ledger.lines[0].quantity == 0
        assert ledger.active_lines() == []
        assert not ledger.update_quantity(5, 1)

    def test_remove_and_clear(self):
        ledger = CartLedger([CartLine(product_id="x", quantity=1), CartLine(product_id="y", quantity=1)])
        assert ledger.remove(0)
        assert not ledger.remove(3)
        assert [line.product_id for line in ledger.lines] == ["y"]
        ledger.set_notes("Deliver Friday")
        ledger.clear()
        assert len(ledger) == 0
        assert ledger.notes == ""

    def test_committed(self):
        ledger = CartLedger([
            CartLine(product_id="x", key="Color:Red", quantity=2),
            CartLine(product_id="x", key="Color:Blue", quantity=1),
            CartLine(product_id="y", key="Color:Red", quantity=7),
        ])
        assert ledger.committed("x") == {"Color:Red": 2, "Color:Blue": 1}
        assert ledger.total_quantity() == 10


class TestPriceSnapshot:
    def test_for_product_uses_override(self, case_product):
        line = CartLine.for_product(case_product, {"Color": "Blue"}, 2)
        assert line.price == 12
        assert line.key == "Color:Blue"
        assert line.name == "Case"
        assert line.sku == "C1"

    def test_later_price_changes_do_not_apply(self, case_product):
        ledger = CartLedger()
        ledger.add(CartLine.for_product(case_product, {"Color": "Red"}, 2))
        case_product.price = 99
        assert ledger.subtotal() == 20
