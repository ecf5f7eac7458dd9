# Overview: Pytest coverage for payment validation and order assembly.

"""
Checkout Service Tests

Validation rules are checked against an in-memory order store so the
"store untouched" guarantee can be asserted directly. The SQL-backed path
(id assignment, stock decrement, stock conflicts) is covered at the end.
"""

import dataclasses
import re
from datetime import datetime
from decimal import Decimal

import pytest

from tdpos.models import Product
from tdpos.services.cart_service import Cart, ProductSnapshot
from tdpos.services.checkout_service import (
    CheckoutService,
    EmptyCartError,
    InsufficientPaymentError,
    MissingContextError,
    MissingPaymentMethodError,
    MissingReferenceError,
    calculate_change,
    generate_order_number,
)
from tdpos.stores import PersistenceError, StockConflictError


FIXED_NOW = datetime(2026, 5, 4, 9, 30, 0)


class FakeOrderStore:
    def __init__(self, fail=False):
        self.inserted = []
        self.fail = fail

    def insert_order(self, order, decrement_stock=False):
        if self.fail:
            raise PersistenceError("Failed to insert order")
        self.inserted.append((order, decrement_stock))
        return str(len(self.inserted))

    def find_orders(self, filter=None):
        return [o for o, _ in self.inserted]

    def aggregate_orders(self, group_key, sum_field):
        return []


def cart_with_total_150():
    cart = Cart()
    cart.add_item(ProductSnapshot(id="1", name="Tire", price=Decimal("100"), quantity_available=5), 2)
    cart.apply_cart_discount(50)
    return cart


def service(store, **kwargs):
    kwargs.setdefault("clock", lambda: FIXED_NOW)
    kwargs.setdefault("order_number_factory", lambda: "ORD-123456-007")
    return CheckoutService(store, **kwargs)


class TestValidation:
    def test_cash_short_fails_and_store_untouched(self):
        store = FakeOrderStore()
        cart = cart_with_total_150()

        with pytest.raises(InsufficientPaymentError) as exc:
            service(store).submit_payment(cart.snapshot(), "1", "1", "cash", 100)

        assert exc.value.kind == "insufficient_payment"
        assert store.inserted == []

    def test_cash_with_change(self):
        store = FakeOrderStore()
        cart = cart_with_total_150()

        order = service(store).submit_payment(cart.snapshot(), "1", "1", "cash", 200)

        assert order.total_amount == Decimal("150")
        assert order.amount_received == Decimal("200")
        assert order.change_amount == Decimal("50")
        assert order.id == "1"
        assert len(store.inserted) == 1
        # clearing the cart is the caller's job
        assert len(cart) == 1

    def test_exact_cash(self):
        order = service(FakeOrderStore()).submit_payment(cart_with_total_150().snapshot(), "1", "1", "cash", "150.00")
        assert order.change_amount == Decimal("0")

    def test_empty_cart(self):
        store = FakeOrderStore()
        with pytest.raises(EmptyCartError):
            service(store).submit_payment(Cart().snapshot(), "1", "1", "cash", 100)
        assert store.inserted == []

    @pytest.mark.parametrize("branch_id,cashier_id", [
        (None, "1"),
        ("1", None),
        ("", "1"),
        ("1", "   "),
    ])
    def test_missing_context(self, branch_id, cashier_id):
        with pytest.raises(MissingContextError):
            service(FakeOrderStore()).submit_payment(
                cart_with_total_150().snapshot(), branch_id, cashier_id, "cash", 200
            )

    @pytest.mark.parametrize("method", [None, "", "cheque", "CASH"])
    def test_missing_payment_method(self, method):
        with pytest.raises(MissingPaymentMethodError):
            service(FakeOrderStore()).submit_payment(cart_with_total_150().snapshot(), "1", "1", method, 200)

    @pytest.mark.parametrize("method", ["card", "mobile"])
    def test_missing_reference(self, method):
        with pytest.raises(MissingReferenceError):
            service(FakeOrderStore()).submit_payment(cart_with_total_150().snapshot(), "1", "1", method, None, "  ")

    @pytest.mark.parametrize("method", ["cash", "card", "mobile"])
    def test_negative_tender_rejected(self, method):
        store = FakeOrderStore()

        with pytest.raises(InsufficientPaymentError) as exc:
            service(store).submit_payment(cart_with_total_150().snapshot(), "1", "1", method, "-50", "R1")

        assert "non-negative" in exc.value.message
        assert store.inserted == []

    def test_first_failing_rule_wins(self):
        # empty cart + missing context + bad method: empty cart is reported
        with pytest.raises(EmptyCartError):
            service(FakeOrderStore()).submit_payment(Cart().snapshot(), None, None, None)

        # missing context + bad method: context is reported
        with pytest.raises(MissingContextError):
            service(FakeOrderStore()).submit_payment(cart_with_total_150().snapshot(), None, "1", "bitcoin")

    def test_cash_without_amount(self):
        with pytest.raises(InsufficientPaymentError):
            service(FakeOrderStore()).submit_payment(cart_with_total_150().snapshot(), "1", "1", "cash")

    def test_non_numeric_amount(self):
        store = FakeOrderStore()
        with pytest.raises(ValueError):
            service(store).submit_payment(cart_with_total_150().snapshot(), "1", "1", "cash", "lots")
        assert store.inserted == []

    def test_error_to_dict(self):
        err = MissingReferenceError("Reference number is required")
        assert err.to_dict() == {"kind": "missing_reference", "message": "Reference number is required"}


class TestOrderAssembly:
    def test_card_payment_without_amount(self):
        order = service(FakeOrderStore()).submit_payment(
            cart_with_total_150().snapshot(), "2", "5", "card", None, " TX-991 "
        )
        assert order.amount_received == Decimal("150")
        assert order.change_amount == Decimal("0")
        assert order.payment_reference == "TX-991"

    def test_mobile_payment_with_amount_gets_change(self):
        order = service(FakeOrderStore()).submit_payment(
            cart_with_total_150().snapshot(), "2", "5", "mobile", "160", "MP-1"
        )
        assert order.change_amount == Decimal("10")

    def test_order_fields(self):
        cart = Cart()
        cart.add_item(ProductSnapshot(id="1", name="A", price=Decimal("10.00"), quantity_available=9), 3)
        cart.add_item(ProductSnapshot(id="2", name="B", price=Decimal("4.25"), quantity_available=9), 2)
        cart.apply_line_discount("1", 5)

        order = service(FakeOrderStore()).submit_payment(cart.snapshot(), 1, 7, "cash", 50)

        assert order.order_number == "ORD-123456-007"
        assert order.created_at == FIXED_NOW
        assert order.status == "completed"
        assert order.branch_id == "1"
        assert order.cashier_id == "7"
        assert [(i.product_id, i.quantity, i.price, i.discount, i.subtotal) for i in order.items] == [
            ("1", 3, Decimal("10.00"), Decimal("5"), Decimal("25.00")),
            ("2", 2, Decimal("4.25"), Decimal("0"), Decimal("8.50")),
        ]
        assert order.total_amount == Decimal("33.50")
        assert order.change_amount == Decimal("16.50")

    def test_order_is_immutable(self):
        order = service(FakeOrderStore()).submit_payment(cart_with_total_150().snapshot(), "1", "1", "cash", 200)
        with pytest.raises(dataclasses.FrozenInstanceError):
            order.total_amount = Decimal("1")
        with pytest.raises(dataclasses.FrozenInstanceError):
            order.items[0].quantity = 99

    def test_stored_record_is_not_the_returned_one(self):
        store = FakeOrderStore()
        order = service(store).submit_payment(cart_with_total_150().snapshot(), "1", "1", "cash", 200)
        stored, _ = store.inserted[0]
        assert stored.id is None
        assert order.id == "1"

    def test_decrement_flag_passed_to_store(self):
        store = FakeOrderStore()
        service(store, decrement_stock=False).submit_payment(cart_with_total_150().snapshot(), "1", "1", "cash", 200)
        assert store.inserted[0][1] is False

    def test_persistence_failure_propagates(self):
        cart = cart_with_total_150()
        with pytest.raises(PersistenceError):
            service(FakeOrderStore(fail=True)).submit_payment(cart.snapshot(), "1", "1", "cash", 200)
        # the cart is still there for a retry
        assert cart.compute_totals().total == Decimal("150")


class TestHelpers:
    def test_order_number_format(self):
        assert generate_order_number(now_ms=1718000123456, rand=7) == "ORD-123456-007"
        assert re.fullmatch(r"ORD-\d{6}-\d{3}", generate_order_number())

    @pytest.mark.parametrize("received,change", [
        ("150", "0"),
        ("200", "50"),
        ("150.01", "0.01"),
    ])
    def test_change_for_cash(self, received, change):
        _, result = calculate_change("cash", Decimal("150"), Decimal(received))
        assert result == Decimal(change)

    def test_change_never_negative(self):
        _, result = calculate_change("card", Decimal("150"), Decimal("20"))
        assert result == Decimal("0")


class TestSqlCheckout:
    def _cart(self, product, qty):
        cart = Cart()
        cart.add_item(ProductSnapshot.from_product(product), qty)
        return cart

    def test_order_persisted_and_stock_decremented(self, db_session, orders, tire, branch_a, cashier):
        cart = self._cart(tire, 4)

        order = CheckoutService(orders).submit_payment(cart.snapshot(), str(branch_a.id), str(cashier.id), "cash", 500)

        stored = orders.find_order_by_id(order.id)
        assert stored.order_number == order.order_number
        assert stored.total_amount == Decimal("400.00")
        assert stored.change_amount == Decimal("100.00")
        assert db_session.get(Product, tire.id).quantity == 6

    def test_no_decrement_when_disabled(self, db_session, orders, tire):
        cart = self._cart(tire, 4)
        CheckoutService(orders, decrement_stock=False).submit_payment(cart.snapshot(), "1", "1", "cash", 500)
        assert db_session.get(Product, tire.id).quantity == 10

    def test_stock_conflict_rolls_back_everything(self, db_session, orders, tire):
        cart = self._cart(tire, 8)
        # another terminal sold most of the stock since the snapshot was taken
        tire.quantity = 5
        db_session.commit()

        with pytest.raises(StockConflictError) as exc:
            CheckoutService(orders).submit_payment(cart.snapshot(), "1", "1", "cash", 1000)

        assert exc.value.details["product_id"] == str(tire.id)
        assert orders.find_orders() == []
        assert db_session.get(Product, tire.id).quantity == 5
