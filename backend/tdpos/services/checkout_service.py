# Overview: Payment validation and order assembly for POS checkout.

"""
Checkout Service

WHY: A sale only becomes an Order after the payment passes the business
rules. Validation runs before the order store is touched, so a rejected
payment leaves no trace and the cashier can simply try again.

VALIDATION ORDER (first failure wins):
1. Cart has at least one line           -> EmptyCartError
2. Branch and cashier both given        -> MissingContextError
3. Method is cash, card or mobile       -> MissingPaymentMethodError
4. Tendered amount is not negative      -> InsufficientPaymentError
5. Cash covers the total                -> InsufficientPaymentError
6. Card/mobile carries a reference      -> MissingReferenceError

The service holds no reference to the cart. Clearing it after a successful
checkout is the caller's job; after a PersistenceError the caller keeps the
cart and may retry with it unchanged.
"""

from __future__ import annotations

import secrets
import time
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Optional

from tdpos.models.orders import (
    PAYMENT_CASH,
    PAYMENT_METHODS,
    OrderLineRecord,
    OrderRecord,
)
from tdpos.money import ZERO, to_money
from tdpos.stores import OrderStore
from tdpos.time_utils import utcnow
from .cart_service import CartSnapshot


class CheckoutError(Exception):
    """Raised when a payment fails validation. Nothing is persisted."""
    kind = "checkout_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class EmptyCartError(CheckoutError):
    kind = "empty_cart"


class MissingContextError(CheckoutError):
    kind = "missing_context"


class MissingPaymentMethodError(CheckoutError):
    kind = "missing_payment_method"


class InsufficientPaymentError(CheckoutError):
    kind = "insufficient_payment"


class MissingReferenceError(CheckoutError):
    kind = "missing_reference"


def generate_order_number(now_ms: int | None = None, rand: int | None = None) -> str:
    """ORD-<last 6 digits of epoch millis>-<000..999>"""
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    if rand is None:
        rand = secrets.randbelow(1000)
    return f"ORD-{str(now_ms)[-6:]}-{rand:03d}"


def _is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def calculate_change(method: str, total: Decimal, amount_received: Decimal | None) -> tuple[Decimal, Decimal]:
    """
    (amount_received, change_amount) as recorded on the order.

    Change is max(0, received - total) whenever an amount was tendered. A
    card/mobile payment without a tendered amount is recorded as exactly the
    total with no change.
    """
    if amount_received is None:
        if method == PAYMENT_CASH:
            raise InsufficientPaymentError("Amount received must be at least equal to the total")
        return total, ZERO
    return amount_received, max(ZERO, amount_received - total)


class CheckoutService:
    def __init__(
        self,
        order_store: OrderStore,
        *,
        decrement_stock: bool = True,
        clock: Callable[[], datetime] = utcnow,
        order_number_factory: Callable[[], str] = generate_order_number,
    ):
        self.order_store = order_store
        self.decrement_stock = decrement_stock
        self.clock = clock
        self.order_number_factory = order_number_factory

    def validate_payment(
        self,
        cart: CartSnapshot,
        branch_id: Optional[str],
        cashier_id: Optional[str],
        method: Optional[str],
        amount_received: Optional[Decimal],
        reference: Optional[str] = None,
    ) -> None:
        """Raise the first CheckoutError that applies, or return None."""
        self._validate_context(cart, branch_id, cashier_id, method)
        self._validate_tender(cart, method, amount_received, reference)

    def _validate_context(self, cart, branch_id, cashier_id, method) -> None:
        if cart is None or cart.is_empty:
            raise EmptyCartError("Order must contain at least one item")

        if _is_blank(branch_id) or _is_blank(cashier_id):
            raise MissingContextError("Branch ID and Cashier ID are required")

        if method not in PAYMENT_METHODS:
            raise MissingPaymentMethodError(
                f"Payment method is required (one of {', '.join(PAYMENT_METHODS)})"
            )

    def _validate_tender(self, cart, method, amount_received, reference) -> None:
        if amount_received is not None and amount_received < ZERO:
            raise InsufficientPaymentError("Amount received must be non-negative")
        if method == PAYMENT_CASH:
            if amount_received is None or amount_received < cart.totals.total:
                raise InsufficientPaymentError("Amount received must be at least equal to the total")
        elif _is_blank(reference):
            raise MissingReferenceError("Reference number is required for card or mobile payments")

    def build_order(
        self,
        cart: CartSnapshot,
        branch_id: str,
        cashier_id: str,
        method: str,
        amount_received: Optional[Decimal],
        reference: Optional[str] = None,
    ) -> OrderRecord:
        total = cart.totals.total
        received, change = calculate_change(method, total, amount_received)
        items = tuple(
            OrderLineRecord(
                product_id=line.product_id,
                quantity=line.quantity,
                price=line.price,
                discount=line.discount,
                subtotal=line.subtotal,
            )
            for line in cart.lines
        )
        return OrderRecord(
            order_number=self.order_number_factory(),
            items=items,
            total_amount=total,
            branch_id=str(branch_id).strip(),
            cashier_id=str(cashier_id).strip(),
            payment_method=method,
            amount_received=received,
            change_amount=change,
            payment_reference=None if _is_blank(reference) else str(reference).strip(),
            created_at=self.clock(),
        )

    def submit_payment(
        self,
        cart: CartSnapshot,
        branch_id: Optional[str],
        cashier_id: Optional[str],
        method: Optional[str],
        amount_received: Any = None,
        reference: Optional[str] = None,
    ) -> OrderRecord:
        """
        Validate, assemble and persist one order.

        Returns the stored OrderRecord (with its id).

        Raises:
            CheckoutError subclasses: validation failed, store untouched
            ValueError: amount_received is not a number
            PersistenceError: the store rejected the write (retryable)
        """
        self._validate_context(cart, branch_id, cashier_id, method)
        received = None if amount_received in (None, "") else to_money(amount_received)
        self._validate_tender(cart, method, received, reference)
        order = self.build_order(cart, branch_id, cashier_id, method, received, reference)
        order_id = self.order_store.insert_order(order, decrement_stock=self.decrement_stock)
        return order.with_id(order_id)
