# Overview: In-memory cart for one in-progress POS sale; derives totals from its lines.

"""
Cart Engine

One Cart per cashier session. The cart only knows the product snapshot it
was given when a line was added (id, name, price, quantity available); it
never reads the catalog itself.

STOCK GUARD: mutations that would push a line past quantity_available are
rejected and reported as a CartWarning return value. The cart is left
exactly as it was, so the caller can show the message and carry on.

DISCOUNTS: discounts are absolute currency amounts per line. The whole-cart
discount writes the same amount onto every line, replacing whatever was
there. With clamp_discounts on (the default), a line discount never exceeds
that line's subtotal, so totals can't go negative.

The cart is not thread-safe; it is owned by a single session.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

from tdpos.money import ZERO, money_str, to_money

WARNING_OUT_OF_STOCK = "out_of_stock"
WARNING_STOCK_LIMIT = "stock_limit"
WARNING_INVALID_QUANTITY = "invalid_quantity"
WARNING_INVALID_DISCOUNT = "invalid_discount"
WARNING_NOT_IN_CART = "not_in_cart"


@dataclass(frozen=True)
class ProductSnapshot:
    id: str
    name: str
    price: Decimal
    quantity_available: int

    @classmethod
    def from_product(cls, product) -> "ProductSnapshot":
        return cls(
            id=str(product.id),
            name=product.name,
            price=to_money(product.price),
            quantity_available=int(product.quantity or 0),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": money_str(self.price),
            "quantity_available": self.quantity_available,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProductSnapshot":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            price=to_money(data["price"]),
            quantity_available=int(data["quantity_available"]),
        )


@dataclass(frozen=True)
class CartWarning:
    """Non-fatal rejection of a cart mutation."""
    kind: str
    message: str
    product_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message, "product_id": self.product_id}


@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal
    total_discount: Decimal
    total: Decimal

    def to_dict(self) -> dict:
        return {
            "subtotal": money_str(self.subtotal),
            "total_discount": money_str(self.total_discount),
            "total": money_str(self.total),
        }


@dataclass
class CartItem:
    product: ProductSnapshot
    quantity: int
    discount: Decimal = ZERO
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def product_id(self) -> str:
        return self.product.id

    @property
    def subtotal(self) -> Decimal:
        """Price x quantity, before discount."""
        return self.product.price * self.quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product": self.product.to_dict(),
            "quantity": self.quantity,
            "discount": money_str(self.discount),
            "subtotal": money_str(self.subtotal),
        }


@dataclass(frozen=True)
class CartLineSnapshot:
    product_id: str
    name: str
    price: Decimal
    quantity: int
    discount: Decimal

    @property
    def subtotal(self) -> Decimal:
        """Line amount after discount, as recorded on the order."""
        return self.price * self.quantity - self.discount


@dataclass(frozen=True)
class CartSnapshot:
    """Frozen copy of the cart handed to checkout."""
    lines: tuple[CartLineSnapshot, ...]
    totals: CartTotals

    @property
    def is_empty(self) -> bool:
        return not self.lines


def _stock_limit_warning(product: ProductSnapshot) -> CartWarning:
    return CartWarning(
        kind=WARNING_STOCK_LIMIT,
        message=f"Only {product.quantity_available} items available in stock",
        product_id=product.id,
    )


class Cart:
    def __init__(self, *, clamp_discounts: bool = True):
        self.clamp_discounts = clamp_discounts
        self._items: list[CartItem] = []

    # ---- queries --------------------------------------------------------

    @property
    def items(self) -> tuple[CartItem, ...]:
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def get_item(self, product_id: str) -> Optional[CartItem]:
        product_id = str(product_id)
        for item in self._items:
            if item.product_id == product_id:
                return item
        return None

    def compute_totals(self) -> CartTotals:
        subtotal = sum((item.subtotal for item in self._items), ZERO)
        total_discount = sum((item.discount for item in self._items), ZERO)
        return CartTotals(
            subtotal=subtotal,
            total_discount=total_discount,
            total=subtotal - total_discount,
        )

    def snapshot(self) -> CartSnapshot:
        lines = tuple(
            CartLineSnapshot(
                product_id=item.product_id,
                name=item.product.name,
                price=item.product.price,
                quantity=item.quantity,
                discount=item.discount,
            )
            for item in self._items
        )
        return CartSnapshot(lines=lines, totals=self.compute_totals())

    # ---- mutations ------------------------------------------------------

    def add_item(self, product: ProductSnapshot, quantity: int = 1) -> Optional[CartWarning]:
        """
        Add ``quantity`` of ``product``.

        Products with no stock are ignored (warning, cart unchanged). An
        existing line grows by ``quantity`` unless that would exceed the
        available stock, in which case the line is left as it was.
        """
        if product.quantity_available <= 0:
            return CartWarning(
                kind=WARNING_OUT_OF_STOCK,
                message=f"{product.name} is out of stock",
                product_id=product.id,
            )
        if quantity <= 0:
            return CartWarning(
                kind=WARNING_INVALID_QUANTITY,
                message="Quantity must be at least 1",
                product_id=product.id,
            )

        existing = self.get_item(product.id)
        if existing is not None:
            new_quantity = existing.quantity + quantity
            if new_quantity > product.quantity_available:
                return _stock_limit_warning(product)
            existing.quantity = new_quantity
            # a newer snapshot carries the latest price / stock figure
            existing.product = product
            self._clamp_discount(existing)
            return None

        if quantity > product.quantity_available:
            return _stock_limit_warning(product)

        self._items.append(CartItem(product=product, quantity=quantity))
        return None

    def remove_item(self, product_id: str) -> None:
        product_id = str(product_id)
        self._items = [item for item in self._items if item.product_id != product_id]

    def set_quantity(self, product_id: str, quantity: int) -> Optional[CartWarning]:
        if quantity <= 0:
            self.remove_item(product_id)
            return None

        item = self.get_item(product_id)
        if item is None:
            return None
        if quantity > item.product.quantity_available:
            return _stock_limit_warning(item.product)

        item.quantity = quantity
        self._clamp_discount(item)
        return None

    def _clamp_discount(self, item: CartItem) -> None:
        if self.clamp_discounts and item.discount > item.subtotal:
            item.discount = item.subtotal

    def increment(self, product_id: str) -> Optional[CartWarning]:
        item = self.get_item(product_id)
        if item is None:
            return None
        return self.set_quantity(product_id, item.quantity + 1)

    def decrement(self, product_id: str) -> Optional[CartWarning]:
        item = self.get_item(product_id)
        if item is None:
            return None
        return self.set_quantity(product_id, item.quantity - 1)

    def _line_discount(self, item: CartItem, amount: Decimal) -> Decimal:
        if self.clamp_discounts:
            return min(amount, item.subtotal)
        return amount

    def apply_line_discount(self, product_id: str, amount: Any) -> Optional[CartWarning]:
        """Set one line's discount to ``amount`` (currency units, not a percentage)."""
        try:
            value = to_money(amount)
        except ValueError:
            value = None
        if value is None or value < 0:
            return CartWarning(
                kind=WARNING_INVALID_DISCOUNT,
                message="Discount must be a non-negative amount",
                product_id=str(product_id),
            )

        item = self.get_item(product_id)
        if item is None:
            return CartWarning(
                kind=WARNING_NOT_IN_CART,
                message="Product is not in the cart",
                product_id=str(product_id),
            )
        item.discount = self._line_discount(item, value)
        return None

    def apply_cart_discount(self, amount: Any) -> Optional[CartWarning]:
        """
        Overwrite every line's discount with ``amount``.

        The amount is not split across lines: a cart of three lines with
        apply_cart_discount(10) has a total discount of 30.
        """
        try:
            value = to_money(amount)
        except ValueError:
            value = None
        if value is None or value < 0:
            return CartWarning(
                kind=WARNING_INVALID_DISCOUNT,
                message="Discount must be a non-negative amount",
            )
        for item in self._items:
            item.discount = self._line_discount(item, value)
        return None

    def remove_cart_discount(self) -> None:
        for item in self._items:
            item.discount = ZERO

    def clear(self) -> None:
        self._items = []

    # ---- session persistence -------------------------------------------

    def to_dict(self) -> dict:
        return {
            "clamp_discounts": self.clamp_discounts,
            "items": [item.to_dict() for item in self._items],
        }

    @classmethod
    def from_dict(cls, data: dict | None, *, clamp_discounts: bool | None = None) -> "Cart":
        data = data or {}
        if clamp_discounts is None:
            clamp_discounts = bool(data.get("clamp_discounts", True))
        cart = cls(clamp_discounts=clamp_discounts)
        for raw in data.get("items", []):
            cart._items.append(CartItem(
                id=raw.get("id") or uuid.uuid4().hex,
                product=ProductSnapshot.from_dict(raw["product"]),
                quantity=int(raw["quantity"]),
                discount=to_money(raw.get("discount", 0)),
            ))
        return cart
