from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..extensions import db
from tdpos.money import money_str
from tdpos.time_utils import to_utc_z

PAYMENT_CASH = "cash"
PAYMENT_CARD = "card"
PAYMENT_MOBILE = "mobile"
PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_CARD, PAYMENT_MOBILE)

ORDER_STATUS_COMPLETED = "completed"


@dataclass(frozen=True)
class OrderLineRecord:
    product_id: str
    quantity: int
    price: Decimal
    discount: Decimal
    subtotal: Decimal

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "quantity": self.quantity,
            "price": money_str(self.price),
            "discount": money_str(self.discount),
            "subtotal": money_str(self.subtotal),
        }


@dataclass(frozen=True)
class OrderRecord:
    """
    Immutable completed sale.

    Built only by the checkout service; the store assigns ``id`` on insert
    and hands back a copy, the original record is never touched.
    """
    order_number: str
    items: tuple[OrderLineRecord, ...]
    total_amount: Decimal
    branch_id: str
    cashier_id: str
    payment_method: str
    amount_received: Decimal
    change_amount: Decimal
    created_at: datetime
    payment_reference: Optional[str] = None
    status: str = ORDER_STATUS_COMPLETED
    id: Optional[str] = field(default=None)

    def with_id(self, order_id: str) -> "OrderRecord":
        return replace(self, id=order_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_number": self.order_number,
            "items": [item.to_dict() for item in self.items],
            "total_amount": money_str(self.total_amount),
            "branch_id": self.branch_id,
            "cashier_id": self.cashier_id,
            "payment_method": self.payment_method,
            "amount_received": money_str(self.amount_received),
            "change_amount": money_str(self.change_amount),
            "payment_reference": self.payment_reference,
            "created_at": to_utc_z(self.created_at),
            "status": self.status,
        }


class Order(db.Model):
    """
    Persisted order header. Rows are insert-only.

    branch_id / cashier_id are opaque references (no FK) so orders survive
    deletion of the branch or employee they mention.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_branch_created", "branch_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(32), nullable=False, unique=True)

    total_amount = db.Column(db.Numeric(12, 2), nullable=False)
    branch_id = db.Column(db.String(64), nullable=False)
    cashier_id = db.Column(db.String(64), nullable=False)

    payment_method = db.Column(db.String(16), nullable=False)
    amount_received = db.Column(db.Numeric(12, 2), nullable=False)
    change_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    payment_reference = db.Column(db.String(128), nullable=True)

    status = db.Column(db.String(16), nullable=False, default=ORDER_STATUS_COMPLETED)
    created_at = db.Column(db.DateTime, nullable=False, index=True)

    lines = db.relationship(
        "OrderLine",
        order_by="OrderLine.line_number",
        lazy="selectin",
        cascade="all, delete-orphan",
        backref="order",
    )

    @classmethod
    def from_record(cls, record: OrderRecord) -> "Order":
        order = cls(
            order_number=record.order_number,
            total_amount=record.total_amount,
            branch_id=record.branch_id,
            cashier_id=record.cashier_id,
            payment_method=record.payment_method,
            amount_received=record.amount_received,
            change_amount=record.change_amount,
            payment_reference=record.payment_reference,
            status=record.status,
            created_at=record.created_at,
        )
        for n, item in enumerate(record.items, start=1):
            order.lines.append(OrderLine(
                line_number=n,
                product_id=item.product_id,
                quantity=item.quantity,
                price=item.price,
                discount=item.discount,
                subtotal=item.subtotal,
            ))
        return order

    def to_record(self) -> OrderRecord:
        return OrderRecord(
            id=str(self.id),
            order_number=self.order_number,
            items=tuple(line.to_record() for line in self.lines),
            total_amount=Decimal(self.total_amount),
            branch_id=self.branch_id,
            cashier_id=self.cashier_id,
            payment_method=self.payment_method,
            amount_received=Decimal(self.amount_received),
            change_amount=Decimal(self.change_amount),
            payment_reference=self.payment_reference,
            created_at=self.created_at,
            status=self.status,
        )

    def __repr__(self) -> str:
        return f"<Order id={self.id} number={self.order_number!r} total={self.total_amount}>"


class OrderLine(db.Model):
    """Individual line items on an order."""
    __tablename__ = "order_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    line_number = db.Column(db.Integer, nullable=False)

    product_id = db.Column(db.String(64), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    discount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    subtotal = db.Column(db.Numeric(12, 2), nullable=False)

    def to_record(self) -> OrderLineRecord:
        return OrderLineRecord(
            product_id=self.product_id,
            quantity=self.quantity,
            price=Decimal(self.price),
            discount=Decimal(self.discount),
            subtotal=Decimal(self.subtotal),
        )
