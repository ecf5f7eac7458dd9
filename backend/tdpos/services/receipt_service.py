# Overview: Receipt data and fixed-width text layout for thermal printers.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from decimal import Decimal
from typing import Mapping, Optional, Protocol

from tdpos.models.orders import PAYMENT_CASH, OrderRecord
from tdpos.money import ZERO, money_str
from tdpos.stores import CatalogStore
from tdpos.time_utils import resolve_timezone, to_local, to_utc_z


class ReceiptPrinter(Protocol):
    """Anything that accepts raw bytes; DevicePrinter writes to a device file."""

    def write(self, data: bytes) -> None: ...


@dataclass(frozen=True)
class ReceiptLine:
    product_name: str
    quantity: int
    price: Decimal
    discount: Decimal
    subtotal: Decimal


@dataclass(frozen=True)
class Receipt:
    order_id: Optional[str]
    order_number: str
    date: datetime
    items: tuple[ReceiptLine, ...]
    subtotal: Decimal
    total_discount: Decimal
    total: Decimal
    cashier: str
    branch: str
    branch_location: str
    payment_method: str
    amount_received: Decimal
    change_amount: Decimal
    payment_reference: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.order_id,
            "order_number": self.order_number,
            "date": to_utc_z(self.date),
            "items": [
                {
                    "product_name": line.product_name,
                    "quantity": line.quantity,
                    "price": money_str(line.price),
                    "discount": money_str(line.discount),
                    "subtotal": money_str(line.subtotal),
                }
                for line in self.items
            ],
            "subtotal": money_str(self.subtotal),
            "total_discount": money_str(self.total_discount),
            "total": money_str(self.total),
            "cashier": self.cashier,
            "branch": self.branch,
            "branch_location": self.branch_location,
            "payment_method": self.payment_method,
            "amount_received": money_str(self.amount_received),
            "change_amount": money_str(self.change_amount),
            "payment_reference": self.payment_reference,
        }


def build_receipt(
    order: OrderRecord,
    *,
    product_names: dict[str, str],
    branch_name: str,
    branch_location: str = "",
    cashier_name: str,
) -> Receipt:
    """
    Receipt for a stored order.

    ``product_names`` maps product id -> name; products deleted since the
    sale print as "Unknown".
    """
    items = tuple(
        ReceiptLine(
            product_name=product_names.get(item.product_id, "Unknown"),
            quantity=item.quantity,
            price=item.price,
            discount=item.discount,
            subtotal=item.subtotal,
        )
        for item in order.items
    )
    gross = sum((line.price * line.quantity for line in items), ZERO)
    discount = sum((line.discount for line in items), ZERO)
    return Receipt(
        order_id=order.id,
        order_number=order.order_number,
        date=order.created_at,
        items=items,
        subtotal=gross,
        total_discount=discount,
        total=order.total_amount,
        cashier=cashier_name,
        branch=branch_name,
        branch_location=branch_location,
        payment_method=order.payment_method,
        amount_received=order.amount_received,
        change_amount=order.change_amount,
        payment_reference=order.payment_reference,
    )


def _row(left: str, right: str, width: int) -> str:
    space = width - len(right) - 1
    if len(left) > space:
        left = left[: max(space - 1, 0)] + "~" if space > 0 else ""
    return f"{left}{' ' * (width - len(left) - len(right))}{right}"


def render_receipt_text(
    receipt: Receipt,
    *,
    width: int = 48,
    currency: str = "M",
    business_name: str = "",
    tz: tzinfo = timezone.utc,
) -> str:
    def amount(value: Decimal) -> str:
        return f"{currency}{money_str(value)}"

    rule = "-" * width
    lines = []
    if business_name:
        lines.append(business_name.center(width).rstrip())
    lines.append(receipt.branch.center(width).rstrip())
    if receipt.branch_location:
        lines.append(receipt.branch_location.center(width).rstrip())
    lines.append(rule)
    lines.append(_row("Cashier:", receipt.cashier, width))
    lines.append(_row("Date:", to_local(receipt.date, tz).strftime("%Y-%m-%d %H:%M"), width))
    lines.append(_row("Order #:", receipt.order_number, width))
    lines.append(_row("Payment:", receipt.payment_method.capitalize(), width))
    if receipt.payment_method == PAYMENT_CASH:
        lines.append(_row("Amount Received:", amount(receipt.amount_received), width))
        lines.append(_row("Change:", amount(receipt.change_amount), width))
    elif receipt.payment_reference:
        lines.append(_row("Reference:", receipt.payment_reference, width))
    lines.append(rule)
    for item in receipt.items:
        lines.append(_row(f"{item.quantity} x {item.product_name}", amount(item.price * item.quantity), width))
        if item.discount:
            lines.append(_row("  discount", f"-{amount(item.discount)}", width))
    lines.append(rule)
    lines.append(_row("Subtotal:", amount(receipt.subtotal), width))
    if receipt.total_discount:
        lines.append(_row("Discount:", f"-{amount(receipt.total_discount)}", width))
    lines.append(_row("TOTAL:", amount(receipt.total), width))
    lines.append(rule)
    lines.append("Thank you for your purchase!".center(width).rstrip())
    return "\n".join(lines) + "\n"


def receipt_for_order(catalog: CatalogStore, order: OrderRecord, config: Mapping) -> tuple[Receipt, str]:
    """
    Receipt and its printable text for a stored order.

    Names are looked up at print time; a deleted branch, cashier or product
    shows as "Unknown". ``config`` is the Flask app config.
    """
    names = {}
    for item in order.items:
        product = catalog.find_product_by_id(item.product_id)
        if product is not None:
            names[item.product_id] = product.name

    branch = catalog.find_branch_by_id(order.branch_id)
    cashier = catalog.find_employee_by_id(order.cashier_id)
    receipt = build_receipt(
        order,
        product_names=names,
        branch_name=branch.name if branch else "Unknown",
        branch_location=branch.location if branch else "",
        cashier_name=cashier.full_name if cashier else "Unknown",
    )
    text = render_receipt_text(
        receipt,
        width=config["RECEIPT_WIDTH"],
        currency=config["CURRENCY_SYMBOL"],
        business_name=config["BUSINESS_NAME"],
        tz=resolve_timezone(config["BUSINESS_TIMEZONE"]),
    )
    return receipt, text


class DevicePrinter:
    """Printer reached through its device file (e.g. /dev/usb/lp0)."""

    def __init__(self, path: str):
        self.path = path

    def write(self, data: bytes) -> None:
        with open(self.path, "ab") as device:
            device.write(data)


def print_receipt(printer: ReceiptPrinter, text: str, *, encoding: str = "cp437") -> None:
    """Send rendered text to the printer; unknown characters become '?'."""
    printer.write(text.encode(encoding, errors="replace"))
