# Overview: Persistence collaborators consumed by the POS core (catalog + orders).

"""
Catalog and Order stores.

The cart, checkout and dashboard services never touch ``db.session``
directly; they receive store objects built once in ``create_app()`` and
reachable through ``get_stores()``. Each store call is a single unit of
work: it either commits or rolls back and raises ``PersistenceError``.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterator, Optional, Protocol, Sequence, Union

from flask import current_app
from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError

from .models import Branch, Employee, Order, OrderLine, OrderRecord, Product
from .money import to_money
from .time_utils import utcnow

logger = logging.getLogger(__name__)

EXTENSION_KEY = "tdpos"


class PersistenceError(Exception):
    """Store unreachable or write rejected. Nothing was committed."""
    kind = "persistence_error"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message, "details": self.details}


class StockConflictError(PersistenceError):
    """A conditional stock decrement found less stock than the order needs."""
    kind = "stock_conflict"


@dataclass(frozen=True)
class ProductFilter:
    category: Optional[str] = None
    branch_id: Optional[str] = None
    below_quantity: Optional[int] = None      # quantity < n
    max_quantity: Optional[int] = None        # quantity <= n
    updated_before: Optional[datetime] = None  # updated_at <= t


@dataclass(frozen=True)
class OrderFilter:
    branch_id: Optional[str] = None
    created_from: Optional[datetime] = None  # inclusive
    created_to: Optional[datetime] = None    # exclusive
    limit: Optional[int] = None
    newest_first: bool = False


@dataclass(frozen=True)
class GroupTotal:
    key: str
    total: Union[Decimal, int]


class CatalogStore(Protocol):
    def find_products(self, filter: ProductFilter | None = None) -> list[Product]: ...
    def find_product_by_id(self, product_id: str) -> Optional[Product]: ...
    def find_branches(self) -> list[Branch]: ...
    def find_branch_by_id(self, branch_id: str) -> Optional[Branch]: ...


class OrderStore(Protocol):
    def insert_order(self, order: OrderRecord, decrement_stock: bool = False) -> str: ...
    def find_orders(self, filter: OrderFilter | None = None) -> list[OrderRecord]: ...
    def aggregate_orders(self, group_key: str, sum_field: str) -> list[GroupTotal]: ...


def parse_id(value) -> Optional[int]:
    """Opaque string id -> integer primary key, or None when it can't be one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    s = str(value).strip()
    if not s.isdigit():
        return None
    return int(s)


class _SqlStore:
    def __init__(self, session):
        self._session = session

    @contextmanager
    def _unit_of_work(self, action: str) -> Iterator[None]:
        try:
            yield
        except PersistenceError:
            self._session.rollback()
            raise
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.warning("Rolled back %s: %s", action, exc)
            raise PersistenceError(f"Failed to {action}") from exc

    def _save(self, obj, action: str):
        with self._unit_of_work(action):
            self._session.add(obj)
            self._session.commit()
        return obj

    def _delete(self, obj, action: str) -> None:
        with self._unit_of_work(action):
            self._session.delete(obj)
            self._session.commit()


class SqlCatalogStore(_SqlStore):
    """Branches, products and employees backed by SQLAlchemy."""

    # ---- products -------------------------------------------------------

    def find_products(self, filter: ProductFilter | None = None) -> list[Product]:
        f = filter or ProductFilter()
        with self._unit_of_work("read products"):
            query = self._session.query(Product)
            if f.category is not None:
                query = query.filter(Product.category == f.category)
            if f.branch_id is not None:
                branch_pk = parse_id(f.branch_id)
                if branch_pk is None:
                    return []
                query = query.filter(Product.branches.any(Branch.id == branch_pk))
            if f.below_quantity is not None:
                query = query.filter(Product.quantity < f.below_quantity)
            if f.max_quantity is not None:
                query = query.filter(Product.quantity <= f.max_quantity)
            if f.updated_before is not None:
                query = query.filter(Product.updated_at <= f.updated_before)
            return query.order_by(Product.id.asc()).all()

    def find_product_by_id(self, product_id: str) -> Optional[Product]:
        pk = parse_id(product_id)
        if pk is None:
            return None
        with self._unit_of_work("read product"):
            return self._session.get(Product, pk)

    def add_product(self, product: Product) -> Product:
        return self._save(product, "create product")

    def update_product(self, product: Product) -> Product:
        return self._save(product, "update product")

    def delete_product(self, product: Product) -> None:
        self._delete(product, "delete product")

    # ---- branches -------------------------------------------------------

    def find_branches(self) -> list[Branch]:
        with self._unit_of_work("read branches"):
            return self._session.query(Branch).order_by(Branch.id.asc()).all()

    def find_branch_by_id(self, branch_id: str) -> Optional[Branch]:
        pk = parse_id(branch_id)
        if pk is None:
            return None
        with self._unit_of_work("read branch"):
            return self._session.get(Branch, pk)

    def find_branches_by_ids(self, branch_ids: Sequence[str]) -> list[Branch]:
        pks = [parse_id(b) for b in branch_ids]
        if any(pk is None for pk in pks):
            return []
        with self._unit_of_work("read branches"):
            return self._session.query(Branch).filter(Branch.id.in_(pks)).order_by(Branch.id.asc()).all()

    def add_branch(self, branch: Branch) -> Branch:
        return self._save(branch, "create branch")

    def update_branch(self, branch: Branch) -> Branch:
        return self._save(branch, "update branch")

    def delete_branch(self, branch: Branch) -> None:
        self._delete(branch, "delete branch")

    # ---- employees ------------------------------------------------------

    def find_employees(self, branch_id: str | None = None) -> list[Employee]:
        with self._unit_of_work("read employees"):
            query = self._session.query(Employee)
            if branch_id is not None:
                branch_pk = parse_id(branch_id)
                if branch_pk is None:
                    return []
                query = query.filter(Employee.branch_id == branch_pk)
            return query.order_by(Employee.id.asc()).all()

    def find_employee_by_id(self, employee_id: str) -> Optional[Employee]:
        pk = parse_id(employee_id)
        if pk is None:
            return None
        with self._unit_of_work("read employee"):
            return self._session.get(Employee, pk)

    def find_employee_by_email(self, email: str) -> Optional[Employee]:
        with self._unit_of_work("read employee"):
            return (
                self._session.query(Employee)
                .filter(Employee.email == (email or "").strip().lower())
                .first()
            )

    def add_employee(self, employee: Employee) -> Employee:
        return self._save(employee, "create employee")

    def update_employee(self, employee: Employee) -> Employee:
        return self._save(employee, "update employee")

    def delete_employee(self, employee: Employee) -> None:
        self._delete(employee, "delete employee")


# group key / sum field -> (column, lives on order_lines?)
_ORDER_GROUP_KEYS = {
    "branch_id": (Order.branch_id, False),
    "cashier_id": (Order.cashier_id, False),
    "payment_method": (Order.payment_method, False),
    "product_id": (OrderLine.product_id, True),
}
_ORDER_SUM_FIELDS = {
    "total_amount": (Order.total_amount, False),
    "amount_received": (Order.amount_received, False),
    "change_amount": (Order.change_amount, False),
    "quantity": (OrderLine.quantity, True),
    "subtotal": (OrderLine.subtotal, True),
    "discount": (OrderLine.discount, True),
}


class SqlOrderStore(_SqlStore):
    """Insert-only order persistence with typed aggregation."""

    def insert_order(self, order: OrderRecord, decrement_stock: bool = False) -> str:
        """
        Persist ``order`` and return its id.

        With decrement_stock=True the product quantities are reduced in the
        same transaction; if any product lacks the stock the whole insert is
        rolled back with StockConflictError.
        """
        with self._unit_of_work("insert order"):
            row = Order.from_record(order)
            self._session.add(row)
            if decrement_stock:
                self._decrement_stock(order)
            self._session.commit()
            return str(row.id)

    def _decrement_stock(self, order: OrderRecord) -> None:
        needed: dict[str, int] = {}
        for item in order.items:
            needed[item.product_id] = needed.get(item.product_id, 0) + item.quantity

        products = Product.__table__
        now = utcnow()
        for product_id, qty in needed.items():
            pk = parse_id(product_id)
            if pk is None:
                raise StockConflictError(
                    "Product not found",
                    details={"product_id": product_id},
                )
            result = self._session.execute(
                products.update()
                .where(products.c.id == pk, products.c.quantity >= qty)
                .values(quantity=products.c.quantity - qty, updated_at=now)
            )
            if result.rowcount != 1:
                raise StockConflictError(
                    "Insufficient stock to complete order",
                    details={"product_id": product_id, "requested_quantity": qty},
                )

    def find_orders(self, filter: OrderFilter | None = None) -> list[OrderRecord]:
        f = filter or OrderFilter()
        with self._unit_of_work("read orders"):
            query = self._session.query(Order)
            if f.branch_id is not None:
                query = query.filter(Order.branch_id == str(f.branch_id))
            if f.created_from is not None:
                query = query.filter(Order.created_at >= f.created_from)
            if f.created_to is not None:
                query = query.filter(Order.created_at < f.created_to)
            if f.newest_first:
                query = query.order_by(Order.created_at.desc(), Order.id.desc())
            else:
                query = query.order_by(Order.id.asc())
            if f.limit is not None:
                query = query.limit(f.limit)
            return [o.to_record() for o in query.all()]

    def find_order_by_id(self, order_id: str) -> Optional[OrderRecord]:
        pk = parse_id(order_id)
        if pk is None:
            return None
        with self._unit_of_work("read order"):
            row = self._session.get(Order, pk)
            return row.to_record() if row else None

    def aggregate_orders(self, group_key: str, sum_field: str) -> list[GroupTotal]:
        """
        Sum ``sum_field`` per ``group_key``, largest first.

        Ties keep first-insertion order. Summing an order-level field per a
        line-level key would count each order once per line, so that
        combination is rejected.
        """
        if group_key not in _ORDER_GROUP_KEYS:
            raise ValueError(f"Unsupported group key: {group_key}")
        if sum_field not in _ORDER_SUM_FIELDS:
            raise ValueError(f"Unsupported sum field: {sum_field}")

        key_col, key_on_lines = _ORDER_GROUP_KEYS[group_key]
        sum_col, sum_on_lines = _ORDER_SUM_FIELDS[sum_field]
        if key_on_lines and not sum_on_lines:
            raise ValueError(f"Cannot sum order field {sum_field} per line key {group_key}")

        uses_lines = key_on_lines or sum_on_lines
        first_seen = func.min(OrderLine.id if uses_lines else Order.id)
        total = func.sum(sum_col)

        stmt = select(key_col, total.label("total"), first_seen.label("first_seen"))
        if uses_lines:
            stmt = stmt.select_from(Order).join(OrderLine, OrderLine.order_id == Order.id)
        stmt = stmt.group_by(key_col).order_by(desc("total"), "first_seen")

        with self._unit_of_work("aggregate orders"):
            rows = self._session.execute(stmt).all()

        if sum_field == "quantity":
            return [GroupTotal(key=str(row[0]), total=int(row[1] or 0)) for row in rows]
        return [GroupTotal(key=str(row[0]), total=to_money(row[1] or 0)) for row in rows]


def get_stores() -> tuple[SqlCatalogStore, SqlOrderStore]:
    """Stores attached to the current app by ``create_app()``."""
    ext = current_app.extensions[EXTENSION_KEY]
    return ext["catalog"], ext["orders"]
