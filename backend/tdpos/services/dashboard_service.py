# Overview: Read-only dashboard metrics derived from catalog and order stores.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from decimal import Decimal
from typing import Any, Callable, Hashable, Iterable, Optional, TypeVar

from tdpos.money import ZERO, money_str, to_money
from tdpos.stores import CatalogStore, OrderFilter, OrderStore, ProductFilter
from tdpos.time_utils import days_ago, period_key, start_of_day, start_of_month, utcnow

# Stand-in cost of goods: there is no purchase-cost data, so COGS is taken
# as a fixed share of current stock value.
COGS_RATIO = Decimal("0.8")

PERIOD_WEEKLY = "weekly"
PERIOD_MONTHLY = "monthly"
PERIODS = (PERIOD_WEEKLY, PERIOD_MONTHLY)

UNKNOWN_NAME = "Unknown"

T = TypeVar("T")


class DashboardError(Exception):
    """Raised for invalid metric arguments."""
    kind = "dashboard_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


def group_sum(
    records: Iterable[T],
    key: Callable[[T], Hashable],
    value: Callable[[T], Any],
) -> dict[Hashable, Any]:
    """
    Group ``records`` by ``key`` and add up ``value``.

    Groups come back in first-seen order, which is what makes later stable
    sorts fall back to insertion order on ties.
    """
    totals: dict[Hashable, Any] = {}
    for record in records:
        k = key(record)
        v = value(record)
        totals[k] = totals[k] + v if k in totals else v
    return totals


def _stock_value(products) -> Decimal:
    return sum((to_money(p.price) * int(p.quantity or 0) for p in products), ZERO)


@dataclass(frozen=True)
class StoreStock:
    branch_id: str
    branch_name: str
    total_quantity: int
    total_value: Decimal

    def to_dict(self) -> dict:
        return {
            "branch_id": self.branch_id,
            "branch_name": self.branch_name,
            "total_quantity": self.total_quantity,
            "total_value": money_str(self.total_value),
        }


@dataclass(frozen=True)
class LowStockReport:
    count: int
    products: tuple

    def to_dict(self) -> dict:
        return {"count": self.count, "products": [p.to_dict() for p in self.products]}


@dataclass(frozen=True)
class StoreSales:
    branch_id: str
    branch_name: str
    total_sales: Decimal

    def to_dict(self) -> dict:
        return {
            "branch_id": self.branch_id,
            "branch_name": self.branch_name,
            "total_sales": money_str(self.total_sales),
        }


@dataclass(frozen=True)
class TopSeller:
    product_id: str
    product_name: str
    total_sold: int

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "total_sold": self.total_sold,
        }


@dataclass(frozen=True)
class PeriodSales:
    period: str
    total_sales: Decimal

    def to_dict(self) -> dict:
        return {"period": self.period, "total_sales": money_str(self.total_sales)}


@dataclass(frozen=True)
class MetricResult:
    """Outcome of one metric inside a snapshot: a value or an error, never both."""
    name: str
    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def serialize_metric(value: Any) -> Any:
    if isinstance(value, Decimal):
        return money_str(value)
    if isinstance(value, (list, tuple)):
        return [serialize_metric(v) for v in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


class DashboardService:
    """
    Aggregation engine for the dashboard.

    Every metric re-reads the stores; nothing is cached between calls, so two
    calls with no writes in between give the same answer. Reads are not
    isolated from concurrent writes.
    """

    def __init__(
        self,
        catalog: CatalogStore,
        orders: OrderStore,
        *,
        tz: tzinfo = timezone.utc,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.catalog = catalog
        self.orders = orders
        self.tz = tz
        self.clock = clock

    # ---- inventory ------------------------------------------------------

    def total_stock_value(self) -> Decimal:
        return _stock_value(self.catalog.find_products())

    def stock_by_store(self) -> list[StoreStock]:
        """Quantity and value per branch; a product counts once for each branch it is in."""
        products = self.catalog.find_products()
        rows = []
        for branch in self.catalog.find_branches():
            bid = str(branch.id)
            in_branch = [p for p in products if bid in p.branch_ids]
            rows.append(StoreStock(
                branch_id=bid,
                branch_name=branch.name,
                total_quantity=sum(int(p.quantity or 0) for p in in_branch),
                total_value=_stock_value(in_branch),
            ))
        return rows

    def out_of_stock_products(self) -> list:
        return self.catalog.find_products(ProductFilter(max_quantity=0))

    def dead_stock(self, days: int = 90) -> list:
        if days < 0:
            raise DashboardError("days must be >= 0")
        cutoff = days_ago(self.clock(), days)
        return self.catalog.find_products(ProductFilter(updated_before=cutoff))

    def inventory_turnover_rate(self) -> Decimal:
        total = self.total_stock_value()
        cogs = total * COGS_RATIO
        average_inventory = total / 2
        if average_inventory == 0:
            return Decimal("0")
        return (cogs / average_inventory).quantize(Decimal("0.01"))

    def low_stock_products(self, threshold: int = 10) -> LowStockReport:
        products = self.catalog.find_products(ProductFilter(below_quantity=threshold))
        return LowStockReport(count=len(products), products=tuple(products))

    # ---- sales ----------------------------------------------------------

    def _sales_since(self, start: datetime) -> Decimal:
        orders = self.orders.find_orders(OrderFilter(created_from=start))
        return sum((o.total_amount for o in orders), ZERO)

    def total_sales_today(self) -> Decimal:
        return self._sales_since(start_of_day(self.clock(), self.tz))

    def total_sales_this_month(self) -> Decimal:
        return self._sales_since(start_of_month(self.clock(), self.tz))

    def sales_by_store(self) -> list[StoreSales]:
        rows = []
        for group in self.orders.aggregate_orders("branch_id", "total_amount"):
            branch = self.catalog.find_branch_by_id(group.key)
            rows.append(StoreSales(
                branch_id=group.key,
                branch_name=branch.name if branch else UNKNOWN_NAME,
                total_sales=group.total,
            ))
        return rows

    def top_selling_products(self, limit: int = 5) -> list[TopSeller]:
        if limit < 0:
            raise DashboardError("limit must be >= 0")
        rows = []
        for group in self.orders.aggregate_orders("product_id", "quantity")[:limit]:
            product = self.catalog.find_product_by_id(group.key)
            rows.append(TopSeller(
                product_id=group.key,
                product_name=product.name if product else UNKNOWN_NAME,
                total_sold=int(group.total),
            ))
        return rows

    def sales_growth(self, period: str = PERIOD_WEEKLY) -> list[PeriodSales]:
        if period not in PERIODS:
            raise DashboardError(f"period must be one of {', '.join(PERIODS)}")
        totals = group_sum(
            self.orders.find_orders(),
            key=lambda o: period_key(o.created_at, period, self.tz),
            value=lambda o: o.total_amount,
        )
        return [PeriodSales(period=k, total_sales=v) for k, v in sorted(totals.items())]

    # ---- combined -------------------------------------------------------

    def snapshot(
        self,
        *,
        dead_stock_days: int = 90,
        low_stock_threshold: int = 10,
        top_limit: int = 5,
        growth_period: str = PERIOD_WEEKLY,
    ) -> dict[str, MetricResult]:
        """
        Evaluate every metric independently.

        A failing read only marks its own metric as failed; the caller
        decides whether a partial dashboard is good enough.
        """
        metrics: dict[str, Callable[[], Any]] = {
            "total_stock_value": self.total_stock_value,
            "stock_by_store": self.stock_by_store,
            "out_of_stock_products": self.out_of_stock_products,
            "dead_stock": lambda: self.dead_stock(dead_stock_days),
            "inventory_turnover_rate": self.inventory_turnover_rate,
            "low_stock_products": lambda: self.low_stock_products(low_stock_threshold),
            "total_sales_today": self.total_sales_today,
            "total_sales_this_month": self.total_sales_this_month,
            "sales_by_store": self.sales_by_store,
            "top_selling_products": lambda: self.top_selling_products(top_limit),
            "sales_growth": lambda: self.sales_growth(growth_period),
        }
        results: dict[str, MetricResult] = {}
        for name, compute in metrics.items():
            try:
                results[name] = MetricResult(name=name, value=compute())
            except Exception as exc:  # one metric must not sink the others
                results[name] = MetricResult(name=name, error=str(exc) or exc.__class__.__name__)
        return results
