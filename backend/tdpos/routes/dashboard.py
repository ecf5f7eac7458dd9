# Overview: Flask API routes for dashboard metrics; read-only.

from flask import Blueprint, current_app, jsonify, request

from ..services.dashboard_service import (
    PERIOD_WEEKLY,
    DashboardError,
    DashboardService,
    serialize_metric,
)
from ..stores import PersistenceError, get_stores
from ..time_utils import resolve_timezone, utcnow
from .errors import bad_request, persistence_error_response


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


def _service() -> DashboardService:
    catalog, orders = get_stores()
    return DashboardService(
        catalog,
        orders,
        tz=resolve_timezone(current_app.config["BUSINESS_TIMEZONE"]),
        clock=utcnow,
    )


def _int_query(name: str, default: int) -> int:
    value = request.args.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise DashboardError(f"{name} must be an integer")


def _metric(compute):
    try:
        value = compute()
    except DashboardError as e:
        return bad_request(e.message, kind=e.kind)
    except PersistenceError as e:
        return persistence_error_response(e)
    return jsonify({"value": serialize_metric(value)}), 200


@dashboard_bp.get("/summary")
def summary():
    """
    Every metric in one response.

    A metric whose read failed carries ``ok: false`` and an error message;
    the others are still returned.
    """
    cfg = current_app.config
    try:
        results = _service().snapshot(
            dead_stock_days=_int_query("dead_stock_days", cfg["DEAD_STOCK_DAYS"]),
            low_stock_threshold=_int_query("low_stock_threshold", cfg["LOW_STOCK_THRESHOLD"]),
            top_limit=_int_query("top_limit", cfg["TOP_SELLERS_LIMIT"]),
            growth_period=request.args.get("period", PERIOD_WEEKLY),
        )
    except DashboardError as e:
        return bad_request(e.message, kind=e.kind)

    metrics = {}
    for name, result in results.items():
        if not result.ok:
            current_app.logger.warning("Dashboard metric %s failed: %s", name, result.error)
        metrics[name] = {
            "ok": result.ok,
            "value": serialize_metric(result.value) if result.ok else None,
            "error": result.error,
        }
    return jsonify({"metrics": metrics}), 200


@dashboard_bp.get("/stock-value")
def stock_value():
    return _metric(lambda: _service().total_stock_value())


@dashboard_bp.get("/stock-by-store")
def stock_by_store():
    return _metric(lambda: _service().stock_by_store())


@dashboard_bp.get("/out-of-stock")
def out_of_stock():
    return _metric(lambda: _service().out_of_stock_products())


@dashboard_bp.get("/dead-stock")
def dead_stock():
    return _metric(lambda: _service().dead_stock(
        _int_query("days", current_app.config["DEAD_STOCK_DAYS"])
    ))


@dashboard_bp.get("/inventory-turnover")
def inventory_turnover():
    return _metric(lambda: _service().inventory_turnover_rate())


@dashboard_bp.get("/low-stock")
def low_stock():
    return _metric(lambda: _service().low_stock_products(
        _int_query("threshold", current_app.config["LOW_STOCK_THRESHOLD"])
    ))


@dashboard_bp.get("/sales-today")
def sales_today():
    return _metric(lambda: _service().total_sales_today())


@dashboard_bp.get("/sales-this-month")
def sales_this_month():
    return _metric(lambda: _service().total_sales_this_month())


@dashboard_bp.get("/sales-by-store")
def sales_by_store():
    return _metric(lambda: _service().sales_by_store())


@dashboard_bp.get("/top-sellers")
def top_sellers():
    return _metric(lambda: _service().top_selling_products(
        _int_query("limit", current_app.config["TOP_SELLERS_LIMIT"])
    ))


@dashboard_bp.get("/sales-growth")
def sales_growth():
    return _metric(lambda: _service().sales_growth(request.args.get("period", PERIOD_WEEKLY)))
