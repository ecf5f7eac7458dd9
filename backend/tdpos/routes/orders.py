# Overview: Flask API routes for reading completed orders.

from flask import Blueprint, jsonify, request

from ..stores import OrderFilter, PersistenceError, get_stores
from .errors import bad_request, persistence_error_response


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")

DEFAULT_BRANCH_LIMIT = 50


@orders_bp.get("")
def list_orders():
    """
    All orders in insertion order, or, with branch_id, that branch's most
    recent orders first (limit defaults to 50).
    """
    _, orders = get_stores()
    branch_id = request.args.get("branch_id")
    limit = request.args.get("limit", type=int)
    if limit is not None and limit <= 0:
        return bad_request("limit must be positive")

    if branch_id:
        f = OrderFilter(branch_id=branch_id, limit=limit or DEFAULT_BRANCH_LIMIT, newest_first=True)
    else:
        f = OrderFilter(limit=limit)

    try:
        records = orders.find_orders(f)
    except PersistenceError as e:
        return persistence_error_response(e)
    return jsonify({"items": [o.to_dict() for o in records], "count": len(records)}), 200


@orders_bp.get("/<order_id>")
def get_order(order_id: str):
    _, orders = get_stores()
    try:
        record = orders.find_order_by_id(order_id)
    except PersistenceError as e:
        return persistence_error_response(e)
    if record is None:
        return jsonify({"error": {"kind": "not_found", "message": "Order not found"}}), 404
    return jsonify({"order": record.to_dict()}), 200
