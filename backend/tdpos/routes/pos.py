# Overview: Flask API routes for the POS terminal: session cart, checkout and receipts.

"""
POS routes.

The cart for the current terminal lives in the signed Flask session, so
every request rebuilds a Cart from the session, applies one mutation and
writes it back. Cart warnings (out of stock, stock limit, bad discount)
come back with status 200 and a ``warning`` object; the cart is unchanged
in that case.

Checkout:
- validation failures -> 422 with the error kind, cart kept
- store failures      -> 503 (409 on a stock conflict), cart kept
- success             -> 201, cart cleared, order + receipt returned
"""
from flask import Blueprint, current_app, jsonify, request, session

from ..services.cart_service import Cart, ProductSnapshot
from ..services.checkout_service import CheckoutError, CheckoutService
from ..services.receipt_service import receipt_for_order
from ..stores import PersistenceError, get_stores
from ..validation import coerce_int
from .errors import bad_request, persistence_error_response


pos_bp = Blueprint("pos", __name__, url_prefix="/api/pos")

CART_KEY = "cart"
CONTEXT_KEY = "pos_context"


def _load_cart() -> Cart:
    return Cart.from_dict(
        session.get(CART_KEY),
        clamp_discounts=current_app.config["CLAMP_LINE_DISCOUNTS"],
    )


def _save_cart(cart: Cart) -> None:
    session[CART_KEY] = cart.to_dict()


def _cart_payload(cart: Cart) -> dict:
    return {
        "items": [item.to_dict() for item in cart.items],
        "totals": cart.compute_totals().to_dict(),
        "item_count": len(cart),
    }


def _cart_response(cart: Cart, warning=None):
    body = {"cart": _cart_payload(cart)}
    if warning is not None:
        body["warning"] = warning.to_dict()
    return jsonify(body), 200


def _int_arg(data: dict, key: str, default=None) -> int:
    return coerce_int(key, data.get(key, default))


def _receipt_for(order):
    catalog, _ = get_stores()
    return receipt_for_order(catalog, order, current_app.config)


# ---- cart -----------------------------------------------------------------


@pos_bp.get("/cart")
def get_cart():
    return _cart_response(_load_cart())


@pos_bp.post("/cart/items")
def add_cart_item():
    data = request.get_json(silent=True) or {}
    try:
        quantity = _int_arg(data, "quantity", 1)
    except ValueError as e:
        return bad_request(str(e))

    catalog, _ = get_stores()
    try:
        product = catalog.find_product_by_id(data.get("product_id"))
    except PersistenceError as e:
        return persistence_error_response(e)
    if product is None:
        return jsonify({"error": {"kind": "not_found", "message": "Product not found"}}), 404

    cart = _load_cart()
    warning = cart.add_item(ProductSnapshot.from_product(product), quantity)
    _save_cart(cart)
    return _cart_response(cart, warning)


@pos_bp.patch("/cart/items/<product_id>")
def set_cart_item_quantity(product_id: str):
    data = request.get_json(silent=True) or {}
    try:
        quantity = _int_arg(data, "quantity")
    except ValueError as e:
        return bad_request(str(e))

    cart = _load_cart()
    warning = cart.set_quantity(product_id, quantity)
    _save_cart(cart)
    return _cart_response(cart, warning)


@pos_bp.post("/cart/items/<product_id>/increment")
def increment_cart_item(product_id: str):
    cart = _load_cart()
    warning = cart.increment(product_id)
    _save_cart(cart)
    return _cart_response(cart, warning)


@pos_bp.post("/cart/items/<product_id>/decrement")
def decrement_cart_item(product_id: str):
    cart = _load_cart()
    warning = cart.decrement(product_id)
    _save_cart(cart)
    return _cart_response(cart, warning)


@pos_bp.delete("/cart/items/<product_id>")
def remove_cart_item(product_id: str):
    cart = _load_cart()
    cart.remove_item(product_id)
    _save_cart(cart)
    return _cart_response(cart)


@pos_bp.post("/cart/items/<product_id>/discount")
def apply_line_discount(product_id: str):
    data = request.get_json(silent=True) or {}
    cart = _load_cart()
    warning = cart.apply_line_discount(product_id, data.get("amount"))
    _save_cart(cart)
    return _cart_response(cart, warning)


@pos_bp.post("/cart/discount")
def apply_cart_discount():
    data = request.get_json(silent=True) or {}
    cart = _load_cart()
    warning = cart.apply_cart_discount(data.get("amount"))
    _save_cart(cart)
    return _cart_response(cart, warning)


@pos_bp.delete("/cart/discount")
def remove_cart_discount():
    cart = _load_cart()
    cart.remove_cart_discount()
    _save_cart(cart)
    return _cart_response(cart)


@pos_bp.delete("/cart")
def clear_cart():
    cart = _load_cart()
    cart.clear()
    _save_cart(cart)
    return _cart_response(cart)


# ---- sale context / checkout ---------------------------------------------


@pos_bp.get("/context")
def get_context():
    return jsonify({"context": session.get(CONTEXT_KEY) or {}}), 200


@pos_bp.post("/context")
def set_context():
    """Remember which branch and cashier this terminal is selling for."""
    data = request.get_json(silent=True) or {}
    context = {
        "branch_id": str(data["branch_id"]) if data.get("branch_id") not in (None, "") else None,
        "cashier_id": str(data["cashier_id"]) if data.get("cashier_id") not in (None, "") else None,
    }
    session[CONTEXT_KEY] = context
    return jsonify({"context": context}), 200


@pos_bp.post("/checkout")
def checkout():
    data = request.get_json(silent=True) or {}
    context = session.get(CONTEXT_KEY) or {}
    branch_id = data.get("branch_id") or context.get("branch_id")
    cashier_id = data.get("cashier_id") or context.get("cashier_id")

    _, orders = get_stores()
    service = CheckoutService(
        orders,
        decrement_stock=current_app.config["DECREMENT_STOCK_ON_CHECKOUT"],
    )
    cart = _load_cart()

    try:
        order = service.submit_payment(
            cart.snapshot(),
            branch_id,
            cashier_id,
            data.get("payment_method"),
            amount_received=data.get("amount_received"),
            reference=data.get("reference"),
        )
    except CheckoutError as e:
        return jsonify({"error": e.to_dict()}), 422
    except ValueError as e:
        return bad_request(str(e))
    except PersistenceError as e:
        return persistence_error_response(e)

    cart.clear()
    _save_cart(cart)
    current_app.logger.info(
        "Order %s completed (branch=%s, cashier=%s, total=%s)",
        order.order_number, order.branch_id, order.cashier_id, order.total_amount,
    )

    try:
        receipt, text = _receipt_for(order)
    except PersistenceError as e:
        # the sale is stored; the receipt can be fetched again later
        current_app.logger.warning("Receipt lookup failed for order %s: %s", order.id, e)
        return jsonify({"order": order.to_dict(), "receipt": None, "receipt_text": None}), 201

    return jsonify({
        "order": order.to_dict(),
        "receipt": receipt.to_dict(),
        "receipt_text": text,
    }), 201


@pos_bp.get("/orders/<order_id>/receipt")
def get_receipt(order_id: str):
    _, orders = get_stores()
    try:
        order = orders.find_order_by_id(order_id)
        if order is None:
            return jsonify({"error": {"kind": "not_found", "message": "Order not found"}}), 404
        receipt, text = _receipt_for(order)
    except PersistenceError as e:
        return persistence_error_response(e)
    return jsonify({"receipt": receipt.to_dict(), "receipt_text": text}), 200
