# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product management routes.

Query params on GET /api/products:
- category: tire | bale
- branch_id: only products available in this branch
- below_quantity: only products with quantity < n
"""
from flask import Blueprint, jsonify, request

from ..services import product_service
from ..stores import PersistenceError, get_stores
from ..validation import CatalogError
from .errors import bad_request, catalog_error_response, persistence_error_response


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    catalog, _ = get_stores()
    below = request.args.get("below_quantity")
    if below is not None and not below.lstrip("-").isdigit():
        return bad_request("below_quantity must be an integer")

    try:
        products = product_service.list_products(
            catalog,
            category=request.args.get("category"),
            branch_id=request.args.get("branch_id"),
            below_quantity=int(below) if below is not None else None,
        )
    except CatalogError as e:
        return catalog_error_response(e)
    except PersistenceError as e:
        return persistence_error_response(e)
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)}), 200


@products_bp.get("/<product_id>")
def get_product(product_id: str):
    catalog, _ = get_stores()
    try:
        product = product_service.get_product(catalog, product_id)
    except CatalogError as e:
        return catalog_error_response(e)
    except PersistenceError as e:
        return persistence_error_response(e)
    return jsonify({"product": product.to_dict()}), 200


@products_bp.post("")
def create_product():
    catalog, _ = get_stores()
    payload = request.get_json(silent=True) or {}
    try:
        product = product_service.create_product(catalog, payload)
    except CatalogError as e:
        return catalog_error_response(e)
    except PersistenceError as e:
        return persistence_error_response(e)
    return jsonify({"product": product.to_dict()}), 201


@products_bp.put("/<product_id>")
def update_product(product_id: str):
    catalog, _ = get_stores()
    payload = request.get_json(silent=True) or {}
    try:
        product = product_service.update_product(catalog, product_id, payload)
    except CatalogError as e:
        return catalog_error_response(e)
    except PersistenceError as e:
        return persistence_error_response(e)
    return jsonify({"product": product.to_dict()}), 200


@products_bp.delete("/<product_id>")
def delete_product(product_id: str):
    catalog, _ = get_stores()
    try:
        product_service.delete_product(catalog, product_id)
    except CatalogError as e:
        return catalog_error_response(e)
    except PersistenceError as e:
        return persistence_error_response(e)
    return jsonify({"deleted": True}), 200
