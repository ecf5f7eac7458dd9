# Overview: Flask API routes for branch management; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..models.catalog import BRANCH_LOCATIONS
from ..services import branch_service
from ..stores import PersistenceError, get_stores
from ..validation import CatalogError
from .errors import catalog_error_response, persistence_error_response


branches_bp = Blueprint("branches", __name__, url_prefix="/api/branches")


@branches_bp.get("/locations")
def list_locations():
    return jsonify({"locations": list(BRANCH_LOCATIONS)}), 200


@branches_bp.get("")
def list_branches():
    catalog, _ = get_stores()
    try:
        branches = branch_service.list_branches(catalog)
    except PersistenceError as e:
        return persistence_error_response(e)
    return jsonify({"items": [b.to_dict() for b in branches], "count": len(branches)}), 200


@branches_bp.get("/<branch_id>")
def get_branch(branch_id: str):
    catalog, _ = get_stores()
    try:
        branch = branch_service.get_branch(catalog, branch_id)
    except CatalogError as e:
        return catalog_error_response(e)
    except PersistenceError as e:
        return persistence_error_response(e)
    return jsonify({"branch": branch.to_dict()}), 200


@branches_bp.post("")
def create_branch():
    catalog, _ = get_stores()
    payload = request.get_json(silent=True) or {}
    try:
        branch = branch_service.create_branch(catalog, payload)
    except CatalogError as e:
        return catalog_error_response(e)
    except PersistenceError as e:
        return persistence_error_response(e)
    return jsonify({"branch": branch.to_dict()}), 201


@branches_bp.put("/<branch_id>")
def update_branch(branch_id: str):
    catalog, _ = get_stores()
    payload = request.get_json(silent=True) or {}
    try:
        branch = branch_service.update_branch(catalog, branch_id, payload)
    except CatalogError as e:
        return catalog_error_response(e)
    except PersistenceError as e:
        return persistence_error_response(e)
    return jsonify({"branch": branch.to_dict()}), 200


@branches_bp.delete("/<branch_id>")
def delete_branch(branch_id: str):
    catalog, _ = get_stores()
    try:
        branch_service.delete_branch(catalog, branch_id)
    except CatalogError as e:
        return catalog_error_response(e)
    except PersistenceError as e:
        return persistence_error_response(e)
    return jsonify({"deleted": True}), 200
