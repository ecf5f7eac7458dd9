# Overview: Flask API routes for employee management and credential checks.

from flask import Blueprint, jsonify, request

from ..services import employee_service
from ..stores import PersistenceError, get_stores
from ..validation import CatalogError
from .errors import catalog_error_response, persistence_error_response


employees_bp = Blueprint("employees", __name__, url_prefix="/api/employees")


@employees_bp.get("")
def list_employees():
    catalog, _ = get_stores()
    try:
        rows = employee_service.list_employees(catalog, branch_id=request.args.get("branch_id"))
    except PersistenceError as e:
        return persistence_error_response(e)
    return jsonify({"items": rows, "count": len(rows)}), 200


@employees_bp.get("/<employee_id>")
def get_employee(employee_id: str):
    catalog, _ = get_stores()
    try:
        employee = employee_service.get_employee(catalog, employee_id)
    except CatalogError as e:
        return catalog_error_response(e)
    except PersistenceError as e:
        return persistence_error_response(e)
    return jsonify({"employee": employee.to_dict()}), 200


@employees_bp.post("")
def create_employee():
    catalog, _ = get_stores()
    payload = request.get_json(silent=True) or {}
    try:
        employee = employee_service.create_employee(catalog, payload)
    except CatalogError as e:
        return catalog_error_response(e)
    except PersistenceError as e:
        return persistence_error_response(e)
    return jsonify({"employee": employee.to_dict()}), 201


@employees_bp.put("/<employee_id>")
def update_employee(employee_id: str):
    catalog, _ = get_stores()
    payload = request.get_json(silent=True) or {}
    try:
        employee = employee_service.update_employee(catalog, employee_id, payload)
    except CatalogError as e:
        return catalog_error_response(e)
    except PersistenceError as e:
        return persistence_error_response(e)
    return jsonify({"employee": employee.to_dict()}), 200


@employees_bp.delete("/<employee_id>")
def delete_employee(employee_id: str):
    catalog, _ = get_stores()
    try:
        employee_service.delete_employee(catalog, employee_id)
    except CatalogError as e:
        return catalog_error_response(e)
    except PersistenceError as e:
        return persistence_error_response(e)
    return jsonify({"deleted": True}), 200


@employees_bp.post("/authenticate")
def authenticate():
    """Check an email/password pair; returns the employee on success."""
    catalog, _ = get_stores()
    data = request.get_json(silent=True) or {}
    try:
        employee = employee_service.authenticate(catalog, data.get("email", ""), data.get("password", ""))
    except PersistenceError as e:
        return persistence_error_response(e)
    if employee is None:
        return jsonify({"error": {"kind": "invalid_credentials", "message": "Invalid email or password"}}), 401
    return jsonify({"employee": employee.to_dict()}), 200
