# Overview: JSON error bodies shared by the API blueprints.

from flask import current_app, jsonify

from ..stores import PersistenceError, StockConflictError
from ..validation import CatalogError, ConflictError, NotFoundError


def catalog_error_response(exc: CatalogError):
    if isinstance(exc, NotFoundError):
        status = 404
    elif isinstance(exc, ConflictError):
        status = 409
    else:
        status = 400
    return jsonify({"error": exc.to_dict()}), status


def persistence_error_response(exc: PersistenceError):
    current_app.logger.warning("Store call failed: %s", exc)
    status = 409 if isinstance(exc, StockConflictError) else 503
    return jsonify({"error": exc.to_dict()}), status


def bad_request(message: str, kind: str = "validation_error"):
    return jsonify({"error": {"kind": kind, "message": message}}), 400

