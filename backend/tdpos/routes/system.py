# Overview: Flask API routes for liveness checks.

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from ..extensions import db


system_bp = Blueprint("system", __name__)


@system_bp.get("/health")
def health():
    try:
        db.session.execute(text("SELECT 1"))
        database = "ok"
    except Exception:
        current_app.logger.exception("Health check database probe failed")
        database = "unavailable"
    status = 200 if database == "ok" else 503
    return jsonify({
        "status": "healthy" if status == 200 else "degraded",
        "database": database,
    }), status
