# backend/pharmacy/routes/system.py
"""
System health and static page serving.

The built front end lives in STATIC_DIR. HTML is never cached so a deploy is
picked up on the next navigation; every other asset is fingerprinted by the
build and cached for a year. Unknown GET paths fall back to index.html for the
client-side router, except under /api/ where a JSON 404 is returned.
"""

import os
import time

from flask import Blueprint, current_app, jsonify, send_from_directory
from sqlalchemy import text

from ..extensions import db

system_bp = Blueprint("system", __name__)

HTML_CACHE_CONTROL = "no-store"
ASSET_CACHE_CONTROL = "public, max-age=31536000, immutable"


def check_database_health() -> dict:
    """Round-trip a trivial query through the pool."""
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/api/health")
def health():
    """
    Returns:
    - 200: database reachable
    - 503: database unreachable
    """
    database_health = check_database_health()
    healthy = database_health["status"] == "healthy"
    return jsonify({
        "status": "healthy" if healthy else "unhealthy",
        "database": database_health,
    }), 200 if healthy else 503


def _static_dir() -> str:
    return current_app.config["STATIC_DIR"]


def _serve(filename: str):
    response = send_from_directory(_static_dir(), filename)
    if filename.endswith(".html"):
        response.headers["Cache-Control"] = HTML_CACHE_CONTROL
    else:
        response.headers["Cache-Control"] = ASSET_CACHE_CONTROL
    return response


def _index():
    if not os.path.isfile(os.path.join(_static_dir(), "index.html")):
        return jsonify({"error": "Not found"}), 404
    return _serve("index.html")


@system_bp.get("/")
def index():
    return _index()


@system_bp.get("/<path:path>")
def static_or_spa(path: str):
    if path == "api" or path.startswith("api/"):
        return jsonify({"error": "Not found"}), 404

    root = os.path.realpath(_static_dir())
    candidate = os.path.realpath(os.path.join(root, path))
    if candidate.startswith(root + os.sep) and os.path.isfile(candidate):
        return _serve(os.path.relpath(candidate, root))

    return _index()
