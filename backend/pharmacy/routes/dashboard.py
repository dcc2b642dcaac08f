# Overview: Flask API route for the rolling-window dashboard.

from flask import Blueprint, current_app, jsonify, request

from ..services import dashboard_service

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("")
def dashboard_route():
    """
    KPIs, daily revenue and top-8 rankings.

    Query params:
    - days: int (optional) - window length, clamped to [1, 365]
    """
    days = dashboard_service.parse_days(
        request.args.get("days"),
        default=current_app.config.get("DASHBOARD_DEFAULT_DAYS", 30),
    )
    try:
        return jsonify(dashboard_service.compute_dashboard(days)), 200
    except Exception:
        current_app.logger.exception("Failed to compute dashboard")
        return jsonify({"error": "Error loading dashboard"}), 500
