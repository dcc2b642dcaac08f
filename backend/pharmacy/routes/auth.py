# Overview: Flask API route for staff login; returns the profile and access lists.

"""
Login route.

There is no server-side session: the browser stores the returned user and its
access list and gates pages itself.
"""

from flask import Blueprint, current_app, jsonify, request

from ..services import auth_service

auth_bp = Blueprint("auth", __name__)


@auth_bp.post("/login")
def login_route():
    data = request.get_json(silent=True) or {}
    username = data.get("username")
    password = data.get("password")

    if not isinstance(username, str) or not isinstance(password, str) or not username or not password:
        return jsonify({"error": "username and password required"}), 400

    try:
        user = auth_service.authenticate(username.strip(), password)
    except Exception:
        current_app.logger.exception("Login failed for %s", username)
        return jsonify({"error": "Internal server error"}), 500

    if user is None:
        return jsonify({"error": "Invalid credentials"}), 401

    current_app.logger.info("User %s logged in", user.username)
    return jsonify({
        "message": "Login successful",
        "user": auth_service.login_payload(user),
    }), 200
