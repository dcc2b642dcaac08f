# Overview: Flask API routes for staff users; parses input and returns JSON responses.

"""
Staff user routes.

These live outside /api because the user management pages were written
against bare /users paths; the paths are part of the UI contract.
"""

from flask import Blueprint, current_app, jsonify, request

from ..services import users_service
from ..services.listing import parse_page_args, run_listing
from ..validation import DuplicateError, NotFoundError, ValidationError

users_bp = Blueprint("users", __name__, url_prefix="/users")


@users_bp.get("")
def list_users():
    """
    Paged user list.

    Query params: draw, page, size, search, sortBy, order (ASC default).
    """
    try:
        req = parse_page_args(request.args, users_service.USER_LISTING)
        page = run_listing(users_service.USER_LISTING, req)
        return jsonify(page.envelope(req.draw, lambda user: user.to_dict()))
    except Exception:
        current_app.logger.exception("Failed to list users")
        return jsonify({"error": "Error fetching users"}), 500


@users_bp.get("/<int:user_id>")
def get_user(user_id: int):
    try:
        return jsonify(users_service.get_user(user_id))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@users_bp.post("/create")
def create_user():
    payload = request.get_json(silent=True) or {}

    try:
        created = users_service.create_user(payload)
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except DuplicateError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Error creating user"}), 500

    return jsonify(created), 201


@users_bp.put("/<int:user_id>")
def update_user(user_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        updated = users_service.update_user(user_id, payload)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except DuplicateError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update user %s", user_id)
        return jsonify({"error": "Error updating user"}), 500

    return jsonify(updated), 200


@users_bp.delete("/<int:user_id>")
def delete_user(user_id: int):
    try:
        users_service.delete_user(user_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except Exception:
        current_app.logger.exception("Failed to delete user %s", user_id)
        return jsonify({"error": "Error deleting user"}), 500

    return jsonify({"message": "User deleted"}), 200


@users_bp.patch("/<int:user_id>/password")
def change_password(user_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        users_service.set_password(user_id, payload.get("password"))
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({"message": "Password updated"}), 200
