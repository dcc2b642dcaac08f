# Overview: Flask API routes for roles (profiles) and their module access lists.

from flask import Blueprint, current_app, jsonify, request

from ..services import users_service
from ..validation import DuplicateError, NotFoundError, ValidationError

roles_bp = Blueprint("roles", __name__, url_prefix="/api/roles")


@roles_bp.get("")
def list_roles():
    return jsonify(users_service.list_roles())


@roles_bp.post("")
def create_role():
    payload = request.get_json(silent=True) or {}
    try:
        role = users_service.create_role(payload)
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except DuplicateError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(role), 201


@roles_bp.put("/<int:role_id>")
def update_role(role_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        role = users_service.update_role(role_id, payload)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except DuplicateError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(role), 200


@roles_bp.delete("/<int:role_id>")
def delete_role(role_id: int):
    """Refused with 400 while any user still holds the role."""
    try:
        users_service.delete_role(role_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except Exception:
        current_app.logger.exception("Failed to delete role %s", role_id)
        return jsonify({"error": "Error deleting role"}), 500
    return jsonify({"message": "Role deleted"}), 200
