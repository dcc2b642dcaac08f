# Overview: Flask API routes for clients; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..services import clients_service
from ..services.listing import parse_page_args, run_listing
from ..validation import NotFoundError, ValidationError

clients_bp = Blueprint("clients", __name__, url_prefix="/api/clientes")


@clients_bp.get("")
def list_clients():
    """
    Paged client list.

    Query params: draw, page, size, search (dni, names, email), sortBy, order.
    Anything other than order=ASC sorts descending.
    """
    try:
        req = parse_page_args(request.args, clients_service.CLIENT_LISTING)
        page = run_listing(clients_service.CLIENT_LISTING, req)
        return jsonify(page.envelope(req.draw, lambda client: client.to_dict()))
    except Exception:
        current_app.logger.exception("Failed to list clients")
        return jsonify({"error": "Error fetching clients"}), 500


@clients_bp.get("/<int:client_id>")
def get_client(client_id: int):
    try:
        return jsonify(clients_service.get_client(client_id))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@clients_bp.post("")
def create_client():
    payload = request.get_json(silent=True) or {}
    try:
        created = clients_service.create_client(payload)
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except Exception:
        current_app.logger.exception("Failed to create client")
        return jsonify({"error": "Error creating client"}), 500
    return jsonify(created), 201


@clients_bp.put("/<int:client_id>")
def update_client(client_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        updated = clients_service.update_client(client_id, payload)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except Exception:
        current_app.logger.exception("Failed to update client %s", client_id)
        return jsonify({"error": "Error updating client"}), 500
    return jsonify(updated), 200


@clients_bp.delete("/<int:client_id>")
def delete_client(client_id: int):
    try:
        clients_service.delete_client(client_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except Exception:
        current_app.logger.exception("Failed to delete client %s", client_id)
        return jsonify({"error": "Error deleting client"}), 500
    return jsonify({"message": "Client deleted"}), 200
