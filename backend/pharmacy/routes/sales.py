# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""Sales API routes"""

from flask import Blueprint, current_app, jsonify, request

from ..services import sales_service
from ..services.listing import parse_datatables_args, run_listing
from ..services.sales_service import (
    InsufficientStockError,
    SaleCreationError,
    SaleNotFoundError,
)
from ..validation import ValidationError

sales_bp = Blueprint("sales", __name__, url_prefix="/api/ventas")


@sales_bp.get("")
def list_sales_route():
    """
    Sales list for the DataTables grid.

    Query params: draw, start, length, search[value], order[0][column],
    order[0][dir]. Column indices follow id, client, email, address, date,
    documentNumber, paymentMethod, items, total.
    """
    try:
        req = parse_datatables_args(request.args, sales_service.SALES_LISTING)
        page = run_listing(sales_service.SALES_LISTING, req)
        return jsonify(page.envelope(req.draw, sales_service.serialize_sale_row))
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify({"error": "Error fetching sales"}), 500


@sales_bp.get("/<int:sale_id>")
def get_sale_route(sale_id: int):
    """Sale header with client name and its lines."""
    try:
        return jsonify(sales_service.get_sale(sale_id)), 200
    except SaleNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load sale %s", sale_id)
        return jsonify({"error": "Error fetching sale"}), 500


@sales_bp.post("")
def create_sale_route():
    """
    Create a sale with its lines and decrement stock, all in one transaction.

    Body: header fields (clientId, total, ...) plus
    lines: [{productId, quantity, price}].
    """
    payload = request.get_json(silent=True)

    try:
        sale_id = sales_service.create_sale(payload)
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except InsufficientStockError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except SaleCreationError:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Error creating sale"}), 500
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Error creating sale"}), 500

    return jsonify({"id": sale_id}), 201


@sales_bp.delete("/<int:sale_id>")
def delete_sale_route(sale_id: int):
    """Delete a sale and its lines. Stock is not restored."""
    try:
        sales_service.delete_sale(sale_id)
    except SaleNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete sale %s", sale_id)
        return jsonify({"error": "Error deleting sale"}), 500

    return jsonify({"message": "Sale deleted"}), 200
