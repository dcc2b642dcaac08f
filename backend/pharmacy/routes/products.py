# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product catalog routes.

Photos travel inside the JSON body (data URI or bare base64) and come back as
normalized data URIs. Large photos are bounded by MAX_CONTENT_LENGTH; the
app-level 413 handler answers oversized bodies.
"""

from flask import Blueprint, current_app, jsonify, request

from ..services import products_service
from ..services.listing import parse_page_args, run_listing
from ..validation import NotFoundError, ValidationError

products_bp = Blueprint("products", __name__, url_prefix="/api/productos")


@products_bp.get("")
def list_products():
    """
    Paged product list.

    Query params: draw, page, size, search (name, category), sortBy, order.
    """
    try:
        req = parse_page_args(request.args, products_service.PRODUCT_LISTING)
        page = run_listing(products_service.PRODUCT_LISTING, req)
        return jsonify(page.envelope(req.draw, lambda product: product.to_dict()))
    except Exception:
        current_app.logger.exception("Failed to list products")
        return jsonify({"error": "Error fetching products"}), 500


@products_bp.get("/<int:product_id>")
def get_product(product_id: int):
    try:
        return jsonify(products_service.get_product(product_id))
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@products_bp.post("")
def create_product_route():
    payload = request.get_json(silent=True) or {}
    try:
        created = products_service.create_product(payload)
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Error creating product"}), 500
    return jsonify(created), 201


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        updated = products_service.update_product(product_id, payload)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except Exception:
        current_app.logger.exception("Failed to update product %s", product_id)
        return jsonify({"error": "Error updating product"}), 500
    return jsonify(updated), 200


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    try:
        products_service.delete_product(product_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except Exception:
        current_app.logger.exception("Failed to delete product %s", product_id)
        return jsonify({"error": "Error deleting product"}), 500
    return jsonify({"message": "Product deleted"}), 200
