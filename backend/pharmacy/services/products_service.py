# backend/pharmacy/services/products_service.py
"""
Products Service

Stock (quantity) is set here on create/update; afterwards it only moves when a
sale is created. Photos arrive as data URIs or base64 inside the JSON body and
are stored as raw bytes.
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)
from .listing import CatalogListing
from .photos import decode_photo_upload

PRODUCT_POLICY = ModelValidationPolicy(
    fields={
        "name": "name",
        "category": "category",
        "quantity": "quantity",
        "price": "price",
    },
    required_on_create={"name", "category", "quantity", "price"},
)

PRODUCT_LISTING = CatalogListing(
    base_query=lambda: db.session.query(Product),
    count_query=lambda: db.session.query(Product),
    sortable={
        "id": Product.id,
        "name": Product.name,
        "category": Product.category,
        "quantity": Product.quantity,
        "price": Product.price,
    },
    searchable=(Product.name, Product.category),
)


def _get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


def _photo_patch(payload: dict, patch: dict) -> None:
    if "photo" in payload:
        try:
            patch["photo"] = decode_photo_upload(payload.get("photo"))
        except ValidationError as e:
            raise ValidationError("Validation failed", [{"field": "photo", "message": str(e)}])


def get_product(product_id: int) -> dict:
    return _get_product(product_id).to_dict()


def create_product(payload: dict) -> dict:
    """Create product using a validated patch dict."""
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)
    _photo_patch(payload, patch)

    product = Product(**patch)
    db.session.add(product)
    db.session.commit()
    return product.to_dict()


def update_product(product_id: int, payload: dict) -> dict:
    """
    Replace a product's fields. The photo is only touched when the payload
    carries a "photo" key; null clears it.
    """
    product = _get_product(product_id)
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)
    _photo_patch(payload, patch)

    for key, value in patch.items():
        setattr(product, key, value)
    db.session.commit()
    return product.to_dict()


def delete_product(product_id: int) -> None:
    try:
        deleted = db.session.query(Product).filter_by(id=product_id).delete()
        if not deleted:
            raise NotFoundError("Product not found")
        db.session.commit()
    except NotFoundError:
        db.session.rollback()
        raise
    except IntegrityError:
        db.session.rollback()
        raise ValidationError("Product appears on sales and cannot be deleted")
