"""
Sales Service - atomic sale creation and retrieval

A sale is written once: header, lines and stock decrements commit together or
not at all. Product rows are locked (SELECT ... FOR UPDATE) in id order before
their stock moves, so two sales of the same product serialize instead of both
reading the same pre-decrement quantity.

Deleting a sale removes the header and its lines; stock is not given back.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from flask import current_app
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Client, Product, Sale, SaleLine
from ..time_utils import to_iso
from ..validation import ModelValidationPolicy, ValidationError, validate_payload
from .concurrency import lock_for_update, transaction
from .listing import CatalogListing
from .photos import normalize_photo


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class SaleNotFoundError(SaleError):
    """The sale id does not exist."""


class InsufficientStockError(SaleError):
    """Raised when negative stock is disabled and a line would oversell."""


class SaleCreationError(SaleError):
    """Any failure while writing a sale; the transaction was rolled back."""


SALE_HEADER_POLICY = ModelValidationPolicy(
    fields={
        "clientId": "client_id",
        "userId": "user_id",
        "documentType": "document_type",
        "documentNumber": "document_number",
        "ruc": "ruc",
        "businessName": "business_name",
        "paymentMethod": "payment_method",
        "cardNumber": "card_number",
        "cashAmount": "cash_amount",
        "changeAmount": "change_amount",
        "total": "total",
    },
    required_on_create={"clientId", "total"},
)


@dataclass(frozen=True)
class SaleLineInput:
    product_id: int
    quantity: int
    unit_price: Decimal


def _strict_int(value) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def _decimal(value) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except ArithmeticError:
        return None
    return number if number.is_finite() else None


def parse_lines(raw) -> list[SaleLineInput]:
    """Validate the line array: non-empty, productId >= 1, quantity > 0, price >= 0."""
    if not isinstance(raw, list) or not raw:
        raise ValidationError(
            "Validation failed",
            [{"field": "lines", "message": "A sale needs at least one line"}],
        )

    errors = []
    lines = []
    for idx, entry in enumerate(raw):
        prefix = f"lines[{idx}]"
        if not isinstance(entry, dict):
            errors.append({"field": prefix, "message": "line must be an object"})
            continue

        product_id = _strict_int(entry.get("productId"))
        quantity = _strict_int(entry.get("quantity"))
        unit_price = _decimal(entry.get("price"))

        if product_id is None or product_id < 1:
            errors.append({"field": f"{prefix}.productId", "message": "productId must be a positive integer"})
        if quantity is None or quantity <= 0:
            errors.append({"field": f"{prefix}.quantity", "message": "quantity must be an integer > 0"})
        if unit_price is None or unit_price < 0:
            errors.append({"field": f"{prefix}.price", "message": "price must be a number >= 0"})

        if product_id and quantity and unit_price is not None:
            lines.append(SaleLineInput(product_id=product_id, quantity=quantity, unit_price=unit_price))

    if errors:
        raise ValidationError("Validation failed", errors)
    return lines


def _validate_header(payload: dict) -> dict:
    header = validate_payload(model=Sale, payload=payload, policy=SALE_HEADER_POLICY, partial=False)
    errors = []
    for key, name in (("total", "total"), ("cash_amount", "cashAmount"), ("change_amount", "changeAmount")):
        if header.get(key) is not None and header[key] < 0:
            errors.append({"field": name, "message": f"{name} must be >= 0"})
    if errors:
        raise ValidationError("Validation failed", errors)
    return header


def _lock_products(lines: list[SaleLineInput]) -> dict[int, int]:
    """Lock every product the sale touches, in id order, and return id -> quantity."""
    ids = sorted({line.product_id for line in lines})
    rows = lock_for_update(
        db.session.query(Product.id, Product.quantity)
        .filter(Product.id.in_(ids))
        .order_by(Product.id.asc())
    ).all()
    return {row.id: row.quantity for row in rows}


def _validate_on_hand(on_hand: dict[int, int], lines: list[SaleLineInput]) -> None:
    product_totals: dict[int, int] = {}
    for line in lines:
        product_totals[line.product_id] = product_totals.get(line.product_id, 0) + line.quantity

    insufficient = []
    for product_id, qty in product_totals.items():
        if on_hand[product_id] < qty:
            insufficient.append({
                "productId": product_id,
                "requestedQuantity": qty,
                "onHand": on_hand[product_id],
            })

    if insufficient:
        raise InsufficientStockError(
            "Insufficient stock to complete sale",
            details={"items": insufficient},
        )


def create_sale(payload: dict) -> int:
    """
    Write header, lines and stock decrements as one unit.

    Returns the new sale id. Input problems raise ValidationError before
    anything is written; anything that goes wrong afterwards rolls the whole
    sale back and surfaces as SaleCreationError (or InsufficientStockError
    when negative stock is disabled).
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    header = _validate_header(payload)
    lines = parse_lines(payload.get("lines"))
    allow_negative = current_app.config.get("ALLOW_NEGATIVE_STOCK", True)

    try:
        with transaction():
            sale = Sale(**header)
            db.session.add(sale)
            db.session.flush()  # ensure sale.id exists before lines reference it

            on_hand = _lock_products(lines)
            missing = sorted({line.product_id for line in lines} - on_hand.keys())
            if missing:
                current_app.logger.warning("Sale references unknown products %s", missing)
                raise SaleCreationError("Error creating sale")

            if not allow_negative:
                _validate_on_hand(on_hand, lines)

            db.session.add_all([
                SaleLine(
                    sale_id=sale.id,
                    product_id=line.product_id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                )
                for line in lines
            ])
            db.session.flush()

            for line in lines:
                db.session.query(Product).filter(Product.id == line.product_id).update(
                    {Product.quantity: Product.quantity - line.quantity},
                    synchronize_session=False,
                )

            sale_id = sale.id
    except SaleError:
        raise
    except SQLAlchemyError as exc:
        raise SaleCreationError("Error creating sale") from exc

    current_app.logger.info("Created sale %s with %d line(s)", sale_id, len(lines))
    return sale_id


def delete_sale(sale_id: int) -> None:
    """
    Remove a sale and its lines in one transaction.

    Raises SaleNotFoundError (after rolling back) when the header does not
    exist. Product stock is left as it is.
    """
    with transaction():
        db.session.query(SaleLine).filter(SaleLine.sale_id == sale_id).delete(synchronize_session=False)
        deleted = db.session.query(Sale).filter(Sale.id == sale_id).delete(synchronize_session=False)
        if not deleted:
            raise SaleNotFoundError("Sale not found")

    current_app.logger.info("Deleted sale %s", sale_id)


def get_sale(sale_id: int) -> dict:
    """Sale header with client name plus its lines, photos rendered as data URIs."""
    row = (
        db.session.query(Sale, Client.names.label("client"))
        .join(Client, Sale.client_id == Client.id)
        .filter(Sale.id == sale_id)
        .first()
    )
    if row is None:
        raise SaleNotFoundError("Sale not found")

    sale, client_name = row
    line_rows = (
        db.session.query(
            SaleLine.product_id,
            Product.name,
            Product.photo,
            SaleLine.quantity,
            SaleLine.unit_price,
        )
        .join(Product, SaleLine.product_id == Product.id)
        .filter(SaleLine.sale_id == sale_id)
        .order_by(SaleLine.id.asc())
        .all()
    )

    result = sale.to_dict()
    result["client"] = client_name
    result["lines"] = [
        {
            "productId": r.product_id,
            "name": r.name,
            "quantity": int(r.quantity or 0),
            "price": float(r.unit_price or 0),
            "photo": normalize_photo(r.photo),
        }
        for r in line_rows
    ]
    return result


# -----------------------------------------------------------------------------
# Listing (DataTables column-index convention)
# -----------------------------------------------------------------------------

_LINE_COUNTS = (
    select(SaleLine.sale_id.label("sale_id"), func.count(SaleLine.id).label("line_count"))
    .group_by(SaleLine.sale_id)
    .subquery("line_counts")
)
_ITEMS = func.coalesce(_LINE_COUNTS.c.line_count, 0)


def _sales_rows_query():
    return (
        db.session.query(
            Sale.id,
            Client.names.label("client"),
            Client.email,
            Client.address,
            Sale.created_at,
            Sale.document_number,
            Sale.payment_method,
            Sale.total,
            _ITEMS.label("items"),
        )
        .join(Client, Sale.client_id == Client.id)
        .outerjoin(_LINE_COUNTS, _LINE_COUNTS.c.sale_id == Sale.id)
    )


SALES_LISTING = CatalogListing(
    base_query=_sales_rows_query,
    count_query=lambda: db.session.query(Sale).join(Client, Sale.client_id == Client.id),
    sortable={
        "id": Sale.id,
        "client": Client.names,
        "email": Client.email,
        "address": Client.address,
        "date": Sale.created_at,
        "documentNumber": Sale.document_number,
        "paymentMethod": Sale.payment_method,
        "items": _ITEMS,
        "total": Sale.total,
    },
    searchable=(Client.names, Client.email, Client.address, Sale.document_number),
    column_order=(
        "id", "client", "email", "address", "date",
        "documentNumber", "paymentMethod", "items", "total",
    ),
)


def serialize_sale_row(row) -> dict:
    return {
        "id": row.id,
        "client": row.client,
        "email": row.email,
        "address": row.address,
        "date": to_iso(row.created_at),
        "documentNumber": row.document_number,
        "paymentMethod": row.payment_method,
        "total": float(row.total or 0),
        "items": int(row.items or 0),
    }
