from __future__ import annotations

from ..extensions import db
from ..time_utils import local_now, to_iso


def _money(value) -> float:
    return float(value) if value is not None else 0.0


class Sale(db.Model):
    """
    Sale header.

    Created together with its lines in a single transaction; never edited
    afterwards. Deleting a sale removes its lines but leaves product stock
    untouched.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_created_at", "created_at"),
        db.Index("ix_sales_document_number", "document_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    # Receipt data: boleta / factura and its number; ruc + business name for invoices
    document_type = db.Column(db.String(32), nullable=True)
    document_number = db.Column(db.String(64), nullable=True)
    ruc = db.Column(db.String(16), nullable=True)
    business_name = db.Column(db.String(200), nullable=True)

    payment_method = db.Column(db.String(32), nullable=True)
    card_number = db.Column(db.String(32), nullable=True)
    cash_amount = db.Column(db.Numeric(10, 2), nullable=True)
    change_amount = db.Column(db.Numeric(10, 2), nullable=True)
    total = db.Column(db.Numeric(10, 2), nullable=False)

    # Local wall-clock time; the dashboard buckets sales by local calendar day
    created_at = db.Column(db.DateTime, nullable=False, default=local_now)

    client = db.relationship("Client", backref=db.backref("sales", lazy=True))
    user = db.relationship("User", backref=db.backref("sales", lazy=True))

    def __repr__(self) -> str:
        return f"<Sale id={self.id} client_id={self.client_id} total={self.total}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "clientId": self.client_id,
            "userId": self.user_id,
            "documentType": self.document_type,
            "documentNumber": self.document_number,
            "ruc": self.ruc,
            "businessName": self.business_name,
            "paymentMethod": self.payment_method,
            "cardNumber": self.card_number,
            "cashAmount": _money(self.cash_amount),
            "changeAmount": _money(self.change_amount),
            "total": _money(self.total),
            "date": to_iso(self.created_at),
        }


class SaleLine(db.Model):
    """One product line of a sale; price is the snapshot taken at sale time."""
    __tablename__ = "sale_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(
        db.Integer,
        db.ForeignKey("sales.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)

    sale = db.relationship("Sale", backref=db.backref("lines", lazy=True, passive_deletes=True))
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "saleId": self.sale_id,
            "productId": self.product_id,
            "quantity": int(self.quantity or 0),
            "price": _money(self.unit_price),
        }
