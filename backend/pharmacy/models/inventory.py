from __future__ import annotations

from ..extensions import db


class Product(db.Model):
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_name", "name"),
        db.Index("ix_products_category", "category"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(120), nullable=False)

    # Stock on hand; decremented by sale creation, may go negative
    quantity = db.Column(db.Integer, nullable=False, default=0)
    price = db.Column(db.Numeric(10, 2), nullable=False)

    # Raw image bytes; rendered as a data URI on the way out
    photo = db.Column(db.LargeBinary, nullable=True)

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        from ..services.photos import normalize_photo

        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "quantity": int(self.quantity or 0),
            "price": float(self.price or 0),
            "photo": normalize_photo(self.photo),
        }
