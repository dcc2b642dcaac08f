from __future__ import annotations

from ..extensions import db


class Client(db.Model):
    """Customer master data; referenced by sales."""
    __tablename__ = "clients"
    __table_args__ = (
        db.Index("ix_clients_dni", "dni"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    dni = db.Column(db.String(16), nullable=False)
    ruc = db.Column(db.String(16), nullable=True)
    names = db.Column(db.String(200), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Client id={self.id} names={self.names!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "dni": self.dni,
            "ruc": self.ruc,
            "names": self.names,
            "phone": self.phone,
            "address": self.address,
            "email": self.email,
        }
