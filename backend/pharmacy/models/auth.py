from __future__ import annotations

from ..extensions import db


class Role(db.Model):
    """
    Staff profile with its module access list.

    The access list is an ordered JSON array of {"modulo": str, "acceso": bool}
    entries. The browser-side session gate reads it verbatim, so the entry keys
    are part of the wire contract with the UI.
    """
    __tablename__ = "roles"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False, unique=True)
    accesos = db.Column(db.JSON, nullable=False, default=list)

    def granted_modules(self) -> list[str]:
        """Upper-cased module names whose access flag is true."""
        return [
            str(entry.get("modulo") or "").upper()
            for entry in (self.accesos or [])
            if isinstance(entry, dict) and entry.get("acceso") is True
        ]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "rol": self.name,
            "accesos": list(self.accesos or []),
        }


class User(db.Model):
    """
    Staff account.

    email and dni are unique across users; the password is only ever stored as
    a bcrypt hash and is never serialized.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("username", name="uq_users_username"),
        db.UniqueConstraint("email", name="uq_users_email"),
        db.UniqueConstraint("dni", name="uq_users_dni"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False)
    full_name = db.Column(db.String(160), nullable=False)
    phone = db.Column(db.String(32), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)

    # National id: exactly 8 digits
    dni = db.Column(db.String(8), nullable=False)
    address = db.Column(db.String(255), nullable=True)

    role_id = db.Column(db.Integer, db.ForeignKey("roles.id"), nullable=False, index=True)

    role = db.relationship("Role", backref=db.backref("users", lazy=True))

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "fullName": self.full_name,
            "phone": self.phone,
            "email": self.email,
            "dni": self.dni,
            "address": self.address,
            "roleId": self.role_id,
            "rol": self.role.name if self.role else None,
        }
