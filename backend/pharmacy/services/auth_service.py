# Overview: Service-layer operations for auth; encapsulates credential checks.

"""
Authentication Service

Passwords are hashed with bcrypt before they reach the database and verified
with bcrypt.checkpw; plaintext passwords are never stored or compared.

The login response carries the role's access list in two shapes: the list of
{modulo, acceso} objects the session gate stores, and a flat list of granted
module names for older pages.
"""

import bcrypt

from ..extensions import db
from ..models import User


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.
    """
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise (including
    malformed hashes).
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def authenticate(username: str, password: str) -> User | None:
    """
    Authenticate user by username.

    Users without a role cannot log in; the UI has nothing to show them.
    """
    user = db.session.query(User).filter_by(username=username).first()
    if not user or user.role is None:
        return None

    if not verify_password(password, user.password_hash):
        return None

    return user


def login_payload(user: User) -> dict:
    role = user.role
    payload = user.to_dict()
    payload["accesos"] = list(role.accesos or [])
    payload["accesosPlano"] = role.granted_modules()
    return payload
