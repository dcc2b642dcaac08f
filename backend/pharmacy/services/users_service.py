# Overview: Service-layer operations for staff users and their roles.

"""
Users Service

Uniqueness of email and dni is checked up front so the caller gets a message
naming the clashing field; the database unique constraints remain the final
word and any IntegrityError they raise is reported as a generic duplicate.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import contains_eager

from ..extensions import db
from ..models import Role, User
from ..validation import (
    DuplicateError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_user,
    validate_password,
    validate_payload,
)
from .auth_service import hash_password
from .listing import CatalogListing, SortDirection

USER_POLICY = ModelValidationPolicy(
    fields={
        "username": "username",
        "fullName": "full_name",
        "phone": "phone",
        "email": "email",
        "dni": "dni",
        "address": "address",
        "roleId": "role_id",
    },
    required_on_create={"username", "fullName", "phone", "email", "dni", "roleId"},
)

ROLE_POLICY = ModelValidationPolicy(
    fields={"rol": "name"},
    required_on_create={"rol"},
)

USER_LISTING = CatalogListing(
    base_query=lambda: db.session.query(User).outerjoin(User.role).options(contains_eager(User.role)),
    count_query=lambda: db.session.query(User).outerjoin(User.role),
    sortable={
        "id": User.id,
        "username": User.username,
        "fullName": User.full_name,
        "phone": User.phone,
        "email": User.email,
        "dni": User.dni,
        "address": User.address,
        "rol": Role.name,
    },
    searchable=(User.id, User.username, User.full_name, User.email, User.dni),
    default_direction=SortDirection.ASC,
)


def _get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def _check_role(role_id: int) -> None:
    if db.session.get(Role, role_id) is None:
        raise ValidationError(
            "Validation failed",
            [{"field": "roleId", "message": "A valid role must be selected"}],
        )


def _check_duplicates(patch: dict, exclude_id: int | None = None) -> None:
    suffix = " by another user" if exclude_id is not None else ""

    query = db.session.query(User).filter(
        (User.email == patch["email"]) | (User.dni == patch["dni"])
    )
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    clash = query.first()
    if clash is not None:
        if clash.email == patch["email"]:
            raise DuplicateError(f"Email already registered{suffix}")
        raise DuplicateError(f"DNI already registered{suffix}")

    query = db.session.query(User).filter(User.username == patch["username"])
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first() is not None:
        raise DuplicateError(f"Username already taken{suffix}")


def _commit_user(message: str) -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateError(message)


def get_user(user_id: int) -> dict:
    return _get_user(user_id).to_dict()


def create_user(payload: dict) -> dict:
    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=False)
    password = payload.get("password")
    enforce_rules_user(patch, password=password, password_required=True)
    _check_role(patch["role_id"])
    _check_duplicates(patch)

    user = User(password_hash=hash_password(password), **patch)
    db.session.add(user)
    _commit_user("Email or DNI already registered")
    return user.to_dict()


def update_user(user_id: int, payload: dict) -> dict:
    """
    Replace a user's profile. The password only changes when a non-empty one
    is supplied.
    """
    user = _get_user(user_id)

    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=False)
    password = payload.get("password")
    enforce_rules_user(patch, password=password)
    _check_role(patch["role_id"])
    _check_duplicates(patch, exclude_id=user_id)

    for key, value in patch.items():
        setattr(user, key, value)
    if password:
        user.password_hash = hash_password(password)

    _commit_user("A user with that email or DNI already exists")
    return user.to_dict()


def delete_user(user_id: int) -> None:
    try:
        deleted = db.session.query(User).filter_by(id=user_id).delete()
        if not deleted:
            raise NotFoundError("User not found")
        db.session.commit()
    except NotFoundError:
        db.session.rollback()
        raise
    except IntegrityError:
        db.session.rollback()
        raise ValidationError("User has registered sales and cannot be deleted")


def set_password(user_id: int, password) -> None:
    try:
        validate_password(password)
    except ValidationError as e:
        raise ValidationError("Validation failed", [{"field": "password", "message": str(e)}])

    user = _get_user(user_id)
    user.password_hash = hash_password(password)
    db.session.commit()


# -----------------------------------------------------------------------------
# Roles
# -----------------------------------------------------------------------------


def _validate_access_list(raw) -> list[dict]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError(
            "Validation failed",
            [{"field": "accesos", "message": "accesos must be a list"}],
        )
    cleaned = []
    for entry in raw:
        if not isinstance(entry, dict) or not str(entry.get("modulo") or "").strip():
            raise ValidationError(
                "Validation failed",
                [{"field": "accesos", "message": "each entry needs a modulo name"}],
            )
        cleaned.append({
            "modulo": str(entry["modulo"]).strip().upper(),
            "acceso": entry.get("acceso") is True,
        })
    return cleaned


def _get_role(role_id: int) -> Role:
    role = db.session.get(Role, role_id)
    if role is None:
        raise NotFoundError("Role not found")
    return role


def _check_role_name(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Role).filter(Role.name == name)
    if exclude_id is not None:
        query = query.filter(Role.id != exclude_id)
    if query.first() is not None:
        raise DuplicateError("Role name already exists")


def list_roles() -> list[dict]:
    return [role.to_dict() for role in db.session.query(Role).order_by(Role.id.asc()).all()]


def create_role(payload: dict) -> dict:
    patch = validate_payload(model=Role, payload=payload, policy=ROLE_POLICY, partial=False)
    accesos = _validate_access_list(payload.get("accesos"))
    _check_role_name(patch["name"])

    role = Role(name=patch["name"], accesos=accesos)
    db.session.add(role)
    db.session.commit()
    return role.to_dict()


def update_role(role_id: int, payload: dict) -> dict:
    role = _get_role(role_id)
    patch = validate_payload(model=Role, payload=payload, policy=ROLE_POLICY, partial=True)
    if "name" in patch:
        _check_role_name(patch["name"], exclude_id=role_id)
        role.name = patch["name"]
    if "accesos" in payload:
        role.accesos = _validate_access_list(payload.get("accesos"))
    db.session.commit()
    return role.to_dict()


def delete_role(role_id: int) -> None:
    """Roles still assigned to users cannot be deleted."""
    role = _get_role(role_id)
    in_use = db.session.query(User).filter_by(role_id=role_id).count()
    if in_use:
        raise ValidationError(f"Role is assigned to {in_use} user(s)")
    db.session.delete(role)
    db.session.commit()
