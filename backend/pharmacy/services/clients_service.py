# Overview: Service-layer operations for clients.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Client
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_client,
    validate_payload,
)
from .listing import CatalogListing

CLIENT_POLICY = ModelValidationPolicy(
    fields={
        "dni": "dni",
        "ruc": "ruc",
        "names": "names",
        "phone": "phone",
        "address": "address",
        "email": "email",
    },
    required_on_create={"dni", "names", "email"},
)

CLIENT_LISTING = CatalogListing(
    base_query=lambda: db.session.query(Client),
    count_query=lambda: db.session.query(Client),
    sortable={
        "id": Client.id,
        "dni": Client.dni,
        "ruc": Client.ruc,
        "names": Client.names,
        "phone": Client.phone,
        "address": Client.address,
        "email": Client.email,
    },
    searchable=(Client.dni, Client.names, Client.email),
)


def _get_client(client_id: int) -> Client:
    client = db.session.get(Client, client_id)
    if client is None:
        raise NotFoundError("Client not found")
    return client


def get_client(client_id: int) -> dict:
    return _get_client(client_id).to_dict()


def create_client(payload: dict) -> dict:
    patch = validate_payload(model=Client, payload=payload, policy=CLIENT_POLICY, partial=False)
    enforce_rules_client(patch)

    client = Client(**patch)
    db.session.add(client)
    db.session.commit()
    return client.to_dict()


def update_client(client_id: int, payload: dict) -> dict:
    client = _get_client(client_id)
    patch = validate_payload(model=Client, payload=payload, policy=CLIENT_POLICY, partial=False)
    enforce_rules_client(patch)

    for key, value in patch.items():
        setattr(client, key, value)
    db.session.commit()
    return client.to_dict()


def delete_client(client_id: int) -> None:
    """Clients referenced by sales are kept; the store refuses the delete."""
    try:
        deleted = db.session.query(Client).filter_by(id=client_id).delete()
        if not deleted:
            raise NotFoundError("Client not found")
        db.session.commit()
    except NotFoundError:
        db.session.rollback()
        raise
    except IntegrityError:
        db.session.rollback()
        raise ValidationError("Client has sales and cannot be deleted")
