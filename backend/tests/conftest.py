"""
Pytest fixtures for the pharmacy back-office tests.

Provides an in-memory database (foreign keys enforced), a test client, and
small factories for the rows most tests need.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from pharmacy import create_app
from pharmacy.extensions import db
from pharmacy.models import Client, Product, Role, Sale, SaleLine, User
from pharmacy.services.auth_service import hash_password


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    static_dir = tmp_path_factory.mktemp("dist")
    (static_dir / "index.html").write_text("<html>app</html>")
    (static_dir / "ventas.html").write_text("<html>ventas</html>")
    (static_dir / "js").mkdir()
    (static_dir / "js" / "app.3f2a.js").write_text("console.log('ok')")

    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'SQLALCHEMY_ENGINE_OPTIONS': {},
        'STATIC_DIR': str(static_dir),
        'MAX_CONTENT_LENGTH': 256 * 1024,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        app.config['ALLOW_NEGATIVE_STOCK'] = True

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture
def make_role(db_session):
    def _make(name="ADMINISTRADOR", accesos=None):
        role = Role(
            name=name,
            accesos=accesos if accesos is not None else [
                {"modulo": "ventas", "acceso": True},
                {"modulo": "Usuarios", "acceso": False},
            ],
        )
        db_session.add(role)
        db_session.commit()
        return role
    return _make


@pytest.fixture
def make_user(db_session, make_role):
    counter = {"n": 0}

    def _make(role=None, password="secret123", **overrides):
        counter["n"] += 1
        n = counter["n"]
        role = role or make_role(name=f"ROLE{n}")
        fields = {
            "username": f"user{n}",
            "full_name": f"User {n}",
            "phone": "987654321",
            "email": f"user{n}@farmacia.test",
            "dni": f"{10000000 + n}",
            "address": "Av. Siempre Viva 742",
        }
        fields.update(overrides)
        user = User(role_id=role.id, password_hash=hash_password(password), **fields)
        db_session.add(user)
        db_session.commit()
        return user
    return _make


@pytest.fixture
def make_client(db_session):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        fields = {
            "dni": f"{40000000 + n}",
            "names": f"Client {n}",
            "phone": "912345678",
            "address": f"Jr. Lima {n}",
            "email": f"client{n}@mail.test",
        }
        fields.update(overrides)
        client = Client(**fields)
        db_session.add(client)
        db_session.commit()
        return client
    return _make


@pytest.fixture
def make_product(db_session):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        fields = {
            "name": f"Product {n}",
            "category": "Analgesicos",
            "quantity": 100,
            "price": Decimal("5.50"),
        }
        fields.update(overrides)
        product = Product(**fields)
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture
def make_sale(db_session):
    """Insert a sale directly with explicit timestamp; stock is not touched."""
    def _make(client, lines, created_at=None, total=None, **overrides):
        total = total if total is not None else sum(
            Decimal(str(price)) * qty for _, qty, price in lines
        )
        sale = Sale(
            client_id=client.id,
            total=total,
            created_at=created_at or datetime.now(),
            **overrides,
        )
        db_session.add(sale)
        db_session.flush()
        for product, qty, price in lines:
            db_session.add(SaleLine(
                sale_id=sale.id,
                product_id=product.id,
                quantity=qty,
                unit_price=Decimal(str(price)),
            ))
        db_session.commit()
        return sale
    return _make
