from .auth import User, Role
from .customers import Client
from .inventory import Product
from .sales import Sale, SaleLine

__all__ = [
    'User', 'Role',
    'Client',
    'Product',
    'Sale', 'SaleLine',
]
