from .auth import User, SessionToken, ROLES, ROLE_ADMIN, ROLE_CASHIER, THEMES
from .catalog import Category, Product
from .sales import Sale, SaleItem, PAYMENT_METHODS

__all__ = [
    'User', 'SessionToken', 'ROLES', 'ROLE_ADMIN', 'ROLE_CASHIER', 'THEMES',
    'Category', 'Product',
    'Sale', 'SaleItem', 'PAYMENT_METHODS',
]
