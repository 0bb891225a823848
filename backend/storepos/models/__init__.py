from .tenancy import Store
from .auth import (
    User, PasswordResetRequest,
    ROLE_ADMIN, ROLE_STORE_MANAGER, ROLE_CASHIER, ROLES,
    RESET_PENDING, RESET_COMPLETED,
)
from .inventory import Product
from .sales import Sale

__all__ = [
    'Store',
    'User', 'PasswordResetRequest',
    'ROLE_ADMIN', 'ROLE_STORE_MANAGER', 'ROLE_CASHIER', 'ROLES',
    'RESET_PENDING', 'RESET_COMPLETED',
    'Product',
    'Sale',
]
