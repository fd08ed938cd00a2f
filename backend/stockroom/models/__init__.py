from .catalog import Category, Product
from .ledger import SalesTransaction, StockMovement, MOVEMENT_TYPES, MOVEMENT_IN, MOVEMENT_OUT, MOVEMENT_ADJUSTMENT
from .notifications import Notification
from .auth import User, SessionToken, ROLE_USER, ROLE_ADMIN, VALID_ROLES

__all__ = [
    'Category', 'Product',
    'SalesTransaction', 'StockMovement',
    'MOVEMENT_TYPES', 'MOVEMENT_IN', 'MOVEMENT_OUT', 'MOVEMENT_ADJUSTMENT',
    'Notification',
    'User', 'SessionToken', 'ROLE_USER', 'ROLE_ADMIN', 'VALID_ROLES',
]
