from .auth import User, SessionToken, USER_ROLES
from .tenancy import Farm, FARM_STATUSES
from .catalog import Boat, Customer, ProductType
from .ledger import Purchase, Sale, Expense, PAYMENT_STATUSES

__all__ = [
    'User', 'SessionToken', 'USER_ROLES',
    'Farm', 'FARM_STATUSES',
    'Boat', 'Customer', 'ProductType',
    'Purchase', 'Sale', 'Expense', 'PAYMENT_STATUSES',
]
