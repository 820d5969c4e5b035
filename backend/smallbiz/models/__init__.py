from .tenancy import Tenant
from .auth import User, SessionToken
from .inventory import Product
from .customers import Customer
from .orders import Order, OrderItem
from .reports import DailySalesSummary

__all__ = [
    'Tenant',
    'User', 'SessionToken',
    'Product',
    'Customer',
    'Order', 'OrderItem',
    'DailySalesSummary',
]
