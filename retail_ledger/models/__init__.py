from .address import Address
from .client import Client
from .employee import Employee
from .product import Product
from .order import Order
from .audit import Audit
from .notification import Notification
from .activity import Activity

# This ensures all models are registered with SQLAlchemy
__all__ = [
    'Address',
    'Client',
    'Employee',
    'Product',
    'Order',
    'Audit',
    'Notification',
    'Activity',
]
