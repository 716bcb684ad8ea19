"""
Shared enums and constants used across the application.
"""

from enum import Enum


class AuditAction(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class NotificationType(str, Enum):
    PROMOTION = "promotion"
    ORDER_UPDATE = "order_update"
    SYSTEM = "system"
    MARKETING = "marketing"


class ActivityType(str, Enum):
    VIEW = "view"
    BROWSE = "browse"
    SEARCH = "search"
    CART_ADD = "cart_add"
    CART_REMOVE = "cart_remove"


class EmployeePosition(str, Enum):
    """Positions that notifications get addressed to"""
    SALES_ASSOCIATE = "Sales Associate"
    SALES_MANAGER = "Sales Manager"
    INVENTORY_MANAGER = "Inventory Manager"


class StockHealth(str, Enum):
    LOW = "Low Stock"
    MEDIUM = "Medium Stock"
    GOOD = "Good Stock"

    @classmethod
    def for_stock(cls, stock: int) -> "StockHealth":
        if stock <= 10:
            return cls.LOW
        if stock <= 30:
            return cls.MEDIUM
        return cls.GOOD


class PerformanceTier(str, Enum):
    HIGH = "High Performer"
    MEDIUM = "Medium Performer"
    LOW = "Low Performer"

    @classmethod
    def for_profit(cls, profit) -> "PerformanceTier":
        if profit > 100:
            return cls.HIGH
        if profit > 50:
            return cls.MEDIUM
        return cls.LOW


class StockAlert(str, Enum):
    URGENT = "URGENT - Restock Needed"
    LOW = "LOW - Monitor Stock"
    MEDIUM = "MEDIUM - Normal Stock"
    HIGH = "HIGH - Good Stock"

    @classmethod
    def for_stock(cls, stock: int) -> "StockAlert":
        if stock <= 10:
            return cls.URGENT
        if stock <= 30:
            return cls.LOW
        if stock <= 50:
            return cls.MEDIUM
        return cls.HIGH
