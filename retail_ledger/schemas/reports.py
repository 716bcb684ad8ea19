"""
Schemas for read-only report endpoints.
"""
from datetime import date
from decimal import Decimal
from typing import List, Optional, Union

from retail_ledger.core.enums import PerformanceTier, StockAlert, StockHealth
from retail_ledger.schemas.base import BaseSchema


class ProductEvaluation(BaseSchema):
    product_id: str
    name: str
    category: str
    buy_price: Decimal
    sell_price: Decimal
    current_stock: int
    total_sold: int
    total_orders: int
    total_revenue: Decimal
    total_profit: Decimal
    avg_order_cost: Decimal
    stock_status: StockHealth
    performance: PerformanceTier


class ProductNotFound(BaseSchema):
    status: str
    product_id: str


class TopProduct(BaseSchema):
    product_id: str
    name: str
    quantity: int
    total_spent: Decimal


class CustomerSummary(BaseSchema):
    client_id: str
    full_name: str
    contact_number: int
    address: str
    total_orders: int
    total_activities: int
    total_items: int
    total_spent: Decimal
    avg_order_value: Decimal
    # ISO date, or the "No orders" sentinel
    last_order_date: Union[date, str]
    top_products: List[TopProduct] = []


class CustomerNotFound(BaseSchema):
    status: str
    client_id: str


class InventoryRow(BaseSchema):
    product_id: str
    name: str
    category: str
    stock: int
    buy_price: Decimal
    sell_price: Decimal
    profit_per_unit: Decimal
    inventory_value: Decimal
    total_sold: int
    stock_alert: StockAlert


class MoneyFigure(BaseSchema):
    """A single aggregate, e.g. profit or commission."""
    metric: str
    value: Decimal
    product_id: Optional[str] = None
    employee_id: Optional[int] = None
