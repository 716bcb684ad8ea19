"""
Schemas for order mutation endpoints.

Field types are kept loose on purpose: range checks (quantity > 0, cost >= 0)
belong to OrderService so API callers and Python callers get the same
ConstraintViolationError.
"""
import datetime as dt
from decimal import Decimal
from typing import Dict, List, Optional

from retail_ledger.core.enums import AuditAction
from retail_ledger.schemas.base import BaseSchema


class OrderCreate(BaseSchema):
    product_id: str
    client_id: str
    employee_id: int
    quantity: int
    cost: Decimal
    date: Optional[dt.date] = None


class OrderUpdate(BaseSchema):
    product_id: Optional[str] = None
    client_id: Optional[str] = None
    employee_id: Optional[int] = None
    quantity: Optional[int] = None
    cost: Optional[Decimal] = None
    date: Optional[dt.date] = None


class OrderRead(BaseSchema):
    id: int
    product_id: str
    client_id: str
    employee_id: int
    quantity: int
    cost: Decimal
    date: dt.date
    created_at: dt.datetime


class OrderMutationResponse(BaseSchema):
    action: AuditAction
    order_id: Optional[int] = None
    order: Optional[OrderRead] = None
    completed: List[str] = []
    skipped: List[str] = []
    failed: Dict[str, str] = {}
    cost_corrected: bool = False
    expected_cost: Optional[Decimal] = None
    stock_after: Optional[int] = None
