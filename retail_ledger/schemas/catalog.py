"""
Schemas for loading catalog reference data: addresses, clients, employees
and products.
"""
from decimal import Decimal
from typing import Optional

from pydantic import Field

from retail_ledger.core.enums import EmployeePosition
from retail_ledger.schemas.base import BaseSchema


class AddressCreate(BaseSchema):
    street: str = Field(..., max_length=255)
    county: str = Field(..., max_length=100)


class ClientCreate(BaseSchema):
    id: str = Field(..., max_length=20)
    full_name: str = Field(..., max_length=100)
    contact_number: int
    address_id: int


class EmployeeCreate(BaseSchema):
    full_name: str = Field(..., max_length=100)
    address_id: int
    position: str = EmployeePosition.SALES_ASSOCIATE.value
    salary: Decimal = Decimal("0")


class ProductCreate(BaseSchema):
    id: str = Field(..., max_length=20)
    name: str = Field(..., max_length=100)
    buy_price: Decimal
    sell_price: Decimal
    stock: int = 0
    category: Optional[str] = "General"

