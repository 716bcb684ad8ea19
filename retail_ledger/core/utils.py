"""
Utility functions for the application.
"""
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel

T = TypeVar('T', bound=BaseModel)

CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """
    Normalise a numeric value (Decimal, float, int, str or None) to a cent-precision Decimal.

    Aggregates come back as floats on some backends; going through ``str`` keeps
    the shortest repr so float noise is not carried into the cents.
    """
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def utc_now() -> datetime:
    """Naive UTC timestamp, matching the TIMESTAMP(timezone=False) columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def order_snapshot(order) -> Dict[str, Any]:
    """JSON-safe snapshot of an order row for the audit trail."""
    order_date: Optional[date] = order.date
    return {
        "order_id": order.id,
        "product_id": order.product_id,
        "client_id": order.client_id,
        "employee_id": order.employee_id,
        "quantity": order.quantity,
        "cost": str(to_money(order.cost)),
        "date": order_date.isoformat() if order_date else None,
    }


def model_to_schema(db_model: Any, schema_class: Type[T]) -> T:
    """Convert a SQLAlchemy model instance to a Pydantic schema instance."""
    return schema_class.model_validate(db_model, from_attributes=True)
