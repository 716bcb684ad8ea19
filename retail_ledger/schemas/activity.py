from datetime import datetime
from typing import Any, Dict, Optional

from retail_ledger.core.enums import ActivityType
from retail_ledger.schemas.base import BaseSchema


class ActivityCreate(BaseSchema):
    client_id: Optional[str] = None
    product_id: Optional[str] = None
    properties: Optional[Dict[str, Any]] = None
    # Plain string so an unknown type reaches the service and becomes a ConstraintViolationError
    activity_type: str = ActivityType.VIEW.value


class ActivityRead(BaseSchema):
    id: int
    client_id: Optional[str] = None
    product_id: Optional[str] = None
    properties: Optional[Dict[str, Any]] = None
    activity_type: ActivityType
    created_at: datetime
