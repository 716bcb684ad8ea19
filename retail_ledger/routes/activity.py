# retail_ledger/routes/activity.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from retail_ledger.core.exceptions import ConstraintViolationError
from retail_ledger.core.utils import model_to_schema
from retail_ledger.dependencies import get_db
from retail_ledger.schemas.activity import ActivityCreate, ActivityRead
from retail_ledger.services.activity_service import ActivityService

router = APIRouter(prefix="/activity", tags=["activity"])


@router.post("", response_model=ActivityRead, status_code=status.HTTP_201_CREATED)
async def record_activity(payload: ActivityCreate, db: AsyncSession = Depends(get_db)):
    """Record a customer interaction and run the notification fan-out for it."""
    service = ActivityService(db)
    try:
        activity = await service.record_activity(
            client_id=payload.client_id,
            product_id=payload.product_id,
            properties=payload.properties,
            activity_type=payload.activity_type,
        )
    except ConstraintViolationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return model_to_schema(activity, ActivityRead)
