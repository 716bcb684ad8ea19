# retail_ledger/routes/orders.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from retail_ledger.core.exceptions import (
    ConstraintViolationError,
    InsufficientInventoryError,
    OrderNotFoundError,
    PipelineStageError,
)
from retail_ledger.core.utils import model_to_schema
from retail_ledger.dependencies import get_db
from retail_ledger.schemas.order import OrderCreate, OrderMutationResponse, OrderRead, OrderUpdate
from retail_ledger.services.order_pipeline import PipelineResult
from retail_ledger.services.order_service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


def _to_response(result: PipelineResult) -> OrderMutationResponse:
    return OrderMutationResponse(
        action=result.action,
        order_id=result.order_id,
        order=model_to_schema(result.order, OrderRead) if result.order is not None else None,
        completed=result.completed,
        skipped=result.skipped,
        failed=result.failed,
        cost_corrected=result.cost_corrected,
        expected_cost=result.expected_cost,
        stock_after=result.stock_after,
    )


def _raise_http(error: Exception):
    if isinstance(error, OrderNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, InsufficientInventoryError):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": str(error),
                "product_id": error.product_id,
                "available": error.available,
                "requested": error.requested,
            },
        )
    if isinstance(error, ConstraintViolationError):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(error))
    if isinstance(error, PipelineStageError):
        logger.error("Order mutation aborted at stage %s: %s", error.stage, error.cause)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))
    raise error


@router.post("", response_model=OrderMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_order(payload: OrderCreate, db: AsyncSession = Depends(get_db)):
    """Place an order through the mutation pipeline."""
    service = OrderService(db)
    try:
        result = await service.insert_order(
            product_id=payload.product_id,
            client_id=payload.client_id,
            employee_id=payload.employee_id,
            quantity=payload.quantity,
            cost=payload.cost,
            order_date=payload.date,
        )
    except (ConstraintViolationError, InsufficientInventoryError, PipelineStageError) as e:
        _raise_http(e)
    return _to_response(result)


@router.get("/{order_id}", response_model=OrderRead)
async def get_order(order_id: int, db: AsyncSession = Depends(get_db)):
    order = await OrderService(db).get_order(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail=f"Order with ID {order_id} not found")
    return model_to_schema(order, OrderRead)


@router.patch("/{order_id}", response_model=OrderMutationResponse)
async def update_order(order_id: int, payload: OrderUpdate, db: AsyncSession = Depends(get_db)):
    """Update an order. Stock and cost reconciliation are not re-run."""
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    service = OrderService(db)
    try:
        result = await service.update_order(order_id, **changes)
    except (OrderNotFoundError, ConstraintViolationError, PipelineStageError) as e:
        _raise_http(e)
    return _to_response(result)


@router.delete("/{order_id}", response_model=OrderMutationResponse)
async def delete_order(order_id: int, db: AsyncSession = Depends(get_db)):
    service = OrderService(db)
    try:
        result = await service.delete_order(order_id)
    except (OrderNotFoundError, PipelineStageError) as e:
        _raise_http(e)
    return _to_response(result)
