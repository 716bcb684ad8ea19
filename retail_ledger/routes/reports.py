# retail_ledger/routes/reports.py
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from retail_ledger.dependencies import get_db
from retail_ledger.schemas.reports import (
    CustomerNotFound,
    CustomerSummary,
    InventoryRow,
    MoneyFigure,
    ProductEvaluation,
    ProductNotFound,
)
from retail_ledger.services.aggregation_service import AggregationService
from retail_ledger.services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/profit", response_model=MoneyFigure)
async def profit(product_id: Optional[str] = Query(None), db: AsyncSession = Depends(get_db)):
    """Profit for one product, or across every order when no product is given."""
    value = await AggregationService(db).profit(product_id)
    return MoneyFigure(metric="profit", value=value, product_id=product_id or None)


@router.get("/average-cost/{product_id}", response_model=MoneyFigure)
async def average_cost(product_id: str, db: AsyncSession = Depends(get_db)):
    value = await AggregationService(db).average_order_cost(product_id)
    return MoneyFigure(metric="average_order_cost", value=value, product_id=product_id)


@router.get("/commission/{employee_id}", response_model=MoneyFigure)
async def commission(employee_id: int, rate: str = Query(...), db: AsyncSession = Depends(get_db)):
    try:
        rate_value = Decimal(rate)
    except InvalidOperation:
        raise HTTPException(status_code=422, detail=f"Invalid commission rate: {rate}")
    if not rate_value.is_finite() or rate_value < 0:
        raise HTTPException(status_code=422, detail=f"Invalid commission rate: {rate}")

    value = await AggregationService(db).employee_commission(employee_id, rate_value)
    return MoneyFigure(metric="commission", value=value, employee_id=employee_id)


@router.get("/products/{product_id}", response_model=Union[ProductEvaluation, ProductNotFound])
async def evaluate_product(product_id: str, db: AsyncSession = Depends(get_db)):
    return await ReportService(db).evaluate_product(product_id)


@router.get("/customers/{client_id}", response_model=Union[CustomerSummary, CustomerNotFound])
async def customer_summary(client_id: str, db: AsyncSession = Depends(get_db)):
    return await ReportService(db).customer_summary(client_id)


@router.get("/inventory", response_model=List[InventoryRow])
async def inventory_report(db: AsyncSession = Depends(get_db)):
    return await ReportService(db).inventory_report()
