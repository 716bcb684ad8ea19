# retail_ledger/services/aggregation_service.py
"""
Aggregation Service

Read-only figures over the order ledger: average cost per unit, profit and
employee commission. Nothing here writes; every function answers 0 for
"no matching orders", including identifiers that do not exist.
"""

from decimal import Decimal
from typing import Optional, Tuple, Union

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from retail_ledger.core.utils import to_money
from retail_ledger.models.order import Order
from retail_ledger.models.product import Product


class AggregationService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def average_order_cost(self, product_id: str) -> Decimal:
        """Mean of ``cost / quantity`` across the product's orders."""
        stmt = select(func.avg(Order.cost / Order.quantity)).where(Order.product_id == product_id)
        return to_money(await self.db.scalar(stmt))

    async def profit(self, product_id: Optional[str] = None) -> Decimal:
        """
        Sum of ``(sell_price - buy_price) * quantity`` over matching orders.

        None or an empty string means every order. Negative results are
        valid (buy price above sell price).
        """
        margin = (Product.sell_price - Product.buy_price) * Order.quantity
        stmt = select(func.coalesce(func.sum(margin), 0)).select_from(Order).join(
            Product, Order.product_id == Product.id
        )
        if product_id:
            stmt = stmt.where(Order.product_id == product_id)
        return to_money(await self.db.scalar(stmt))

    async def employee_commission(self, employee_id: int, rate: Union[Decimal, float, str]) -> Decimal:
        """
        ``sum(cost) * rate`` over the employee's orders.

        The rate is used as given; callers pass a fraction such as 0.05.
        """
        stmt = select(func.coalesce(func.sum(Order.cost), 0)).where(Order.employee_id == employee_id)
        total_sales = to_money(await self.db.scalar(stmt))
        rate = rate if isinstance(rate, Decimal) else Decimal(str(rate))
        return to_money(total_sales * rate)

    async def product_order_metrics(self, product_id: str) -> Tuple[int, Decimal]:
        """Order count and mean cost per unit for a product."""
        stmt = select(
            func.count(Order.id),
            func.avg(Order.cost / Order.quantity),
        ).where(Order.product_id == product_id)
        count, avg_cost = (await self.db.execute(stmt)).one()
        return int(count or 0), to_money(avg_cost)

    async def client_order_count(self, client_id: Optional[str]) -> int:
        if not client_id:
            return 0
        stmt = select(func.count(Order.id)).where(Order.client_id == client_id)
        return int(await self.db.scalar(stmt) or 0)
