# retail_ledger/services/report_service.py
"""
Report Service

Composite read-only reports over products, customers and the catalog.

Unknown identifiers are not errors here: callers look products and customers
up speculatively, so a miss comes back as a status dict instead of raising.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from retail_ledger.core.enums import PerformanceTier, StockAlert, StockHealth
from retail_ledger.core.utils import to_money
from retail_ledger.models.activity import Activity
from retail_ledger.models.client import Client
from retail_ledger.models.order import Order
from retail_ledger.models.product import Product
from retail_ledger.schemas.reports import CustomerSummary, InventoryRow, ProductEvaluation, TopProduct
from retail_ledger.services.aggregation_service import AggregationService

logger = logging.getLogger(__name__)

NO_ORDERS = "No orders"
TOP_PRODUCT_LIMIT = 3


class ReportService:

    def __init__(self, db: AsyncSession, aggregation: Optional[AggregationService] = None):
        self.db = db
        self.aggregation = aggregation or AggregationService(db)

    # =========================================================================
    # PRODUCT EVALUATION
    # =========================================================================

    async def evaluate_product(self, product_id: str) -> Union[ProductEvaluation, Dict[str, Any]]:
        """
        Sales, profit and stock position for one product.

        Returns:
            ProductEvaluation, or ``{"status": "Product not found", "product_id": ...}``
        """
        product = await self.db.get(Product, product_id)
        if product is None:
            logger.info("Product evaluation requested for unknown product %s", product_id)
            return {"status": "Product not found", "product_id": product_id}

        totals = await self.db.execute(
            select(
                func.coalesce(func.sum(Order.quantity), 0),
                func.count(Order.id),
                func.coalesce(func.sum(Order.cost), 0),
            ).where(Order.product_id == product_id)
        )
        total_sold, total_orders, total_revenue = totals.one()

        profit = await self.aggregation.profit(product_id)
        avg_cost = await self.aggregation.average_order_cost(product_id)

        return ProductEvaluation(
            product_id=product.id,
            name=product.name,
            category=product.category,
            buy_price=to_money(product.buy_price),
            sell_price=to_money(product.sell_price),
            current_stock=product.stock,
            total_sold=int(total_sold),
            total_orders=int(total_orders),
            total_revenue=to_money(total_revenue),
            total_profit=profit,
            avg_order_cost=avg_cost,
            stock_status=StockHealth.for_stock(product.stock),
            performance=PerformanceTier.for_profit(profit),
        )

    # =========================================================================
    # CUSTOMER SUMMARY
    # =========================================================================

    async def customer_summary(self, client_id: str) -> Union[CustomerSummary, Dict[str, Any]]:
        """
        Purchase and activity summary for one client.

        Order and activity figures come from separate queries so that joining
        the two tables cannot multiply the sums.
        """
        client = await self.db.get(Client, client_id)
        if client is None:
            logger.info("Customer summary requested for unknown client %s", client_id)
            return {"status": "Customer not found", "client_id": client_id}

        order_stats = await self.db.execute(
            select(
                func.count(Order.id),
                func.coalesce(func.sum(Order.quantity), 0),
                func.coalesce(func.sum(Order.cost), 0),
                func.avg(Order.cost),
                func.max(Order.date),
            ).where(Order.client_id == client_id)
        )
        total_orders, total_items, total_spent, avg_order_value, last_order = order_stats.one()

        total_activities = await self.db.scalar(
            select(func.count(Activity.id)).where(Activity.client_id == client_id)
        )

        return CustomerSummary(
            client_id=client.id,
            full_name=client.full_name,
            contact_number=client.contact_number,
            address=client.address.formatted(),
            total_orders=int(total_orders),
            total_activities=int(total_activities or 0),
            total_items=int(total_items),
            total_spent=to_money(total_spent),
            avg_order_value=to_money(avg_order_value),
            last_order_date=last_order if last_order is not None else NO_ORDERS,
            top_products=await self._top_products(client_id),
        )

    async def _top_products(self, client_id: str) -> List[TopProduct]:
        quantity = func.sum(Order.quantity)
        stmt = (
            select(Product.id, Product.name, quantity, func.sum(Order.cost))
            .join(Product, Order.product_id == Product.id)
            .where(Order.client_id == client_id)
            .group_by(Product.id, Product.name)
            .order_by(quantity.desc())
            .limit(TOP_PRODUCT_LIMIT)
        )
        rows = (await self.db.execute(stmt)).all()
        return [
            TopProduct(product_id=pid, name=name, quantity=int(qty), total_spent=to_money(spent))
            for pid, name, qty, spent in rows
        ]

    # =========================================================================
    # INVENTORY
    # =========================================================================

    async def inventory_report(self) -> List[InventoryRow]:
        """Every product with its stock alert and value at buy price, lowest stock first."""
        sold = (
            select(Order.product_id, func.sum(Order.quantity).label("total_sold"))
            .group_by(Order.product_id)
            .subquery()
        )
        stmt = (
            select(Product, func.coalesce(sold.c.total_sold, 0))
            .outerjoin(sold, sold.c.product_id == Product.id)
            .order_by(Product.stock.asc(), Product.category.asc())
        )
        rows = (await self.db.execute(stmt)).all()

        report = []
        for product, total_sold in rows:
            report.append(
                InventoryRow(
                    product_id=product.id,
                    name=product.name,
                    category=product.category,
                    stock=product.stock,
                    buy_price=to_money(product.buy_price),
                    sell_price=to_money(product.sell_price),
                    profit_per_unit=to_money(product.unit_margin),
                    inventory_value=to_money(product.stock * product.buy_price),
                    total_sold=int(total_sold),
                    stock_alert=StockAlert.for_stock(product.stock),
                )
            )
        return report
