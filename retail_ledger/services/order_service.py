"""
Purpose: Public entry points for order mutations.

Each method validates its input (raising ConstraintViolationError before any
pipeline stage runs), hands the mutation to OrderMutationPipeline and owns the
transaction: commit on success, rollback and re-raise on any failure.
"""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from retail_ledger.core.config import Settings, get_settings
from retail_ledger.core.enums import AuditAction
from retail_ledger.core.exceptions import ConstraintViolationError, OrderNotFoundError
from retail_ledger.core.utils import to_money
from retail_ledger.models.client import Client
from retail_ledger.models.employee import Employee
from retail_ledger.models.order import Order
from retail_ledger.models.product import Product
from retail_ledger.services.order_pipeline import OrderContext, OrderMutationPipeline, PipelineResult

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"product_id", "client_id", "employee_id", "quantity", "cost", "date"})


class OrderService:
    def __init__(
        self,
        db: AsyncSession,
        settings: Optional[Settings] = None,
        pipeline: Optional[OrderMutationPipeline] = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.pipeline = pipeline or OrderMutationPipeline(db, self.settings)

    async def insert_order(
        self,
        product_id: str,
        client_id: str,
        employee_id: int,
        quantity: int,
        cost: Any,
        order_date: Optional[date] = None,
    ) -> PipelineResult:
        """
        Place an order.

        Raises:
            ConstraintViolationError: bad quantity/cost or unknown product, client, employee
            InsufficientInventoryError: stock below the requested quantity (nothing is committed)
        """
        quantity = self._validate_quantity(quantity)
        cost = self._validate_cost(cost)
        await self._ensure_references(product_id=product_id, client_id=client_id, employee_id=employee_id)

        ctx = OrderContext(
            action=AuditAction.INSERT,
            product_id=product_id,
            client_id=client_id,
            employee_id=employee_id,
            quantity=quantity,
            cost=cost,
            order_date=order_date,
        )
        result = await self._execute(self.pipeline.run_insert, ctx)

        logger.info(
            "Order %s placed: product=%s client=%s qty=%s cost=%s%s",
            result.order_id, product_id, client_id, quantity, result.order.cost,
            " (cost corrected)" if result.cost_corrected else "",
        )
        if result.failed:
            logger.warning("Order %s committed with failed stages: %s", result.order_id, result.failed)
        return result

    async def update_order(self, order_id: int, **fields: Any) -> PipelineResult:
        """
        Update an order's fields.

        Only the audit trail follows an update: stock is not re-adjusted and
        the cost is not re-reconciled.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ConstraintViolationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        changes = dict(fields)
        missing = sorted(key for key, value in changes.items() if value is None)
        if missing:
            raise ConstraintViolationError(f"Fields cannot be cleared: {', '.join(missing)}")
        if "quantity" in changes:
            changes["quantity"] = self._validate_quantity(changes["quantity"])
        if "cost" in changes:
            changes["cost"] = self._validate_cost(changes["cost"])
        await self._ensure_references(
            product_id=changes.get("product_id"),
            client_id=changes.get("client_id"),
            employee_id=changes.get("employee_id"),
        )

        order = await self._get_order(order_id)
        ctx = OrderContext(action=AuditAction.UPDATE, order=order, changes=changes)
        result = await self._execute(self.pipeline.run_update, ctx)

        logger.info("Order %s updated: %s", order_id, sorted(changes))
        return result

    async def delete_order(self, order_id: int) -> PipelineResult:
        order = await self._get_order(order_id)
        ctx = OrderContext(action=AuditAction.DELETE, order=order)
        result = await self._execute(self.pipeline.run_delete, ctx)

        logger.info("Order %s deleted", order_id)
        return result

    async def get_order(self, order_id: int) -> Optional[Order]:
        return await self.db.get(Order, order_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _execute(self, run, ctx: OrderContext) -> PipelineResult:
        try:
            result = await run(ctx)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return result

    async def _get_order(self, order_id: int) -> Order:
        order = await self.db.get(Order, order_id)
        if order is None:
            raise OrderNotFoundError(f"Order with ID {order_id} not found")
        return order

    @staticmethod
    def _validate_quantity(quantity: Any) -> int:
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ConstraintViolationError(f"Quantity must be an integer, got {quantity!r}")
        if quantity <= 0:
            raise ConstraintViolationError(f"Quantity must be greater than 0, got {quantity}")
        return quantity

    @staticmethod
    def _validate_cost(cost: Any) -> Decimal:
        if cost is None or isinstance(cost, bool):
            raise ConstraintViolationError("Cost is required")
        try:
            value = to_money(cost)
        except (InvalidOperation, ValueError, TypeError):
            raise ConstraintViolationError(f"Cost must be a valid number, got {cost!r}")
        if not value.is_finite() or value < 0:
            raise ConstraintViolationError(f"Cost must be zero or more, got {cost!r}")
        return value

    async def _ensure_references(
        self,
        product_id: Optional[str] = None,
        client_id: Optional[str] = None,
        employee_id: Optional[int] = None,
    ) -> None:
        if product_id is not None and await self.db.get(Product, product_id) is None:
            raise ConstraintViolationError(f"Product '{product_id}' does not exist")
        if client_id is not None and await self.db.get(Client, client_id) is None:
            raise ConstraintViolationError(f"Client '{client_id}' does not exist")
        if employee_id is not None and await self.db.get(Employee, employee_id) is None:
            raise ConstraintViolationError(f"Employee '{employee_id}' does not exist")
