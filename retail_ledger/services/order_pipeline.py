"""
Order Mutation Pipeline

Every order insert, update and delete runs through an ordered tuple of named
stages inside the caller's transaction. For an insert:

    validate_stock -> reconcile_cost -> persist_order -> append_audit
    -> decrement_inventory -> notify_low_stock -> log_order_metrics

Updates and deletes only apply the mutation and append the audit row; stock
and cost are left alone on those paths.

Required stages raise and abort the whole mutation. Best-effort stages run
inside a SAVEPOINT: a failure is logged, rolled back to the savepoint, and the
remaining stages still run. No stage is retried.

The metrics stage writes an activity through ActivityService, which runs the
activity fan-out as a plain call. The fan-out only produces notifications, so
the chain is order -> activity -> notification and ends there.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from retail_ledger.core.config import Settings, get_settings
from retail_ledger.core.enums import ActivityType, AuditAction, NotificationType
from retail_ledger.core.exceptions import (
    BaseServiceError,
    ConstraintViolationError,
    InsufficientInventoryError,
    PipelineStageError,
)
from retail_ledger.core.utils import order_snapshot, to_money, utc_now
from retail_ledger.models.audit import Audit
from retail_ledger.models.order import Order
from retail_ledger.models.product import Product
from retail_ledger.services.activity_service import ActivityService
from retail_ledger.services.aggregation_service import AggregationService
from retail_ledger.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


@dataclass
class OrderContext:
    """State handed from stage to stage for one mutation."""
    action: AuditAction
    product_id: Optional[str] = None
    client_id: Optional[str] = None
    employee_id: Optional[int] = None
    quantity: Optional[int] = None
    cost: Optional[Decimal] = None
    order_date: Optional[date] = None

    order: Optional[Order] = None
    order_id: Optional[int] = None
    product: Optional[Product] = None
    changes: Dict[str, Any] = field(default_factory=dict)
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None

    expected_cost: Optional[Decimal] = None
    cost_corrected: bool = False
    stock_after: Optional[int] = None


# A handler returns True when it acted and False when it had nothing to do
StageHandler = Callable[[OrderContext], Awaitable[bool]]


@dataclass(frozen=True)
class Stage:
    name: str
    handler: StageHandler
    required: bool = True


@dataclass
class PipelineResult:
    action: AuditAction
    order: Optional[Order]
    order_id: Optional[int]
    completed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    cost_corrected: bool = False
    expected_cost: Optional[Decimal] = None
    stock_after: Optional[int] = None


class OrderMutationPipeline:
    """Runs the fixed stage sequences for order mutations."""

    def __init__(
        self,
        db: AsyncSession,
        settings: Optional[Settings] = None,
        aggregation: Optional[AggregationService] = None,
        notifications: Optional[NotificationService] = None,
        activity: Optional[ActivityService] = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.aggregation = aggregation or AggregationService(db)
        self.notifications = notifications or NotificationService(db)
        self.activity = activity or ActivityService(db, self.settings)

    # =========================================================================
    # STAGE TOPOLOGY
    # =========================================================================

    def insert_stages(self) -> Tuple[Stage, ...]:
        return (
            Stage("validate_stock", self._validate_stock),
            Stage("reconcile_cost", self._reconcile_cost),
            Stage("persist_order", self._persist_order),
            Stage("append_audit", self._append_audit, required=self.settings.AUDIT_REQUIRED),
            Stage("decrement_inventory", self._decrement_inventory),
            Stage("notify_low_stock", self._notify_low_stock, required=False),
            Stage("log_order_metrics", self._log_order_metrics, required=False),
        )

    def update_stages(self) -> Tuple[Stage, ...]:
        return (
            Stage("apply_update", self._apply_update),
            Stage("append_audit", self._append_audit, required=self.settings.AUDIT_REQUIRED),
        )

    def delete_stages(self) -> Tuple[Stage, ...]:
        return (
            Stage("remove_order", self._remove_order),
            Stage("append_audit", self._append_audit, required=self.settings.AUDIT_REQUIRED),
        )

    # =========================================================================
    # ENTRY POINTS
    # =========================================================================

    async def run_insert(self, ctx: OrderContext) -> PipelineResult:
        return await self._run(self.insert_stages(), ctx)

    async def run_update(self, ctx: OrderContext) -> PipelineResult:
        return await self._run(self.update_stages(), ctx)

    async def run_delete(self, ctx: OrderContext) -> PipelineResult:
        return await self._run(self.delete_stages(), ctx)

    async def _run(self, stages: Tuple[Stage, ...], ctx: OrderContext) -> PipelineResult:
        result = PipelineResult(action=ctx.action, order=None, order_id=None)

        for stage in stages:
            if stage.required:
                acted = await self._run_required(stage, ctx)
            else:
                acted = await self._run_best_effort(stage, ctx, result)
                if acted is None:
                    continue
            (result.completed if acted else result.skipped).append(stage.name)
            logger.debug("Stage %s %s for %s", stage.name, "completed" if acted else "skipped", ctx.action.value)

        result.order = ctx.order
        result.order_id = ctx.order_id
        result.cost_corrected = ctx.cost_corrected
        result.expected_cost = ctx.expected_cost
        result.stock_after = ctx.stock_after
        return result

    async def _run_required(self, stage: Stage, ctx: OrderContext) -> bool:
        try:
            return await stage.handler(ctx)
        except BaseServiceError:
            raise
        except Exception as e:
            raise PipelineStageError(stage.name, e) from e

    async def _run_best_effort(self, stage: Stage, ctx: OrderContext, result: PipelineResult) -> Optional[bool]:
        try:
            async with self.db.begin_nested():
                return await stage.handler(ctx)
        except Exception as e:
            logger.exception("Best-effort stage %s failed for order %s", stage.name, ctx.order_id)
            result.failed[stage.name] = str(e)
            return None

    # =========================================================================
    # INSERT STAGES
    # =========================================================================

    async def _validate_stock(self, ctx: OrderContext) -> bool:
        # Row lock held until commit so a concurrent order can't pass on a stale read
        stmt = (
            select(Product)
            .where(Product.id == ctx.product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        product = (await self.db.execute(stmt)).scalar_one_or_none()
        if product is None:
            raise ConstraintViolationError(f"Product '{ctx.product_id}' does not exist")

        if product.stock < ctx.quantity:
            logger.warning(
                "Order rejected: product %s has %s in stock, %s requested",
                product.id, product.stock, ctx.quantity,
            )
            raise InsufficientInventoryError(product.id, product.stock, ctx.quantity)

        ctx.product = product
        return True

    async def _reconcile_cost(self, ctx: OrderContext) -> bool:
        expected = to_money(ctx.product.sell_price * ctx.quantity)
        ctx.expected_cost = expected

        if expected == 0:
            # Tolerance is a ratio of the expected cost; undefined at zero
            return False

        tolerance = Decimal(str(self.settings.COST_TOLERANCE))
        if abs(ctx.cost - expected) / expected > tolerance:
            logger.info(
                "Order cost for product %s corrected from %s to %s (qty %s)",
                ctx.product_id, ctx.cost, expected, ctx.quantity,
            )
            ctx.cost = expected
            ctx.cost_corrected = True
            return True
        return False

    async def _persist_order(self, ctx: OrderContext) -> bool:
        order = Order(
            product_id=ctx.product_id,
            client_id=ctx.client_id,
            employee_id=ctx.employee_id,
            quantity=ctx.quantity,
            cost=ctx.cost,
            date=ctx.order_date or utc_now().date(),
            created_at=utc_now(),
        )
        self.db.add(order)
        await self.db.flush()

        ctx.order = order
        ctx.order_id = order.id
        ctx.new_values = order_snapshot(order)
        return True

    async def _decrement_inventory(self, ctx: OrderContext) -> bool:
        product = ctx.product
        product.stock = product.stock - ctx.quantity
        await self.db.flush()
        ctx.stock_after = product.stock
        return True

    async def _notify_low_stock(self, ctx: OrderContext) -> bool:
        if ctx.stock_after is None or ctx.stock_after > self.settings.LOW_STOCK_THRESHOLD:
            return False

        message = (
            f"Low inventory alert: Product {ctx.product_id} is running low "
            f"({ctx.stock_after} items remaining)"
        )
        notification = await self.notifications.notify_first_in_positions(
            self.settings.LOW_STOCK_RECIPIENT_POSITIONS,
            message,
            NotificationType.SYSTEM,
        )
        if notification is None:
            return False

        logger.info("Low stock alert for %s (%s left) sent to employee %s",
                    ctx.product_id, ctx.stock_after, notification.employee_id)
        return True

    async def _log_order_metrics(self, ctx: OrderContext) -> bool:
        total_orders, avg_cost = await self.aggregation.product_order_metrics(ctx.product_id)
        await self.activity.log_activity(
            client_id=None,
            product_id=ctx.product_id,
            properties={
                "total_orders": total_orders,
                "avg_order_value": str(avg_cost),
                "last_order_date": ctx.order.date.isoformat(),
                "metric_update": "automatic",
            },
            activity_type=ActivityType.VIEW,
        )
        return True

    # =========================================================================
    # UPDATE / DELETE STAGES
    # =========================================================================

    async def _apply_update(self, ctx: OrderContext) -> bool:
        order = ctx.order
        ctx.order_id = order.id
        ctx.old_values = order_snapshot(order)

        for key, value in ctx.changes.items():
            setattr(order, key, value)
        await self.db.flush()

        ctx.new_values = order_snapshot(order)
        return True

    async def _remove_order(self, ctx: OrderContext) -> bool:
        order = ctx.order
        ctx.order_id = order.id
        ctx.old_values = order_snapshot(order)
        ctx.new_values = None

        await self.db.delete(order)
        await self.db.flush()
        ctx.order = None
        return True

    # =========================================================================
    # SHARED
    # =========================================================================

    async def _append_audit(self, ctx: OrderContext) -> bool:
        audit = Audit(
            order_id=ctx.order_id,
            action=ctx.action,
            old_values=ctx.old_values,
            new_values=ctx.new_values,
            created_at=utc_now(),
        )
        self.db.add(audit)
        await self.db.flush()
        return True
