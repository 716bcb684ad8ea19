# tests/unit/services/test_order_pipeline.py
import pytest
from decimal import Decimal
from unittest.mock import AsyncMock
from sqlalchemy import func, select

from retail_ledger.core.enums import ActivityType, AuditAction
from retail_ledger.core.exceptions import PipelineStageError
from retail_ledger.models import Activity, Audit, Notification, Order, Product
from retail_ledger.services.order_pipeline import OrderContext, OrderMutationPipeline
from retail_ledger.services.order_service import OrderService


async def _count(db, model):
    return await db.scalar(select(func.count()).select_from(model))


def test_insert_stage_order_and_requirements(settings):
    pipeline = OrderMutationPipeline(AsyncMock(), settings)

    stages = pipeline.insert_stages()

    assert [s.name for s in stages] == [
        "validate_stock", "reconcile_cost", "persist_order", "append_audit",
        "decrement_inventory", "notify_low_stock", "log_order_metrics",
    ]
    best_effort = {s.name for s in stages if not s.required}
    assert best_effort == {"notify_low_stock", "log_order_metrics"}


def test_audit_becomes_best_effort_when_not_required(settings):
    settings.AUDIT_REQUIRED = False
    pipeline = OrderMutationPipeline(AsyncMock(), settings)

    for stages in (pipeline.insert_stages(), pipeline.update_stages(), pipeline.delete_stages()):
        audit = next(s for s in stages if s.name == "append_audit")
        assert audit.required is False


@pytest.mark.asyncio
async def test_required_audit_failure_aborts_order(db_session, ledger, settings):
    pipeline = OrderMutationPipeline(db_session, settings)
    pipeline._append_audit = AsyncMock(side_effect=RuntimeError("audit table unavailable"))
    service = OrderService(db_session, settings, pipeline=pipeline)

    with pytest.raises(PipelineStageError) as exc_info:
        await service.insert_order("P1", "CLI001", 3, 5, Decimal("100.00"))

    assert exc_info.value.stage == "append_audit"
    assert await _count(db_session, Order) == 0
    assert await db_session.scalar(select(Product.stock).where(Product.id == "P1")) == 100


@pytest.mark.asyncio
async def test_best_effort_audit_failure_keeps_order(db_session, ledger, settings):
    settings.AUDIT_REQUIRED = False
    pipeline = OrderMutationPipeline(db_session, settings)
    pipeline._append_audit = AsyncMock(side_effect=RuntimeError("audit table unavailable"))
    service = OrderService(db_session, settings, pipeline=pipeline)

    result = await service.insert_order("P1", "CLI001", 3, 5, Decimal("100.00"))

    assert result.failed == {"append_audit": "audit table unavailable"}
    assert "decrement_inventory" in result.completed
    assert await _count(db_session, Order) == 1
    assert await _count(db_session, Audit) == 0
    assert await db_session.scalar(select(Product.stock).where(Product.id == "P1")) == 95


@pytest.mark.asyncio
async def test_failed_low_stock_alert_does_not_block_order(db_session, ledger, settings, mocker):
    pipeline = OrderMutationPipeline(db_session, settings)
    mocker.patch.object(
        pipeline.notifications, "notify_first_in_positions",
        AsyncMock(side_effect=RuntimeError("mail relay down")),
    )
    service = OrderService(db_session, settings, pipeline=pipeline)

    result = await service.insert_order("P2", "CLI001", 3, 5, Decimal("375.00"))

    assert "notify_low_stock" in result.failed
    assert "log_order_metrics" in result.completed
    assert await _count(db_session, Order) == 1
    assert await _count(db_session, Notification) == 0


@pytest.mark.asyncio
async def test_metrics_activity_is_written_without_client(db_session, ledger, settings):
    service = OrderService(db_session, settings)

    await service.insert_order("P1", "CLI001", 3, 5, Decimal("100.00"))
    await service.insert_order("P1", "CLI001", 3, 3, Decimal("60.00"))

    activities = (await db_session.execute(select(Activity).order_by(Activity.id))).scalars().all()
    assert len(activities) == 2
    latest = activities[-1]
    assert latest.client_id is None
    assert latest.product_id == "P1"
    assert latest.activity_type == ActivityType.VIEW
    assert latest.properties["total_orders"] == 2
    assert latest.properties["avg_order_value"] == "20.00"
    assert latest.properties["metric_update"] == "automatic"


@pytest.mark.asyncio
async def test_metrics_activity_does_not_trigger_promotions(db_session, ledger, settings):
    """The pipeline's own view activity has no client, so the fan-out stops there."""
    service = OrderService(db_session, settings)

    for _ in range(5):
        await service.insert_order("P2", "CLI001", 3, 1, Decimal("75.00"))

    assert await _count(db_session, Activity) == 5
    promotions = await db_session.scalar(
        select(func.count()).select_from(Notification).where(Notification.client_id.is_not(None))
    )
    assert promotions == 0


@pytest.mark.asyncio
async def test_zero_priced_product_keeps_submitted_cost(db_session, ledger, settings):
    db_session.add(Product(id="FREE", name="Sample", buy_price=Decimal("0"), sell_price=Decimal("0"), stock=5))
    await db_session.commit()
    pipeline = OrderMutationPipeline(db_session, settings)

    ctx = OrderContext(
        action=AuditAction.INSERT, product_id="FREE", client_id="CLI001",
        employee_id=3, quantity=1, cost=Decimal("3.00"),
    )
    result = await pipeline.run_insert(ctx)

    assert "reconcile_cost" in result.skipped
    assert result.order.cost == Decimal("3.00")
    assert result.expected_cost == Decimal("0.00")
