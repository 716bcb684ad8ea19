# tests/unit/services/test_maintenance_service.py
import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal
from sqlalchemy import func, select

from retail_ledger.core.enums import ActivityType, AuditAction, NotificationType
from retail_ledger.models import Activity, Audit, Notification, Order, Product
from retail_ledger.services.maintenance_service import CLEANUP_MESSAGE, MaintenanceService

TODAY = date(2024, 6, 11)
NOW = datetime(2024, 6, 11, 2, 0)


async def _notifications(db, **criteria):
    # Bulk updates bypass the identity map, so reload attribute state
    stmt = select(Notification).order_by(Notification.id).execution_options(populate_existing=True)
    for key, value in criteria.items():
        stmt = stmt.where(getattr(Notification, key) == value)
    return (await db.execute(stmt)).scalars().all()


async def _last_job_activity(db):
    stmt = select(Activity).order_by(Activity.id.desc()).limit(1)
    return (await db.execute(stmt)).scalar_one()


@pytest.mark.asyncio
async def test_daily_inventory_check_alerts_per_low_product(db_session, ledger, settings):
    product = await db_session.get(Product, "P3")
    product.stock = 4
    await db_session.commit()

    summary = await MaintenanceService(db_session, settings).daily_inventory_check(now=NOW)

    assert summary["low_stock_products"] == ["P3"]
    assert summary["alerts_sent"] == 1
    alerts = await _notifications(db_session, employee_id=1)
    assert [a.message for a in alerts] == ["DAILY ALERT: Low inventory for Notebook (P3) - Only 4 items remaining"]

    logged = await _last_job_activity(db_session)
    assert logged.client_id is None
    assert logged.properties["event_type"] == "daily_inventory_check"
    assert logged.properties["low_stock_products"] == 1


@pytest.mark.asyncio
async def test_weekly_sales_summary(db_session, ledger, settings):
    db_session.add_all([
        Order(product_id="P1", client_id="CLI001", employee_id=3, quantity=5, cost=Decimal("100.00"), date=TODAY - timedelta(days=2)),
        Order(product_id="P2", client_id="CLI002", employee_id=3, quantity=2, cost=Decimal("150.00"), date=TODAY - timedelta(days=6)),
        # Outside the seven-day window
        Order(product_id="P3", client_id="CLI001", employee_id=3, quantity=1, cost=Decimal("999.00"), date=TODAY - timedelta(days=30)),
    ])
    await db_session.commit()

    summary = await MaintenanceService(db_session, settings).weekly_sales_summary(today=TODAY)

    assert summary["total_sales"] == Decimal("250.00")
    assert summary["total_orders"] == 2
    assert summary["top_product"] == "P2"
    assert summary["top_customer"] == "CLI002"
    assert summary["recipients"] == 2

    messages = {n.employee_id: n.message for n in await _notifications(db_session, type=NotificationType.SYSTEM)}
    assert set(messages) == {1, 2}
    assert messages[2] == "WEEKLY SUMMARY: Sales: $250.00, Orders: 2, Top Product: P2, Top Customer: CLI002"

    logged = await _last_job_activity(db_session)
    assert logged.product_id == "P2"
    assert logged.properties["total_sales"] == "250.00"


@pytest.mark.asyncio
async def test_weekly_sales_summary_with_no_sales(db_session, ledger, settings):
    summary = await MaintenanceService(db_session, settings).weekly_sales_summary(today=TODAY)

    assert summary["total_orders"] == 0
    assert summary["top_product"] is None
    notes = await _notifications(db_session, employee_id=2)
    assert notes[0].message.endswith("Top Product: None, Top Customer: None")


@pytest.mark.asyncio
async def test_monthly_cleanup_applies_retention(db_session, ledger, settings):
    old = NOW - timedelta(days=400)
    stale = NOW - timedelta(days=200)
    recent = NOW - timedelta(days=100)
    db_session.add_all([
        Audit(order_id=1, action=AuditAction.INSERT, new_values={"order_id": 1}, created_at=old),
        Audit(order_id=2, action=AuditAction.INSERT, new_values={"order_id": 2}, created_at=recent),
        Activity(client_id="CLI001", activity_type=ActivityType.VIEW, properties=None, created_at=stale),
        Activity(client_id="CLI001", activity_type=ActivityType.VIEW, properties={"keep": True}, created_at=stale),
        Notification(employee_id=1, message="old read", type=NotificationType.SYSTEM, is_read=True, created_at=stale),
        Notification(employee_id=1, message="old unread", type=NotificationType.SYSTEM, is_read=False, created_at=stale),
        Notification(employee_id=1, message="quarter old", type=NotificationType.SYSTEM, is_read=False, created_at=recent),
        Notification(client_id="CLI001", message="promo", type=NotificationType.PROMOTION, is_read=False, created_at=stale),
    ])
    await db_session.commit()

    summary = await MaintenanceService(db_session, settings).monthly_cleanup(now=NOW)

    assert summary == {
        "audit_deleted": 1,
        "activity_deleted": 1,
        "notifications_marked_read": 2,
        "notifications_deleted": 2,
    }
    assert await db_session.scalar(select(func.count()).select_from(Audit)) == 1
    remaining = {n.message: n.is_read for n in await _notifications(db_session)}
    assert remaining["quarter old"] is True
    assert remaining["promo"] is False
    assert "old read" not in remaining
    assert "old unread" not in remaining
    assert remaining[CLEANUP_MESSAGE] is False


@pytest.mark.asyncio
async def test_performance_monitor_alerts_on_quiet_day(db_session, ledger, settings):
    summary = await MaintenanceService(db_session, settings).daily_performance_monitor(today=TODAY)

    assert summary["orders_count"] == 0
    assert summary["alert_sent"] is True
    alerts = await _notifications(db_session, employee_id=2)
    assert alerts[0].message == "ALERT: No orders recorded today (2024-06-11). Please verify system status."


@pytest.mark.asyncio
async def test_performance_monitor_counts_orders(db_session, ledger, settings):
    db_session.add(Order(product_id="P1", client_id="CLI001", employee_id=3, quantity=1, cost=Decimal("20.00"), date=TODAY))
    db_session.add(Activity(client_id="CLI001", activity_type=ActivityType.VIEW, created_at=datetime(2024, 6, 11, 9, 30)))
    await db_session.commit()

    summary = await MaintenanceService(db_session, settings).daily_performance_monitor(today=TODAY)

    assert summary["orders_count"] == 1
    assert summary["activities_count"] == 1
    assert summary["alert_sent"] is False
    assert await _notifications(db_session) == []


@pytest.mark.asyncio
async def test_reengagement_targets_inactive_clients(db_session, ledger, settings):
    db_session.add_all([
        Order(product_id="P1", client_id="CLI001", employee_id=3, quantity=1, cost=Decimal("20.00"), date=TODAY - timedelta(days=5)),
    ])
    await db_session.commit()

    summary = await MaintenanceService(db_session, settings).weekly_customer_reengagement(today=TODAY)

    # CLI002 has never ordered
    assert summary["clients_contacted"] == ["CLI002"]
    notes = await _notifications(db_session, client_id="CLI002")
    assert notes[0].type == NotificationType.MARKETING
    assert notes[0].message == (
        "We miss you, John Roe! Check out our latest products and special offers just for you."
    )
    logged = await _last_job_activity(db_session)
    assert logged.properties["inactive_customers_contacted"] == 1


@pytest.mark.asyncio
async def test_reengagement_includes_lapsed_clients(db_session, ledger, settings):
    db_session.add(Order(product_id="P1", client_id="CLI001", employee_id=3, quantity=1, cost=Decimal("20.00"), date=TODAY - timedelta(days=45)))
    await db_session.commit()

    summary = await MaintenanceService(db_session, settings).weekly_customer_reengagement(today=TODAY)

    assert summary["clients_contacted"] == ["CLI001", "CLI002"]
