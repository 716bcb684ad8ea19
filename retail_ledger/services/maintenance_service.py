# retail_ledger/services/maintenance_service.py
"""
Maintenance Service

Periodic housekeeping jobs run by the scheduler (or by hand through the CLI).

Every job takes an explicit ``today`` / ``now`` so it can be run for any day,
goes through NotificationService and ActivityService like any other caller,
commits its own transaction, and returns a summary dict for logging.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from retail_ledger.core.config import Settings, get_settings
from retail_ledger.core.enums import ActivityType, NotificationType
from retail_ledger.core.utils import to_money, utc_now
from retail_ledger.models.activity import Activity
from retail_ledger.models.audit import Audit
from retail_ledger.models.client import Client
from retail_ledger.models.notification import Notification
from retail_ledger.models.order import Order
from retail_ledger.models.product import Product
from retail_ledger.services.activity_service import ActivityService
from retail_ledger.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

REENGAGEMENT_MESSAGE = "We miss you, {name}! Check out our latest products and special offers just for you."
CLEANUP_MESSAGE = "Monthly database cleanup completed successfully."


class MaintenanceService:

    def __init__(
        self,
        db: AsyncSession,
        settings: Optional[Settings] = None,
        notifications: Optional[NotificationService] = None,
        activity: Optional[ActivityService] = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.notifications = notifications or NotificationService(db)
        self.activity = activity or ActivityService(db, self.settings)

    # =========================================================================
    # DAILY
    # =========================================================================

    async def daily_inventory_check(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Alert the first manager about every product at or below the low-stock threshold."""
        now = now or utc_now()
        threshold = self.settings.LOW_STOCK_THRESHOLD

        result = await self.db.execute(
            select(Product).where(Product.stock <= threshold).order_by(Product.stock.asc(), Product.id.asc())
        )
        low_stock = list(result.scalars().all())

        alerts_sent = 0
        for product in low_stock:
            message = (
                f"DAILY ALERT: Low inventory for {product.name} ({product.id}) - "
                f"Only {product.stock} items remaining"
            )
            sent = await self.notifications.notify_first_in_positions(
                self.settings.LOW_STOCK_RECIPIENT_POSITIONS, message, NotificationType.SYSTEM
            )
            if sent is not None:
                alerts_sent += 1

        await self._log_job(
            "daily_inventory_check",
            now,
            low_stock_products=len(low_stock),
        )
        await self.db.commit()

        logger.info("Daily inventory check: %d low-stock products, %d alerts sent", len(low_stock), alerts_sent)
        return {
            "low_stock_products": [p.id for p in low_stock],
            "alerts_sent": alerts_sent,
        }

    async def daily_performance_monitor(self, today: Optional[date] = None) -> Dict[str, Any]:
        """Record the day's order and activity counts; raise an alert on a day with no orders."""
        now = utc_now()
        today = today or now.date()
        day_start = datetime.combine(today, time.min)
        day_end = day_start + timedelta(days=1)

        orders_count = await self.db.scalar(select(func.count(Order.id)).where(Order.date == today))
        activities_count = await self.db.scalar(
            select(func.count(Activity.id)).where(Activity.created_at >= day_start, Activity.created_at < day_end)
        )
        orders_count = int(orders_count or 0)
        activities_count = int(activities_count or 0)

        await self._log_job(
            "daily_performance_monitor",
            now,
            date=today.isoformat(),
            orders_count=orders_count,
            activities_count=activities_count,
        )

        alerted = False
        if orders_count == 0:
            message = f"ALERT: No orders recorded today ({today.isoformat()}). Please verify system status."
            alerted = await self.notifications.notify_first_in_positions(
                [self.settings.ADMIN_RECIPIENT_POSITION], message, NotificationType.SYSTEM
            ) is not None
        await self.db.commit()

        if alerted:
            logger.warning("No orders recorded on %s; alert sent", today)
        else:
            logger.info("Performance for %s: %d orders, %d activities", today, orders_count, activities_count)
        return {
            "date": today,
            "orders_count": orders_count,
            "activities_count": activities_count,
            "alert_sent": alerted,
        }

    # =========================================================================
    # WEEKLY
    # =========================================================================

    async def weekly_sales_summary(self, today: Optional[date] = None) -> Dict[str, Any]:
        """Summarise the last seven days of sales for every manager."""
        now = utc_now()
        today = today or now.date()
        since = today - timedelta(days=7)

        totals = await self.db.execute(
            select(func.coalesce(func.sum(Order.cost), 0), func.count(Order.id)).where(Order.date >= since)
        )
        total_sales, total_orders = totals.one()
        total_sales = to_money(total_sales)

        top_product = await self._top_by_spend(Order.product_id, since)
        top_customer = await self._top_by_spend(Order.client_id, since)

        message = (
            f"WEEKLY SUMMARY: Sales: ${total_sales}, Orders: {total_orders}, "
            f"Top Product: {top_product or 'None'}, Top Customer: {top_customer or 'None'}"
        )
        sent = await self.notifications.notify_all_in_positions(
            self.settings.SUMMARY_RECIPIENT_POSITIONS, message, NotificationType.SYSTEM
        )

        await self._log_job(
            "weekly_sales_summary",
            now,
            product_id=top_product,
            total_sales=str(total_sales),
            total_orders=int(total_orders),
            top_customer=top_customer,
        )
        await self.db.commit()

        logger.info("Weekly sales summary sent to %d managers: %s", len(sent), message)
        return {
            "since": since,
            "total_sales": total_sales,
            "total_orders": int(total_orders),
            "top_product": top_product,
            "top_customer": top_customer,
            "recipients": len(sent),
        }

    async def weekly_customer_reengagement(self, today: Optional[date] = None) -> Dict[str, Any]:
        """Send a marketing nudge to clients with no order in the inactivity window."""
        now = utc_now()
        today = today or now.date()
        cutoff = today - timedelta(days=self.settings.INACTIVE_CUSTOMER_DAYS)

        last_order = func.max(Order.date)
        stmt = (
            select(Client.id, Client.full_name)
            .outerjoin(Order, Order.client_id == Client.id)
            .group_by(Client.id, Client.full_name)
            .having(or_(last_order < cutoff, last_order.is_(None)))
            .order_by(Client.id)
        )
        inactive = (await self.db.execute(stmt)).all()

        for client_id, full_name in inactive:
            await self.notifications.notify_client(
                client_id, REENGAGEMENT_MESSAGE.format(name=full_name), NotificationType.MARKETING
            )

        await self._log_job(
            "weekly_customer_reengagement",
            now,
            inactive_customers_contacted=len(inactive),
        )
        await self.db.commit()

        logger.info("Re-engagement sent to %d inactive clients (no orders since %s)", len(inactive), cutoff)
        return {"cutoff": cutoff, "clients_contacted": [row[0] for row in inactive]}

    # =========================================================================
    # MONTHLY
    # =========================================================================

    async def monthly_cleanup(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Apply retention rules:

        - audit rows older than AUDIT_RETENTION_DAYS are deleted
        - activity rows older than ACTIVITY_RETENTION_DAYS without properties are deleted
        - system notifications older than NOTIFICATION_MARK_READ_DAYS are marked read
        - read system notifications older than NOTIFICATION_RETENTION_DAYS are deleted
        """
        now = now or utc_now()
        settings = self.settings

        audit_deleted = await self._rowcount(
            delete(Audit).where(Audit.created_at < now - timedelta(days=settings.AUDIT_RETENTION_DAYS))
        )
        activity_deleted = await self._rowcount(
            delete(Activity).where(
                Activity.created_at < now - timedelta(days=settings.ACTIVITY_RETENTION_DAYS),
                Activity.properties.is_(None),
            )
        )
        notifications_marked = await self._rowcount(
            update(Notification)
            .where(
                Notification.created_at < now - timedelta(days=settings.NOTIFICATION_MARK_READ_DAYS),
                Notification.type == NotificationType.SYSTEM,
                Notification.is_read.is_(False),
            )
            .values(is_read=True)
        )
        notifications_deleted = await self._rowcount(
            delete(Notification).where(
                Notification.created_at < now - timedelta(days=settings.NOTIFICATION_RETENTION_DAYS),
                Notification.type == NotificationType.SYSTEM,
                Notification.is_read.is_(True),
            )
        )

        await self._log_job("monthly_cleanup", now, cleanup_completed=True)
        await self.notifications.notify_first_in_positions(
            [settings.ADMIN_RECIPIENT_POSITION], CLEANUP_MESSAGE, NotificationType.SYSTEM
        )
        await self.db.commit()

        summary = {
            "audit_deleted": audit_deleted,
            "activity_deleted": activity_deleted,
            "notifications_marked_read": notifications_marked,
            "notifications_deleted": notifications_deleted,
        }
        logger.info("Monthly cleanup finished: %s", summary)
        return summary

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _log_job(self, event_type: str, now: datetime, product_id: Optional[str] = None, **properties) -> Activity:
        return await self.activity.log_activity(
            client_id=None,
            product_id=product_id,
            properties={"event_type": event_type, "timestamp": now.isoformat(), **properties},
            activity_type=ActivityType.VIEW,
        )

    async def _top_by_spend(self, column, since: date) -> Optional[str]:
        stmt = (
            select(column)
            .where(Order.date >= since)
            .group_by(column)
            .order_by(func.sum(Order.cost).desc(), column.asc())
            .limit(1)
        )
        return await self.db.scalar(stmt)

    async def _rowcount(self, stmt) -> int:
        # Bulk statements bypass the identity map; stale objects are not reused afterwards
        result = await self.db.execute(stmt.execution_options(synchronize_session=False))
        return int(result.rowcount or 0)
