# retail_ledger/services/activity_service.py
import logging
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from retail_ledger.core.config import Settings, get_settings
from retail_ledger.core.enums import ActivityType, NotificationType
from retail_ledger.core.exceptions import ConstraintViolationError
from retail_ledger.core.utils import utc_now
from retail_ledger.models.activity import Activity
from retail_ledger.models.client import Client
from retail_ledger.models.notification import Notification
from retail_ledger.models.product import Product
from retail_ledger.services.aggregation_service import AggregationService
from retail_ledger.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

CART_REMINDER_MESSAGE = "Don't forget about the items in your cart! Complete your purchase today."


class ActivityFanout:
    """
    Turns one inserted activity into zero or more targeted notifications.

    This is the end of the line: it only ever writes through
    NotificationService, never back into the activity table, so an activity
    produced by the order pipeline is processed exactly once and stops here.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: Optional[Settings] = None,
        notifications: Optional[NotificationService] = None,
        aggregation: Optional[AggregationService] = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.notifications = notifications or NotificationService(db)
        self.aggregation = aggregation or AggregationService(db)

    async def process(self, activity: Activity) -> List[Notification]:
        created: List[Notification] = []

        product = await self.db.get(Product, activity.product_id) if activity.product_id else None
        sell_price = product.sell_price if product is not None else None
        client_orders = await self.aggregation.client_order_count(activity.client_id)

        if (
            activity.activity_type == ActivityType.VIEW
            and activity.client_id
            and sell_price is not None
            and sell_price > self.settings.PROMOTION_PRICE_THRESHOLD
            and client_orders > self.settings.PROMOTION_MIN_CLIENT_ORDERS
        ):
            created.append(
                await self.notifications.notify_client(
                    activity.client_id,
                    f"Special offer on {product.name} - 10% off for valued customers!",
                    NotificationType.PROMOTION,
                )
            )
            logger.info(
                "Promotion sent to client %s for product %s (%d prior orders)",
                activity.client_id, product.id, client_orders,
            )

        if activity.activity_type == ActivityType.CART_ADD:
            if activity.client_id:
                created.append(
                    await self.notifications.notify_client(
                        activity.client_id, CART_REMINDER_MESSAGE, NotificationType.MARKETING
                    )
                )
            else:
                logger.debug("cart_add activity %s has no client; no reminder sent", activity.id)

        return created


class ActivityService:
    """
    Service for recording customer and system activity.

    ``log_activity`` works inside the caller's transaction (the order
    pipeline and maintenance jobs use it); ``record_activity`` is the public
    entry point and commits.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: Optional[Settings] = None,
        fanout: Optional[ActivityFanout] = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.fanout = fanout or ActivityFanout(db, self.settings)

    async def log_activity(
        self,
        client_id: Optional[str],
        product_id: Optional[str],
        properties: Optional[Dict[str, Any]],
        activity_type: Union[ActivityType, str] = ActivityType.VIEW,
    ) -> Activity:
        """
        Insert an activity row and run the fan-out for it.

        Args:
            client_id: Optional client the activity belongs to
            product_id: Optional product the activity refers to
            properties: Free-form key/value data stored as JSON
            activity_type: view, browse, search, cart_add or cart_remove

        Returns:
            The created Activity instance
        """
        activity_type = self._coerce_type(activity_type)
        await self._ensure_references(client_id, product_id)

        activity = Activity(
            client_id=client_id,
            product_id=product_id,
            properties=properties,
            activity_type=activity_type,
            created_at=utc_now(),
        )
        self.db.add(activity)
        await self.db.flush()

        logger.debug(
            f"Activity logged: {activity_type.value} client={client_id or 'N/A'} "
            f"product={product_id or 'N/A'}"
        )

        # Fan-out is best effort; a failure rolls back to the savepoint and
        # the activity itself stays.
        try:
            async with self.db.begin_nested():
                await self.fanout.process(activity)
        except Exception:
            logger.exception("Activity fan-out failed for activity %s", activity.id)

        return activity

    async def record_activity(
        self,
        client_id: Optional[str],
        product_id: Optional[str],
        properties: Optional[Dict[str, Any]],
        activity_type: Union[ActivityType, str] = ActivityType.VIEW,
    ) -> Activity:
        try:
            activity = await self.log_activity(client_id, product_id, properties, activity_type)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return activity

    @staticmethod
    def _coerce_type(activity_type: Union[ActivityType, str]) -> ActivityType:
        try:
            return ActivityType(activity_type)
        except ValueError:
            raise ConstraintViolationError(f"Unknown activity type '{activity_type}'")

    async def _ensure_references(self, client_id: Optional[str], product_id: Optional[str]) -> None:
        if client_id and await self.db.get(Client, client_id) is None:
            raise ConstraintViolationError(f"Client '{client_id}' does not exist")
        if product_id and await self.db.get(Product, product_id) is None:
            raise ConstraintViolationError(f"Product '{product_id}' does not exist")
