"""Notification helpers for clients and staff.

Notifications are terminal: nothing in this module writes to the activity
table, which is what keeps the activity fan-out to a single hop.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from retail_ledger.core.enums import NotificationType
from retail_ledger.core.utils import utc_now
from retail_ledger.models.employee import Employee
from retail_ledger.models.notification import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    """Creates notification rows inside the caller's transaction."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def notify_client(
        self,
        client_id: str,
        message: str,
        notification_type: NotificationType = NotificationType.MARKETING,
    ) -> Notification:
        return await self._create(message, notification_type, client_id=client_id)

    async def notify_employee(
        self,
        employee_id: int,
        message: str,
        notification_type: NotificationType = NotificationType.SYSTEM,
    ) -> Notification:
        return await self._create(message, notification_type, employee_id=employee_id)

    async def employees_in_positions(self, positions: Sequence[str]) -> List[Employee]:
        """Employees holding any of ``positions``, oldest record first."""
        if not positions:
            return []
        result = await self.db.execute(
            select(Employee)
            .where(Employee.position.in_(list(positions)))
            .order_by(Employee.id.asc())
        )
        return list(result.scalars().all())

    async def first_employee_in(self, positions: Sequence[str]) -> Optional[Employee]:
        employees = await self.employees_in_positions(positions)
        return employees[0] if employees else None

    async def notify_first_in_positions(
        self,
        positions: Sequence[str],
        message: str,
        notification_type: NotificationType = NotificationType.SYSTEM,
    ) -> Optional[Notification]:
        """
        Notify the first employee holding one of ``positions``.

        Returns None (and logs) when nobody holds such a position; that is
        not an error for any caller.
        """
        recipient = await self.first_employee_in(positions)
        if recipient is None:
            logger.info("No employee in positions %s; notification skipped", list(positions))
            return None
        return await self.notify_employee(recipient.id, message, notification_type)

    async def notify_all_in_positions(
        self,
        positions: Sequence[str],
        message: str,
        notification_type: NotificationType = NotificationType.SYSTEM,
    ) -> List[Notification]:
        notifications = []
        for employee in await self.employees_in_positions(positions):
            notifications.append(await self.notify_employee(employee.id, message, notification_type))
        return notifications

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _create(
        self,
        message: str,
        notification_type: NotificationType,
        client_id: Optional[str] = None,
        employee_id: Optional[int] = None,
    ) -> Notification:
        notification = Notification(
            client_id=client_id,
            employee_id=employee_id,
            message=message,
            type=notification_type,
            is_read=False,
            created_at=utc_now(),
        )
        self.db.add(notification)
        await self.db.flush()

        logger.debug(
            "Notification %s created for %s: %s",
            notification_type.value,
            notification.recipient,
            message,
        )
        return notification
