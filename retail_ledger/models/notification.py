# retail_ledger/models/notification.py
from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, String, Text, TIMESTAMP
from sqlalchemy.sql import func

from retail_ledger.core.enums import NotificationType
from retail_ledger.core.utils import utc_now
from retail_ledger.database import Base
from retail_ledger.models.types import value_enum


class Notification(Base):
    """
    A message to a client or to an employee.

    Exactly one audience is expected per row: clients receive promotions and
    marketing, employees receive system alerts (low stock, summaries).
    """
    __tablename__ = "notifications"
    __table_args__ = (
        CheckConstraint("client_id IS NOT NULL OR employee_id IS NOT NULL", name="chk_recipient"),
    )

    id = Column(Integer, primary_key=True)
    client_id = Column(String(20), ForeignKey("clients.id", ondelete="CASCADE"), nullable=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=True, index=True)
    message = Column(Text, nullable=False)
    type = Column(value_enum(NotificationType, "notification_type"), nullable=False, default=NotificationType.SYSTEM, index=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP(timezone=False), default=utc_now, server_default=func.now(), nullable=False, index=True)

    @property
    def recipient(self) -> str:
        if self.client_id is not None:
            return f"client:{self.client_id}"
        return f"employee:{self.employee_id}"

    def __repr__(self):
        return f"<Notification {self.type} to {self.recipient}>"
