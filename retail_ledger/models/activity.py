# retail_ledger/models/activity.py
from sqlalchemy import Column, ForeignKey, Index, Integer, String, TIMESTAMP
from sqlalchemy.sql import func

from retail_ledger.core.enums import ActivityType
from retail_ledger.core.utils import utc_now
from retail_ledger.database import Base
from retail_ledger.models.types import JSONType, value_enum


class Activity(Base):
    """
    Behavioural and system events.

    Customer interactions (view, browse, search, cart actions) carry a client;
    rows written by the order pipeline and maintenance jobs leave it empty and
    keep their metrics in ``properties``.
    """
    __tablename__ = "activity"
    __table_args__ = (
        Index("idx_activity_client", "client_id"),
        Index("idx_activity_created", "created_at"),
    )

    id = Column(Integer, primary_key=True)
    client_id = Column(String(20), ForeignKey("clients.id", ondelete="CASCADE"), nullable=True)
    product_id = Column(String(20), ForeignKey("products.id", ondelete="CASCADE"), nullable=True, index=True)
    properties = Column(JSONType, nullable=True)
    activity_type = Column(value_enum(ActivityType, "activity_type"), nullable=False, default=ActivityType.VIEW)
    created_at = Column(TIMESTAMP(timezone=False), default=utc_now, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Activity {self.activity_type} client={self.client_id} product={self.product_id}>"
