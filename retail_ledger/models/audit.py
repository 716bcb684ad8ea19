# retail_ledger/models/audit.py
from sqlalchemy import Column, Integer, TIMESTAMP
from sqlalchemy.sql import func

from retail_ledger.core.enums import AuditAction
from retail_ledger.core.utils import utc_now
from retail_ledger.database import Base
from retail_ledger.models.types import JSONType, value_enum


class Audit(Base):
    """
    Immutable history of order mutations, one row per insert/update/delete.

    ``order_id`` deliberately carries no foreign key: the row recording a
    delete has to outlive the order it describes.
    """
    __tablename__ = "audit"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, nullable=False, index=True)
    action = Column(value_enum(AuditAction, "audit_action"), nullable=False, default=AuditAction.INSERT)
    old_values = Column(JSONType, nullable=True)
    new_values = Column(JSONType, nullable=True)
    created_at = Column(TIMESTAMP(timezone=False), default=utc_now, server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<Audit {self.action} order={self.order_id}>"
