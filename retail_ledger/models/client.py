# retail_ledger/models/client.py
from sqlalchemy import BigInteger, Column, ForeignKey, Integer, String, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from retail_ledger.core.utils import utc_now
from retail_ledger.database import Base


class Client(Base):
    """A customer. Identified by a short business key such as ``CLI001``."""

    __tablename__ = "clients"

    id = Column(String(20), primary_key=True)
    full_name = Column(String(100), nullable=False)
    contact_number = Column(BigInteger, nullable=False)
    address_id = Column(Integer, ForeignKey("addresses.id", ondelete="RESTRICT"), nullable=False)

    created_at = Column(TIMESTAMP(timezone=False), default=utc_now, server_default=func.now(), nullable=False)
    updated_at = Column(
        TIMESTAMP(timezone=False),
        default=utc_now,
        onupdate=utc_now,
        server_default=func.now(),
        nullable=False,
    )

    address = relationship("Address", lazy="joined")
    orders = relationship("Order", back_populates="client")

    def __repr__(self) -> str:
        return f"<Client id={self.id} name={self.full_name!r}>"
