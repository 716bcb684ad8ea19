# retail_ledger/models/address.py
from sqlalchemy import Column, Integer, String, TIMESTAMP
from sqlalchemy.sql import func

from retail_ledger.core.utils import utc_now
from retail_ledger.database import Base


class Address(Base):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True)
    street = Column(String(255), nullable=False)
    county = Column(String(100), nullable=False)

    created_at = Column(TIMESTAMP(timezone=False), default=utc_now, server_default=func.now(), nullable=False)
    updated_at = Column(
        TIMESTAMP(timezone=False),
        default=utc_now,
        onupdate=utc_now,
        server_default=func.now(),
        nullable=False,
    )

    def formatted(self) -> str:
        return f"{self.street}, {self.county}"

    def __repr__(self) -> str:
        return f"<Address id={self.id} {self.formatted()}>"
