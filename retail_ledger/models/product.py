"""
Catalog product model.

Stock (``stock``) is only ever decremented by the order pipeline; the check
constraints mirror the ones the pipeline and CatalogService enforce in Python.
"""

from sqlalchemy import CheckConstraint, Column, Integer, String, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from retail_ledger.core.utils import utc_now
from retail_ledger.database import Base
from retail_ledger.models.types import Money


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("sell_price >= buy_price AND buy_price >= 0", name="chk_prices"),
        CheckConstraint("stock >= 0", name="chk_items"),
    )

    id = Column(String(20), primary_key=True)
    name = Column(String(100), nullable=False)
    buy_price = Column(Money, nullable=False, default=0)
    sell_price = Column(Money, nullable=False, default=0)
    stock = Column(Integer, nullable=False, default=0)
    category = Column(String(50), nullable=False, default="General", index=True)

    created_at = Column(TIMESTAMP(timezone=False), default=utc_now, server_default=func.now(), nullable=False)
    updated_at = Column(
        TIMESTAMP(timezone=False),
        default=utc_now,
        onupdate=utc_now,
        server_default=func.now(),
        nullable=False,
    )

    orders = relationship("Order", back_populates="product")

    @property
    def unit_margin(self):
        return self.sell_price - self.buy_price

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock}>"
