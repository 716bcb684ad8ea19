# retail_ledger/models/order.py
from sqlalchemy import CheckConstraint, Column, Date, ForeignKey, Index, Integer, String, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from retail_ledger.core.utils import utc_now
from retail_ledger.database import Base
from retail_ledger.models.types import Money


class Order(Base):
    """A committed sale of one product to one client, booked by one employee."""

    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_quantity"),
        CheckConstraint("cost >= 0", name="chk_cost"),
        Index("idx_orders_date", "date"),
        Index("idx_orders_client", "client_id"),
    )

    id = Column(Integer, primary_key=True)
    product_id = Column(String(20), ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    client_id = Column(String(20), ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="RESTRICT"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=1)
    cost = Column(Money, nullable=False)
    date = Column(Date, nullable=False, default=lambda: utc_now().date())

    created_at = Column(TIMESTAMP(timezone=False), default=utc_now, server_default=func.now(), nullable=False)

    product = relationship("Product", back_populates="orders")
    client = relationship("Client", back_populates="orders")
    employee = relationship("Employee", back_populates="orders")

    def __repr__(self) -> str:
        return (
            f"<Order id={self.id} product={self.product_id} client={self.client_id} "
            f"qty={self.quantity} cost={self.cost}>"
        )
