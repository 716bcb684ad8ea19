# retail_ledger/models/employee.py
from sqlalchemy import Column, ForeignKey, Integer, String, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from retail_ledger.core.enums import EmployeePosition
from retail_ledger.core.utils import utc_now
from retail_ledger.database import Base
from retail_ledger.models.types import Money


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True)
    full_name = Column(String(100), nullable=False)
    address_id = Column(Integer, ForeignKey("addresses.id", ondelete="RESTRICT"), nullable=False)
    # Free text; notification routing matches on EmployeePosition values
    position = Column(String(50), nullable=False, default=EmployeePosition.SALES_ASSOCIATE.value, index=True)
    salary = Column(Money, nullable=False, default=0)

    created_at = Column(TIMESTAMP(timezone=False), default=utc_now, server_default=func.now(), nullable=False)
    updated_at = Column(
        TIMESTAMP(timezone=False),
        default=utc_now,
        onupdate=utc_now,
        server_default=func.now(),
        nullable=False,
    )

    address = relationship("Address")
    orders = relationship("Order", back_populates="employee")

    def __repr__(self) -> str:
        return f"<Employee id={self.id} name={self.full_name!r} position={self.position!r}>"
