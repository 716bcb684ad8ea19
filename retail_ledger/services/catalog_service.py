"""
Purpose: Loads the reference data orders point at.

Addresses, clients, employees and products are created here with the same
price and stock rules the database check constraints enforce, so bad rows are
rejected with ConstraintViolationError instead of an IntegrityError.
"""

import logging
from decimal import Decimal, InvalidOperation

from sqlalchemy.ext.asyncio import AsyncSession

from retail_ledger.core.exceptions import ConstraintViolationError
from retail_ledger.core.utils import to_money
from retail_ledger.models.address import Address
from retail_ledger.models.client import Client
from retail_ledger.models.employee import Employee
from retail_ledger.models.product import Product
from retail_ledger.schemas.catalog import AddressCreate, ClientCreate, EmployeeCreate, ProductCreate

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_address(self, data: AddressCreate) -> Address:
        address = Address(**data.model_dump())
        return await self._save(address)

    async def create_client(self, data: ClientCreate) -> Client:
        if await self.db.get(Client, data.id) is not None:
            raise ConstraintViolationError(f"Client '{data.id}' already exists")
        await self._ensure_address(data.address_id)
        client = Client(**data.model_dump())
        return await self._save(client)

    async def create_employee(self, data: EmployeeCreate) -> Employee:
        await self._ensure_address(data.address_id)
        salary = self._money(data.salary, "Salary")
        if salary < 0:
            raise ConstraintViolationError(f"Salary cannot be negative, got {salary}")
        employee = Employee(**data.model_dump(exclude={"salary"}), salary=salary)
        return await self._save(employee)

    async def create_product(self, data: ProductCreate) -> Product:
        """
        Create a catalog product.

        Raises:
            ConstraintViolationError: duplicate id, negative buy price or stock,
                or a sell price below the buy price
        """
        if await self.db.get(Product, data.id) is not None:
            raise ConstraintViolationError(f"Product '{data.id}' already exists")

        buy_price = self._money(data.buy_price, "Buy price")
        sell_price = self._money(data.sell_price, "Sell price")
        if buy_price < 0:
            raise ConstraintViolationError(f"Buy price cannot be negative, got {buy_price}")
        if sell_price < buy_price:
            raise ConstraintViolationError(
                f"Sell price {sell_price} is below buy price {buy_price} for product '{data.id}'"
            )
        if data.stock < 0:
            raise ConstraintViolationError(f"Stock cannot be negative, got {data.stock}")

        product = Product(
            id=data.id,
            name=data.name,
            buy_price=buy_price,
            sell_price=sell_price,
            stock=data.stock,
            category=data.category or "General",
        )
        return await self._save(product)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _save(self, instance):
        try:
            self.db.add(instance)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(instance)
        logger.info("Created %r", instance)
        return instance

    async def _ensure_address(self, address_id: int) -> None:
        if await self.db.get(Address, address_id) is None:
            raise ConstraintViolationError(f"Address {address_id} does not exist")

    @staticmethod
    def _money(value, label: str) -> Decimal:
        try:
            amount = to_money(value)
        except (InvalidOperation, ValueError, TypeError):
            raise ConstraintViolationError(f"{label} must be a valid number, got {value!r}")
        if not amount.is_finite():
            raise ConstraintViolationError(f"{label} must be a finite number, got {value!r}")
        return amount
