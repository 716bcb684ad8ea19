# tests/unit/services/test_catalog_service.py
import pytest
from decimal import Decimal
from sqlalchemy import func, select

from retail_ledger.core.exceptions import ConstraintViolationError
from retail_ledger.models import Product
from retail_ledger.schemas.catalog import AddressCreate, ClientCreate, EmployeeCreate, ProductCreate
from retail_ledger.services.catalog_service import CatalogService


@pytest.mark.asyncio
async def test_create_reference_data(db_session):
    service = CatalogService(db_session)

    address = await service.create_address(AddressCreate(street="5 Mill Lane", county="Devon"))
    client = await service.create_client(
        ClientCreate(id="CLI100", full_name="Ada Lane", contact_number=447700900100, address_id=address.id)
    )
    employee = await service.create_employee(
        EmployeeCreate(full_name="Ben Ware", address_id=address.id, position="Inventory Manager", salary="28000")
    )
    product = await service.create_product(
        ProductCreate(id="P100", name="Kettle", buy_price="12.50", sell_price="19.99", stock=20)
    )

    assert client.address.formatted() == "5 Mill Lane, Devon"
    assert employee.salary == Decimal("28000.00")
    assert product.category == "General"
    assert product.sell_price == Decimal("19.99")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "buy_price, sell_price, stock",
    [("10.00", "9.99", 5), ("-1.00", "5.00", 5), ("1.00", "2.00", -1)],
)
async def test_create_product_rejects_invalid_catalog_rows(db_session, buy_price, sell_price, stock):
    service = CatalogService(db_session)

    with pytest.raises(ConstraintViolationError):
        await service.create_product(
            ProductCreate(id="BAD", name="Broken", buy_price=buy_price, sell_price=sell_price, stock=stock)
        )

    assert await db_session.scalar(select(func.count()).select_from(Product)) == 0


@pytest.mark.asyncio
async def test_duplicate_ids_and_missing_address_are_rejected(db_session, ledger):
    service = CatalogService(db_session)

    with pytest.raises(ConstraintViolationError):
        await service.create_product(ProductCreate(id="P1", name="Again", buy_price="1", sell_price="2"))
    with pytest.raises(ConstraintViolationError):
        await service.create_client(ClientCreate(id="CLI001", full_name="Dup", contact_number=1, address_id=ledger["address_id"]))
    with pytest.raises(ConstraintViolationError):
        await service.create_employee(EmployeeCreate(full_name="Nobody", address_id=999))
