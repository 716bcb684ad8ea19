# tests/conftest.py
import os

# Point the application engine at SQLite before any retail_ledger module builds it
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("SCHEDULER_ENABLED", "false")

from decimal import Decimal

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from retail_ledger.core.config import Settings, clear_settings_cache
from retail_ledger.database import Base
from retail_ledger import models  # noqa: F401
from retail_ledger.models import Address, Client, Employee, Product

clear_settings_cache()

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def settings():
    """Provide test settings"""
    return Settings(
        DATABASE_URL=TEST_DATABASE_URL,
        SCHEDULER_ENABLED=False,
        AUDIT_REQUIRED=True,
    )


@pytest.fixture(scope="function")
async def test_engine():
    """In-memory SQLite engine with SAVEPOINT support, recreated per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite/aiosqlite issue their own BEGIN handling, which breaks SAVEPOINT;
    # take over transaction control so begin_nested() works.
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine):
    """Provide a database session for tests"""
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def ledger(db_session):
    """
    Reference data most tests need:

    - employees 1 (Inventory Manager), 2 (Sales Manager), 3 (Sales Associate)
    - clients CLI001, CLI002
    - products P1 (10.00 / 20.00, stock 100), P2 (40.00 / 75.00, stock 12),
      P3 (2.00 / 5.00, stock 40)
    """
    address = Address(street="1 High Street", county="Kent")
    db_session.add(address)
    await db_session.flush()

    db_session.add_all([
        Employee(id=1, full_name="Iris Stock", address_id=address.id, position="Inventory Manager", salary=Decimal("32000")),
        Employee(id=2, full_name="Sam Sales", address_id=address.id, position="Sales Manager", salary=Decimal("35000")),
        Employee(id=3, full_name="Alex Floor", address_id=address.id, position="Sales Associate", salary=Decimal("24000")),
        Client(id="CLI001", full_name="Jane Doe", contact_number=447700900001, address_id=address.id),
        Client(id="CLI002", full_name="John Roe", contact_number=447700900002, address_id=address.id),
        Product(id="P1", name="Desk Lamp", buy_price=Decimal("10.00"), sell_price=Decimal("20.00"), stock=100, category="Lighting"),
        Product(id="P2", name="Office Chair", buy_price=Decimal("40.00"), sell_price=Decimal("75.00"), stock=12, category="Furniture"),
        Product(id="P3", name="Notebook", buy_price=Decimal("2.00"), sell_price=Decimal("5.00"), stock=40, category="Stationery"),
    ])
    await db_session.commit()
    return {"address_id": address.id}
