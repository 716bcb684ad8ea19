# tests/test_routes/test_report_routes.py
import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from retail_ledger.core.enums import ActivityType
from retail_ledger.core.exceptions import ConstraintViolationError
from retail_ledger.dependencies import get_db
from retail_ledger.main import app
from retail_ledger.models.activity import Activity


async def override_get_db():
    yield AsyncMock()


app.dependency_overrides[get_db] = override_get_db

client = TestClient(app)


@pytest.fixture
def aggregation(mocker):
    service = MagicMock()
    mocker.patch("retail_ledger.routes.reports.AggregationService", return_value=service)
    return service


@pytest.fixture
def reports(mocker):
    service = MagicMock()
    mocker.patch("retail_ledger.routes.reports.ReportService", return_value=service)
    return service


def test_total_profit(aggregation):
    aggregation.profit = AsyncMock(return_value=Decimal("171.00"))

    response = client.get("/reports/profit")

    assert response.status_code == 200
    assert Decimal(response.json()["value"]) == Decimal("171.00")
    aggregation.profit.assert_awaited_once_with(None)


def test_commission_rejects_bad_rate(aggregation):
    response = client.get("/reports/commission/3", params={"rate": "lots"})

    assert response.status_code == 422


def test_commission(aggregation):
    aggregation.employee_commission = AsyncMock(return_value=Decimal("14.25"))

    response = client.get("/reports/commission/3", params={"rate": "0.05"})

    assert response.status_code == 200
    assert Decimal(response.json()["value"]) == Decimal("14.25")
    aggregation.employee_commission.assert_awaited_once_with(3, Decimal("0.05"))


def test_unknown_product_returns_status_row(reports):
    reports.evaluate_product = AsyncMock(return_value={"status": "Product not found", "product_id": "NOPE"})

    response = client.get("/reports/products/NOPE")

    assert response.status_code == 200
    assert response.json() == {"status": "Product not found", "product_id": "NOPE"}


def test_unknown_customer_returns_status_row(reports):
    reports.customer_summary = AsyncMock(return_value={"status": "Customer not found", "client_id": "NOPE"})

    response = client.get("/reports/customers/NOPE")

    assert response.json() == {"status": "Customer not found", "client_id": "NOPE"}


def test_record_activity_returns_201(mocker):
    service = MagicMock()
    service.record_activity = AsyncMock(return_value=MagicMock(
        spec=Activity,
        id=7,
        client_id="CLI001",
        product_id="P2",
        properties={"source": "web"},
        activity_type=ActivityType.VIEW,
        created_at=datetime(2024, 3, 1, 9, 0),
    ))
    mocker.patch("retail_ledger.routes.activity.ActivityService", return_value=service)

    response = client.post("/activity", json={"client_id": "CLI001", "product_id": "P2", "properties": {"source": "web"}})

    assert response.status_code == 201
    assert response.json()["activity_type"] == "view"


def test_record_activity_with_unknown_type_is_422(mocker):
    service = MagicMock()
    service.record_activity = AsyncMock(side_effect=ConstraintViolationError("Unknown activity type 'purchase'"))
    mocker.patch("retail_ledger.routes.activity.ActivityService", return_value=service)

    response = client.post("/activity", json={"activity_type": "purchase"})

    assert response.status_code == 422


def test_health():
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
