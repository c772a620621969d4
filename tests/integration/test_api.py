"""Integration tests for API endpoints"""

import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient

from fund_gateway.domain.exceptions import AuthenticationError, ConfigurationError, UpstreamError
from mock_servers.pushpay import main as mock_pushpay


def test_root_endpoint_lists_routes(client: TestClient):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["endpoints"]["summary"] == "/api/transactions/fund/{fund_id}/summary"


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "timestamp" in data


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    client.get("/api/transactions/fund/building-fund")

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "pushpay_token_refresh_total" in response.text
    assert "http_request_duration_seconds" in response.text


def test_request_id_header(client: TestClient):
    """Test request IDs are generated or echoed back"""
    assert client.get("/health").headers["X-Request-ID"]
    assert client.get("/health", headers={"X-Request-ID": "abc-123"}).headers["X-Request-ID"] == "abc-123"


def test_list_transactions(client: TestClient):
    """Test GET /api/transactions/fund/{fund_id} against the mock Pushpay app"""
    response = client.get("/api/transactions/fund/building-fund", params={"limit": 10})

    assert response.status_code == 200
    data = response.json()
    assert data["totalCount"] == 5
    assert data["hasMore"] is True  # Pushpay pages are zero-based
    assert [t["id"] for t in data["transactions"]] == ["txn_000", "txn_001", "txn_003", "txn_005", "txn_006"]

    first = data["transactions"][0]
    assert first["amount"] == 50.0
    assert first["currency"] == "USD"
    assert first["donor"] == "Ada Lovelace"
    assert first["status"] == "Pending"
    assert first["fund"] == "Building Fund"
    assert first["reference"] == "REF-0000"
    assert first["date"].startswith("2024-03-10T15:00:00")
    assert data["transactions"][1]["donor"] == "Anonymous"


def test_list_transactions_reuses_token(client: TestClient):
    """Test repeated requests share one bearer token"""
    for _ in range(3):
        assert client.get("/api/transactions/fund/missions").status_code == 200

    assert len(mock_pushpay.issued_tokens) == 1


def test_list_transactions_validates_limit(client: TestClient):
    response = client.get("/api/transactions/fund/building-fund", params={"limit": 0})
    assert response.status_code == 422


def test_fund_summary(client: TestClient):
    """Test GET /api/transactions/fund/{fund_id}/summary against the mock Pushpay app"""
    response = client.get("/api/transactions/fund/building-fund/summary", params={"period": 14})

    assert response.status_code == 200
    data = response.json()
    assert data["totalAmount"] == pytest.approx(110.5)
    assert data["transactionCount"] == 5
    assert data["averageAmount"] == pytest.approx(22.1)
    assert data["period"] == 14
    assert data["dailyTotals"] == {
        "2024-03-10": 75.5,
        "2024-03-09": 10.0,
        "2024-03-08": 20.0,
        "2024-03-07": 5.0,
    }


def test_fund_summary_default_period(client: TestClient):
    response = client.get("/api/transactions/fund/nothing-here/summary")

    assert response.status_code == 200
    assert response.json() == {
        "totalAmount": 0.0,
        "averageAmount": 0.0,
        "transactionCount": 0,
        "dailyTotals": {},
        "period": 30,
    }


def test_fund_summary_validates_period(client: TestClient):
    response = client.get("/api/transactions/fund/building-fund/summary", params={"period": "0"})
    assert response.status_code == 422


@pytest.mark.parametrize("period", [3651, 1_000_000_000])
def test_fund_summary_rejects_oversized_period(client: TestClient, period: int):
    """Test windows past ten years are rejected before reaching Pushpay"""
    response = client.get("/api/transactions/fund/building-fund/summary", params={"period": period})

    assert response.status_code == 422
    assert mock_pushpay.issued_tokens == set()


def test_fund_summary_accepts_ten_year_period(client: TestClient):
    response = client.get("/api/transactions/fund/building-fund/summary", params={"period": 3650})

    assert response.status_code == 200
    assert response.json()["period"] == 3650


@patch("fund_gateway.services.funds.FundService.list_transactions", new_callable=AsyncMock)
def test_list_transactions_configuration_error(mock_list: AsyncMock, client: TestClient):
    """Test missing settings surface as a 500 with a settings message"""
    mock_list.side_effect = ConfigurationError("Merchant key not configured.")

    response = client.get("/api/transactions/fund/building-fund")

    assert response.status_code == 500
    assert response.json() == {
        "error": "Required settings are missing",
        "details": "Merchant key not configured.",
    }


@patch("fund_gateway.services.funds.FundService.get_fund_summary", new_callable=AsyncMock)
def test_fund_summary_upstream_error(mock_summary: AsyncMock, client: TestClient):
    """Test upstream failures surface as a 502 with the upstream body attached"""
    mock_summary.side_effect = UpstreamError(
        "Pushpay API error: 503", status_code=503, body={"message": "maintenance"}
    )

    response = client.get("/api/transactions/fund/building-fund/summary")

    assert response.status_code == 502
    assert response.json() == {
        "error": "Failed to fetch fund summary",
        "details": {"message": "Pushpay API error: 503", "upstream": {"message": "maintenance"}},
    }


@patch("fund_gateway.services.funds.FundService.list_transactions", new_callable=AsyncMock)
def test_list_transactions_authentication_error(mock_list: AsyncMock, client: TestClient):
    mock_list.side_effect = AuthenticationError("Identity endpoint timeout after 5.0s")

    response = client.get("/api/transactions/fund/building-fund")

    assert response.status_code == 502
    assert response.json() == {
        "error": "Failed to fetch transactions",
        "details": "Identity endpoint timeout after 5.0s",
    }


def test_invalid_client_credentials(fund_service, client: TestClient):
    """Test rejected client credentials reach the caller as a fetch failure"""
    fund_service.pushpay.credentials.client_secret = "wrong"

    response = client.get("/api/transactions/fund/building-fund")

    assert response.status_code == 502
    data = response.json()
    assert data["error"] == "Failed to fetch transactions"
    assert data["details"]["upstream"] == {"detail": "invalid_client"}


def test_mock_pushpay_serves_under_base_url_prefix(mock_transport):
    """Test the mock upstream answers at the same /v1 paths as the real API"""
    mock = TestClient(mock_pushpay.app)

    token = mock.post(
        "/v1/oauth/token",
        json={
            "grant_type": "client_credentials",
            "client_id": mock_pushpay.CLIENT_ID,
            "client_secret": mock_pushpay.CLIENT_SECRET,
            "scope": "read",
        },
    ).json()["access_token"]
    response = mock.get(
        f"/v1/merchant/{mock_pushpay.MERCHANT_KEY}/payments",
        params={"fund": "missions"},
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 200
    assert response.json()["totalCount"] == 3
    assert mock.post("/oauth/token", json={}).status_code == 404
