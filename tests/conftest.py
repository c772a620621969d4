"""Pytest fixtures for testing"""

import pytest
import httpx
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable
from fastapi.testclient import TestClient

from fund_gateway.api.main import create_app
from fund_gateway.domain.models import Money, PaymentRecord, PaymentStatus
from fund_gateway.infrastructure.clients.auth import CredentialCache
from fund_gateway.infrastructure.clients.pushpay import PushpayClient
from fund_gateway.services.funds import FundService
from mock_servers.pushpay import main as mock_pushpay
from tests.helpers import BASE_URL, FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def payment() -> Callable[..., PaymentRecord]:
    """Factory for payment records"""

    def make(
        amount: str = "10",
        created_at: datetime = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc),
        currency: str = "USD",
        id: str = "txn",
        payer_name: str | None = "Jane Doe",
        status: PaymentStatus = PaymentStatus.SUCCESSFUL,
    ) -> PaymentRecord:
        return PaymentRecord(
            id=id,
            amount=Money(value=Decimal(amount), currency=currency),
            created_at=created_at,
            status=status,
            payer_name=payer_name,
            fund_name="Building Fund",
            reference=f"REF-{id}",
        )

    return make


@pytest.fixture
def mock_transport() -> httpx.ASGITransport:
    """Routes outbound calls into the mock Pushpay app"""
    mock_pushpay.issued_tokens.clear()
    return httpx.ASGITransport(app=mock_pushpay.app)


@pytest.fixture
def fund_service(mock_transport: httpx.ASGITransport) -> FundService:
    """Fund service wired against the mock Pushpay app"""
    credentials = CredentialCache(
        client_id=mock_pushpay.CLIENT_ID,
        client_secret=mock_pushpay.CLIENT_SECRET,
        base_url=BASE_URL,
        transport=mock_transport,
    )
    pushpay = PushpayClient(
        credentials,
        merchant_key=mock_pushpay.MERCHANT_KEY,
        base_url=BASE_URL,
        transport=mock_transport,
    )
    return FundService(pushpay)


@pytest.fixture
def client(fund_service: FundService) -> TestClient:
    """Create FastAPI test client backed by the mock Pushpay app"""
    app = create_app(fund_service=fund_service)
    return TestClient(app)
