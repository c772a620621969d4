"""Pushpay data API client with bearer authentication"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

import httpx
from pydantic import TypeAdapter

from fund_gateway.config import Settings, settings
from fund_gateway.domain.exceptions import ConfigurationError, UpstreamError
from fund_gateway.domain.models import Money, PaymentPage, PaymentRecord, PaymentStatus
from fund_gateway.infrastructure.clients.auth import CredentialCache, response_body
from fund_gateway.infrastructure.observability.metrics import (
    upstream_failure_counter,
    upstream_latency_histogram,
)

logger = logging.getLogger(__name__)

_timestamp_adapter = TypeAdapter(datetime)


def parse_timestamp(raw: str) -> datetime:
    """Parse an upstream ISO 8601 timestamp into an aware UTC datetime"""
    parsed = _timestamp_adapter.validate_python(raw)
    if parsed.tzinfo is None:
        # Pushpay timestamps without an offset are UTC
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_payment(item: Dict[str, Any]) -> PaymentRecord:
    amount = item["amount"]
    payer = item.get("payer") or {}
    fund = item.get("fund") or {}
    return PaymentRecord(
        id=str(item["transactionId"]),
        amount=Money(value=Decimal(str(amount["amount"])), currency=amount["currency"]),
        created_at=parse_timestamp(item["createdOn"]),
        status=PaymentStatus.from_upstream(item.get("status")),
        payer_name=payer.get("fullName"),
        fund_name=fund.get("name"),
        reference=item.get("reference"),
    )


class PushpayClient:
    """Client for the Pushpay merchant payments API"""

    def __init__(
        self,
        credentials: CredentialCache,
        merchant_key: Optional[str],
        base_url: str | None = None,
        timeout: float | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.credentials = credentials
        self.merchant_key = merchant_key
        self.base_url = (base_url or settings.pushpay_base_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        credentials: CredentialCache,
        config: Settings = settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "PushpayClient":
        return cls(
            credentials=credentials,
            merchant_key=config.pushpay_merchant_key,
            base_url=config.pushpay_base_url,
            timeout=config.http_timeout_seconds,
            transport=transport,
        )

    async def request(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET ``base_url + path`` with a bearer token and return the decoded body.

        A 401 invalidates the token that was used and the call is retried once
        with a fresh one; any other failure surfaces immediately.

        Raises:
            ConfigurationError: Client credentials missing
            AuthenticationError: Token could not be obtained
            UpstreamError: On timeout, transport failure, or non-success status
        """
        token = await self.credentials.get_token()
        try:
            return await self._get(path, params, token)
        except UpstreamError as e:
            if e.status_code != httpx.codes.UNAUTHORIZED:
                raise
            logger.warning("Pushpay rejected bearer token, retrying with a fresh one", extra={"path": path})
            self.credentials.invalidate(token)

        token = await self.credentials.get_token()
        return await self._get(path, params, token)

    async def _get(self, path: str, params: Optional[Dict[str, Any]], token: str) -> Any:
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        endpoint = path.split("?", 1)[0]
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                with upstream_latency_histogram.labels(endpoint=self._metric_label(endpoint)).time():
                    response = await client.get(f"{self.base_url}{path}", params=params, headers=headers)
                response.raise_for_status()
                return response.json()

            except httpx.TimeoutException as e:
                upstream_failure_counter.labels(kind="timeout").inc()
                raise UpstreamError(f"Pushpay API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                upstream_failure_counter.labels(kind="status").inc()
                raise UpstreamError(
                    f"Pushpay API error: {e.response.status_code}",
                    status_code=e.response.status_code,
                    body=response_body(e.response),
                ) from e
            except httpx.RequestError as e:
                upstream_failure_counter.labels(kind="transport").inc()
                raise UpstreamError(f"Pushpay API unreachable: {e}") from e
            except ValueError as e:
                upstream_failure_counter.labels(kind="payload").inc()
                raise UpstreamError(
                    f"Pushpay API returned invalid JSON: {e}",
                    status_code=response.status_code,
                ) from e

    def _metric_label(self, endpoint: str) -> str:
        # Keep merchant keys and ids out of metric label values
        if self.merchant_key:
            endpoint = endpoint.replace(self.merchant_key, "{merchant}")
        return endpoint

    async def get_payments(
        self,
        fund_id: str,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        take: int = 50,
    ) -> PaymentPage:
        """
        Fetch one page of a fund's payments, newest first.

        Raises:
            ConfigurationError: Merchant key missing (no network call made)
            UpstreamError: On API failure or malformed payment data
        """
        if not self.merchant_key:
            raise ConfigurationError(
                "Merchant key not configured. Set PUSHPAY_MERCHANT_KEY environment variable."
            )

        params: Dict[str, Any] = {
            "fund": fund_id,
            "orderBy": "CreatedOn desc",
            "take": take,
        }
        if from_date:
            params["from"] = from_date
        if to_date:
            params["to"] = to_date

        data = await self.request(f"/merchant/{self.merchant_key}/payments", params)

        try:
            items = [parse_payment(item) for item in data.get("items") or []]
            return PaymentPage(
                items=items,
                total_count=int(data.get("totalCount", len(items))),
                page=int(data.get("page", 0)),
                total_pages=int(data.get("totalPages", 0)),
            )
        except (KeyError, ValueError, TypeError, AttributeError, ArithmeticError) as e:
            upstream_failure_counter.labels(kind="payload").inc()
            raise UpstreamError(f"Invalid payment data from Pushpay: {e}", body=data) from e
