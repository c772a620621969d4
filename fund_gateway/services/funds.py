"""Fund lookups exposed to the HTTP layer"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from fund_gateway.config import settings
from fund_gateway.domain.aggregation import to_fund_summary, to_transaction_view
from fund_gateway.domain.models import FundSummary, TransactionPage
from fund_gateway.infrastructure.clients.pushpay import PushpayClient


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FundService:
    """Fetches a fund's payments from Pushpay and shapes them for the dashboard"""

    def __init__(
        self,
        pushpay: PushpayClient,
        summary_fetch_limit: int | None = None,
        now: Callable[[], datetime] = _utcnow,
    ):
        self.pushpay = pushpay
        self.summary_fetch_limit = summary_fetch_limit or settings.summary_fetch_limit
        self._now = now

    async def list_transactions(
        self,
        fund_id: str,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        limit: int = 50,
    ) -> TransactionPage:
        """Most recent payments for a fund, ``limit`` of them at most"""
        page = await self.pushpay.get_payments(fund_id, from_date=from_date, to_date=to_date, take=limit)
        return to_transaction_view(page)

    async def get_fund_summary(self, fund_id: str, period_days: int = 30) -> FundSummary:
        """
        Summarise the last ``period_days`` days of a fund's payments.

        Only the first ``summary_fetch_limit`` payments of the window are
        fetched; busier windows are truncated upstream.
        """
        from_date = self._now() - timedelta(days=period_days)
        page = await self.pushpay.get_payments(
            fund_id,
            from_date=from_date.isoformat(),
            take=self.summary_fetch_limit,
        )
        return to_fund_summary(page.items, period_days)
