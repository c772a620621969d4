"""Aggregation of Pushpay payments into dashboard shapes"""

from datetime import timezone
from decimal import Decimal
from typing import Dict, Iterable
from fund_gateway.domain.models import (
    FundSummary,
    PaymentPage,
    PaymentRecord,
    TransactionPage,
    TransactionView,
)

ANONYMOUS_DONOR = "Anonymous"


def to_transaction_view(page: PaymentPage) -> TransactionPage:
    """
    Project an upstream page into display rows.

    Order comes from upstream (CreatedOn desc); nothing is re-sorted or
    filtered here, so rows map 1:1 onto ``page.items``.
    """
    transactions = [
        TransactionView(
            id=record.id,
            amount=record.amount.value,
            currency=record.amount.currency,
            donor=record.payer_name or ANONYMOUS_DONOR,
            date=record.created_at,
            status=record.status.value,
            fund=record.fund_name,
            reference=record.reference,
        )
        for record in page.items
    ]

    return TransactionPage(
        transactions=transactions,
        total_count=page.total_count,
        has_more=page.page < page.total_pages,
    )


def bucket_date(record: PaymentRecord) -> str:
    """ISO calendar day of a payment, taken in UTC"""
    created_at = record.created_at
    if created_at.tzinfo is not None:
        created_at = created_at.astimezone(timezone.utc)
    return created_at.date().isoformat()


def to_fund_summary(records: Iterable[PaymentRecord], period_days: int) -> FundSummary:
    """
    Roll payments up into totals, an average and per-day totals.

    Requirements:
    - total_amount == sum(daily_totals.values())
    - average_amount is 0 (not a division error) when there are no records
    - daily_totals only holds days that have at least one payment
    - period is echoed back as requested, regardless of days present

    Amounts are summed without currency conversion.
    """
    records = list(records)

    total_amount = Decimal(0)
    daily_totals: Dict[str, Decimal] = {}
    for record in records:
        value = record.amount.value
        total_amount += value
        day = bucket_date(record)
        daily_totals[day] = daily_totals.get(day, Decimal(0)) + value

    count = len(records)
    average_amount = total_amount / count if count > 0 else Decimal(0)

    return FundSummary(
        total_amount=total_amount,
        average_amount=average_amount,
        transaction_count=count,
        period=int(period_days),
        daily_totals=daily_totals,
    )
