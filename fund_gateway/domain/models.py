"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional


class PaymentStatus(str, Enum):
    """Normalised payment status"""

    SUCCESSFUL = "Successful"
    FAILED = "Failed"
    PENDING = "Pending"
    OTHER = "Other"

    @classmethod
    def from_upstream(cls, raw: Optional[str]) -> "PaymentStatus":
        """Map a Pushpay status string onto the normalised enum"""
        return _UPSTREAM_STATUSES.get((raw or "").strip().lower(), cls.OTHER)


_UPSTREAM_STATUSES = {
    "success": PaymentStatus.SUCCESSFUL,
    "successful": PaymentStatus.SUCCESSFUL,
    "failed": PaymentStatus.FAILED,
    "pending": PaymentStatus.PENDING,
    "processing": PaymentStatus.PENDING,
}


@dataclass
class Credential:
    """Cached bearer token.

    ``expires_at`` already has the safety margin taken off, so the token is
    usable while ``clock() < expires_at``.
    """

    token: str
    expires_at: float
    safety_margin: float = 0.0

    @property
    def hard_expires_at(self) -> float:
        """Instant the identity endpoint reported as the real expiry"""
        return self.expires_at + self.safety_margin

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at


@dataclass(frozen=True)
class Money:
    value: Decimal
    currency: str


@dataclass(frozen=True)
class PaymentRecord:
    """Payment from the Pushpay API, read-only"""

    id: str
    amount: Money
    created_at: datetime  # tz-aware, UTC
    status: PaymentStatus
    payer_name: Optional[str] = None
    fund_name: Optional[str] = None
    reference: Optional[str] = None


@dataclass
class PaymentPage:
    """One page of payments as returned upstream"""

    items: List[PaymentRecord]
    total_count: int
    page: int
    total_pages: int


@dataclass
class TransactionView:
    """Display projection of a PaymentRecord"""

    id: str
    amount: Decimal
    currency: str
    donor: str
    date: datetime
    status: str
    fund: Optional[str]
    reference: Optional[str]


@dataclass
class TransactionPage:
    transactions: List[TransactionView]
    total_count: int
    has_more: bool


@dataclass
class FundSummary:
    """Rolled-up fund activity over a window of days"""

    total_amount: Decimal
    average_amount: Decimal
    transaction_count: int
    period: int
    daily_totals: Dict[str, Decimal] = field(default_factory=dict)
