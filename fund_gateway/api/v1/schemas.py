"""Pydantic schemas for API responses"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serialises snake_case fields as camelCase for the dashboard"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TransactionSchema(CamelModel):
    """Single payment row"""

    id: str
    amount: float
    currency: str
    donor: str
    date: datetime
    status: str
    fund: Optional[str] = None
    reference: Optional[str] = None


class TransactionListResponse(CamelModel):
    """Response for GET /api/transactions/fund/{fund_id}"""

    transactions: List[TransactionSchema]
    total_count: int
    has_more: bool


class FundSummaryResponse(CamelModel):
    """Response for GET /api/transactions/fund/{fund_id}/summary"""

    total_amount: float
    average_amount: float
    transaction_count: int
    daily_totals: Dict[str, float]
    period: int


class ErrorResponse(BaseModel):
    """Body of a failed fund lookup"""

    error: str
    details: Optional[Any] = None
