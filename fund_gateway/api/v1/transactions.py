"""GET /api/transactions/fund/{fund_id}[/summary] - fund activity endpoints"""

import time
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from fund_gateway.api.v1.schemas import (
    ErrorResponse,
    FundSummaryResponse,
    TransactionListResponse,
    TransactionSchema,
)
from fund_gateway.api.dependencies import get_fund_service, get_request_id
from fund_gateway.domain.exceptions import ConfigurationError, UpstreamFailure
from fund_gateway.infrastructure.observability.logging import log_fund_request
from fund_gateway.services.funds import FundService

router = APIRouter()

ERROR_RESPONSES = {500: {"model": ErrorResponse}, 502: {"model": ErrorResponse}}


def _error_response(status_code: int, error: str, details) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, details=details).model_dump(),
    )


def _translate_failure(e: Exception, request_id: str, fetch_error: str) -> JSONResponse:
    """Map core exceptions onto the dashboard's error body"""
    if isinstance(e, ConfigurationError):
        logging.error(f"Configuration error: {e}", extra={"request_id": request_id})
        return _error_response(500, "Required settings are missing", str(e))

    logging.error(
        f"{fetch_error}: {e}",
        extra={"request_id": request_id, "status_code": e.status_code, "upstream_body": e.body},
    )
    details = {"message": str(e), "upstream": e.body} if e.body is not None else str(e)
    return _error_response(502, fetch_error, details)


@router.get(
    "/transactions/fund/{fund_id}",
    response_model=TransactionListResponse,
    responses=ERROR_RESPONSES,
)
async def list_transactions(
    fund_id: str,
    request: Request,
    from_date: Optional[str] = Query(None, alias="fromDate", description="Lower bound, ISO 8601"),
    to_date: Optional[str] = Query(None, alias="toDate", description="Upper bound, ISO 8601"),
    limit: int = Query(50, ge=1, le=1000, description="Maximum payments to return"),
    fund_service: FundService = Depends(get_fund_service),
):
    """
    List a fund's payments, newest first.

    Returns:
        Display rows plus the upstream total and whether more pages exist
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        page = await fund_service.list_transactions(
            fund_id, from_date=from_date, to_date=to_date, limit=limit
        )
    except (ConfigurationError, UpstreamFailure) as e:
        return _translate_failure(e, request_id, "Failed to fetch transactions")

    duration_ms = (time.time() - start_time) * 1000
    log_fund_request(request_id, fund_id, "list_transactions", len(page.transactions), duration_ms)

    return TransactionListResponse(
        transactions=[
            TransactionSchema(
                id=t.id,
                amount=t.amount,
                currency=t.currency,
                donor=t.donor,
                date=t.date,
                status=t.status,
                fund=t.fund,
                reference=t.reference,
            )
            for t in page.transactions
        ],
        total_count=page.total_count,
        has_more=page.has_more,
    )


@router.get(
    "/transactions/fund/{fund_id}/summary",
    response_model=FundSummaryResponse,
    responses=ERROR_RESPONSES,
)
async def get_fund_summary(
    fund_id: str,
    request: Request,
    period: int = Query(30, ge=1, le=3650, description="Window size in days"),
    fund_service: FundService = Depends(get_fund_service),
):
    """
    Summarise a fund over the last ``period`` days.

    Returns:
        Total, average, count and per-day totals (keys are UTC dates, unordered)
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        summary = await fund_service.get_fund_summary(fund_id, period_days=period)
    except (ConfigurationError, UpstreamFailure) as e:
        return _translate_failure(e, request_id, "Failed to fetch fund summary")

    duration_ms = (time.time() - start_time) * 1000
    log_fund_request(request_id, fund_id, "fund_summary", summary.transaction_count, duration_ms)

    return FundSummaryResponse(
        total_amount=summary.total_amount,
        average_amount=summary.average_amount,
        transaction_count=summary.transaction_count,
        daily_totals=summary.daily_totals,
        period=summary.period,
    )
