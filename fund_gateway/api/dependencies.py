"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from fund_gateway.services.funds import FundService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_fund_service(request: Request) -> FundService:
    """Provide the process-wide fund service built by the app factory"""
    return request.app.state.fund_service
