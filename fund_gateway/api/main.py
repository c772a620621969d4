"""FastAPI application factory"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from fund_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from fund_gateway.api.v1 import transactions
from fund_gateway.infrastructure.clients.auth import CredentialCache
from fund_gateway.infrastructure.clients.pushpay import PushpayClient
from fund_gateway.infrastructure.observability.logging import setup_logging
from fund_gateway.services.funds import FundService
from fund_gateway.config import Settings, settings

# Setup structured logging
setup_logging(settings.log_level)


def build_fund_service(config: Settings = settings) -> FundService:
    """Wire the process-wide credential cache into the Pushpay client"""
    credentials = CredentialCache.from_settings(config)
    pushpay = PushpayClient.from_settings(credentials, config)
    return FundService(pushpay, summary_fetch_limit=config.summary_fetch_limit)


def create_app(fund_service: Optional[FundService] = None) -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Church Fund Dashboard API",
        description="Read-only view of Pushpay fund transactions and summaries",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # One credential cache per process, shared by every request
    app.state.fund_service = fund_service or build_fund_service()

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    @app.get("/")
    def root():
        return {
            "message": "Church Fund Dashboard API",
            "endpoints": {
                "health": "/health",
                "transactions": "/api/transactions/fund/{fund_id}",
                "summary": "/api/transactions/fund/{fund_id}/summary",
            },
        }

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {
            "status": "ok",
            "service": settings.service_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(transactions.router, prefix="/api", tags=["transactions"])

    return app


app = create_app()
