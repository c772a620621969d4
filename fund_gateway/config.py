"""Configuration management using Pydantic Settings"""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Pushpay API
    pushpay_base_url: str = "https://sandbox-api.pushpay.com/v1"
    pushpay_client_id: Optional[str] = None
    pushpay_client_secret: Optional[str] = None
    pushpay_merchant_key: Optional[str] = None
    pushpay_scope: str = "read"

    # Treat tokens as expired this many seconds before the identity endpoint says so
    token_safety_margin_seconds: float = 60.0

    # Upper bound on payments pulled for a summary window
    summary_fetch_limit: int = 1000

    # Service
    service_name: str = "fund-gateway"
    log_level: str = "INFO"
    port: int = 10000
    cors_allow_origins: List[str] = ["*"]

    # HTTP Client
    http_timeout_seconds: float = 5.0


settings = Settings()
