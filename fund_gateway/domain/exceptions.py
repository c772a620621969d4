"""Domain-specific exceptions"""

from typing import Any, Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ConfigurationError(DomainException):
    """Required Pushpay settings (client id/secret, merchant key) are missing"""

    pass


class UpstreamFailure(DomainException):
    """Base for failures that carry the upstream response, when there was one"""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AuthenticationError(UpstreamFailure):
    """Identity endpoint rejected the client credentials or returned a malformed token"""

    pass


class UpstreamError(UpstreamFailure):
    """Pushpay data API call failed or returned a non-success status"""

    pass
