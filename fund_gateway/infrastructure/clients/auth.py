"""OAuth client-credentials token cache for the Pushpay API"""

import asyncio
import logging
import time
from typing import Any, Callable, Optional

import httpx

from fund_gateway.config import Settings, settings
from fund_gateway.domain.exceptions import AuthenticationError, ConfigurationError
from fund_gateway.domain.models import Credential
from fund_gateway.infrastructure.observability.metrics import record_token_refresh

logger = logging.getLogger(__name__)


def response_body(response: httpx.Response) -> Any:
    """Best-effort decode of an error response for diagnostics"""
    try:
        return response.json()
    except ValueError:
        return response.text


class CredentialCache:
    """
    Holds a single bearer token and refreshes it from the identity endpoint.

    One instance is shared by every request the process serves. Refreshes are
    serialised: concurrent callers that find the token stale wait on the same
    lock and pick up the token fetched by whoever got there first, so only one
    identity call is ever in flight.
    """

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        base_url: str | None = None,
        scope: str | None = None,
        safety_margin: float | None = None,
        timeout: float | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = (base_url or settings.pushpay_base_url).rstrip("/")
        self.scope = scope or settings.pushpay_scope
        self.safety_margin = settings.token_safety_margin_seconds if safety_margin is None else safety_margin
        self.timeout = timeout or settings.http_timeout_seconds
        self._transport = transport
        self._clock = clock
        self._credential: Optional[Credential] = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        config: Settings = settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "CredentialCache":
        return cls(
            client_id=config.pushpay_client_id,
            client_secret=config.pushpay_client_secret,
            base_url=config.pushpay_base_url,
            scope=config.pushpay_scope,
            safety_margin=config.token_safety_margin_seconds,
            timeout=config.http_timeout_seconds,
            transport=transport,
        )

    @property
    def credential(self) -> Optional[Credential]:
        return self._credential

    async def get_token(self) -> str:
        """
        Return a bearer token that is valid for at least the safety margin.

        Raises:
            ConfigurationError: Client id or secret missing (no network call made)
            AuthenticationError: Refresh failed and no cached token is still alive
        """
        credential = self._credential
        if credential is not None and credential.is_fresh(self._clock()):
            return credential.token

        async with self._lock:
            # Another waiter may have refreshed while we were queued
            credential = self._credential
            if credential is not None and credential.is_fresh(self._clock()):
                return credential.token
            return await self._refresh(credential)

    def invalidate(self, token: str) -> None:
        """Forget ``token`` if it is still the cached one"""
        if self._credential is not None and self._credential.token == token:
            self._credential = None

    async def _refresh(self, stale: Optional[Credential]) -> str:
        if not self.client_id or not self.client_secret:
            raise ConfigurationError(
                "Pushpay credentials not configured. "
                "Set PUSHPAY_CLIENT_ID and PUSHPAY_CLIENT_SECRET environment variables."
            )

        try:
            credential = await self._fetch_credential()
        except AuthenticationError as e:
            record_token_refresh(success=False)
            logger.error(
                f"Pushpay authentication failed: {e}",
                extra={"status_code": e.status_code, "upstream_body": e.body},
            )
            # A failed refresh does not evict a token the identity endpoint still honours
            if stale is not None and self._clock() < stale.hard_expires_at:
                logger.warning("Reusing cached Pushpay token after failed refresh")
                return stale.token
            raise

        record_token_refresh(success=True)
        self._credential = credential
        logger.info("Pushpay token refreshed", extra={"expires_at": credential.expires_at})
        return credential.token

    async def _fetch_credential(self) -> Credential:
        """
        Run one client-credentials grant against the identity endpoint.

        Raises:
            AuthenticationError: On timeout, HTTP errors, or a malformed token payload
        """
        issued_at = self._clock()
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/oauth/token",
                    json={
                        "grant_type": "client_credentials",
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "scope": self.scope,
                    },
                )
                response.raise_for_status()
                data = response.json()

                token = data["access_token"]
                expires_in = float(data["expires_in"])
                if not isinstance(token, str) or not token:
                    raise ValueError("access_token is empty")

            except httpx.TimeoutException as e:
                raise AuthenticationError(f"Identity endpoint timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise AuthenticationError(
                    f"Identity endpoint error: {e.response.status_code}",
                    status_code=e.response.status_code,
                    body=response_body(e.response),
                ) from e
            except httpx.RequestError as e:
                raise AuthenticationError(f"Identity endpoint unreachable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                raise AuthenticationError(
                    f"Invalid token response from identity endpoint: {e}",
                    status_code=response.status_code,
                ) from e

        return Credential(
            token=token,
            expires_at=issued_at + expires_in - self.safety_margin,
            safety_margin=self.safety_margin,
        )
