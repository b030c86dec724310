"""Async SATUSEHAT (Ministry of Health FHIR platform) client.
Assumes OAuth2 client-credentials flow.
"""
from __future__ import annotations
import time
from typing import Any, Callable
import httpx
from .config import SatuSehatConfig
from .errors import TransportError
from .logger import get_logger

logger = get_logger(__name__)


class TokenCache:
    """Bearer token plus the epoch second it expires at.

    A token counts as fresh until ``skew`` seconds before expiry. There is no
    lock: two concurrent callers may both refresh, which only costs an extra
    token request.
    """

    def __init__(self, token: str | None = None, expires_at: float = 0.0, skew: float = 60):
        self.token = token
        self.expires_at = expires_at
        self.skew = skew

    def is_fresh(self, now: float) -> bool:
        return bool(self.token) and now < self.expires_at - self.skew

    def store(self, token: str, expires_at: float) -> None:
        self.token = token
        self.expires_at = expires_at


class SatuSehatClient:
    def __init__(
        self,
        config: SatuSehatConfig | None = None,
        cache: TokenCache | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or SatuSehatConfig.from_env()
        self.config.require_complete()
        self.base_url = self.config.base_url.rstrip("/")
        self.cache = cache if cache is not None else TokenCache()
        self._clock = clock

    async def get_valid_token(self) -> str:
        """Return the cached token, fetching a new one when absent or near expiry."""
        now = self._clock()
        if self.cache.is_fresh(now):
            return self.cache.token  # type: ignore

        logger.info("Requesting SATUSEHAT access token")
        async with httpx.AsyncClient(http2=True, timeout=15) as client:
            resp = await client.post(
                f"{self.base_url}/oauth2/v1/accesstoken",
                params={"grant_type": "client_credentials"},
                data={"client_id": self.config.client_id, "client_secret": self.config.client_secret},
            )
        if not resp.is_success:
            raise TransportError(
                f"SATUSEHAT token error: {resp.status_code} {resp.reason_phrase}",
                http_status=resp.status_code,
                reason=resp.reason_phrase,
            )
        data = resp.json()
        # expires_in arrives as a string on the live platform
        self.cache.store(data["access_token"], now + int(data.get("expires_in", 3600)))
        return self.cache.token  # type: ignore

    async def create_patient(self, patient: dict[str, Any]) -> dict[str, Any]:
        """POST a FHIR Patient resource and return the created resource."""
        headers = {"Authorization": f"Bearer {await self.get_valid_token()}", "Content-Type": "application/json"}
        async with httpx.AsyncClient(http2=True, timeout=15) as client:
            resp = await client.post(f"{self.base_url}/fhir-r4/v1/Patient", headers=headers, json=patient)
        if not resp.is_success:
            logger.error("SATUSEHAT create patient failed", status_code=resp.status_code)
            raise TransportError(
                f"SATUSEHAT create patient error: {resp.status_code} {resp.reason_phrase}",
                http_status=resp.status_code,
                reason=resp.reason_phrase,
            )
        return resp.json()
