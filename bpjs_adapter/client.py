"""Async BPJS VClaim client.

Every request is signed: X-signature = base64(HMAC-SHA256(secret, "{consId}&{timestamp}"))
with a timestamp taken per call, so signatures are never reused.
"""
from __future__ import annotations
import base64
import hashlib
import hmac
import time
from datetime import date
from typing import Any, Callable
import httpx
from .config import BPJSConfig
from .errors import DomainError, IntegrationDisabledError, TransportError
from .logger import get_logger
from .models import EligibilityResult, ReferenceItem, SEPRequest, SEPResult

logger = get_logger(__name__)

SUCCESS_CODE = "200"

REFERENCE_PATHS = {
    "poli": "/referensi/poli",
    "diagnosa": "/referensi/diagnosa/{keyword}",
    "faskes": "/referensi/faskes/{keyword}/2",  # 2 = hospital-level facilities
    "dpjp": "/referensi/dokter/pelayanan/2/tglPelayanan/{keyword}/0",  # 2 = outpatient
}


def sign(cons_id: str, secret_key: str, timestamp: str) -> str:
    digest = hmac.new(secret_key.encode(), f"{cons_id}&{timestamp}".encode(), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def _iso(value: date | str) -> str:
    return value.isoformat() if isinstance(value, date) else value


class BPJSClient:
    """Stateless wrapper over the VClaim REST gateway.

    Raises TransportError for non-2xx answers and unreachable gateways, and
    DomainError when the envelope's ``metaData.code`` is not "200".
    """

    def __init__(self, config: BPJSConfig | None = None, clock: Callable[[], float] = time.time):
        self.config = config or BPJSConfig.from_env()
        if not self.config.enabled:
            raise IntegrationDisabledError()
        self.config.require_complete()
        self.base_url = self.config.base_url.rstrip("/")
        self._clock = clock

    def headers(self) -> dict[str, str]:
        timestamp = str(int(self._clock()))
        return {
            "X-cons-id": self.config.cons_id,
            "X-timestamp": timestamp,
            "X-signature": sign(self.config.cons_id, self.config.secret_key, timestamp),
            "user_key": self.config.user_key,
            "Content-Type": "application/json",
        }

    async def _call(
        self,
        operation: str,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        failure_message: str = "BPJS request failed",
    ) -> dict[str, Any]:
        """Send one signed request and return the decoded envelope once it reports success."""
        logger.info("Calling BPJS gateway", operation=operation, method=method)
        try:
            async with httpx.AsyncClient(http2=True, timeout=15) as client:
                resp = await client.request(method, f"{self.base_url}{path}", headers=self.headers(), json=body)
        except httpx.RequestError as exc:
            logger.error("BPJS gateway unreachable", operation=operation, error=str(exc))
            raise TransportError(f"BPJS gateway unreachable: {exc.__class__.__name__}") from exc

        if not resp.is_success:
            logger.error("BPJS gateway HTTP error", operation=operation, status_code=resp.status_code)
            raise TransportError(
                f"BPJS API error: {resp.status_code} {resp.reason_phrase}",
                http_status=resp.status_code,
                reason=resp.reason_phrase,
            )
        try:
            envelope = resp.json()
        except ValueError as exc:
            raise TransportError("BPJS API returned a non-JSON body", http_status=resp.status_code) from exc

        meta = envelope.get("metaData") or {}
        code = meta.get("code")
        # the gateway sends the code as a string; anything else is a failure
        if code != SUCCESS_CODE:
            message = meta.get("message") or failure_message
            logger.warning("BPJS gateway rejected request", operation=operation, code=code, message=message)
            raise DomainError(message, gateway_code=None if code is None else str(code))

        logger.info("BPJS gateway answered", operation=operation, code=code)
        return envelope

    async def check_eligibility(self, card_number: str, service_date: date | str) -> EligibilityResult:
        """Look up a participant's eligibility for a service date."""
        envelope = await self._call(
            "check_eligibility",
            "GET",
            f"/Peserta/{card_number}/tglSEP/{_iso(service_date)}",
            failure_message="Peserta tidak eligible",
        )
        return EligibilityResult(eligible=True, participant=envelope["response"]["peserta"])

    async def create_sep(self, request: SEPRequest) -> SEPResult:
        """Issue a SEP. Not idempotent: a timeout may still have issued one at BPJS."""
        payload = request.model_dump(by_alias=True)
        envelope = await self._call(
            "create_sep",
            "POST",
            "/SEP/2.0/insert",
            body={"request": {"t_sep": payload} if self.config.sep_insert_t_sep else payload},
            failure_message="Gagal membuat SEP",
        )
        return SEPResult.model_validate(envelope["response"]["sep"])

    async def get_sep(self, sep_number: str) -> SEPResult:
        response = (
            await self._call("get_sep", "GET", f"/SEP/2.0/{sep_number}", failure_message="SEP tidak ditemukan")
        )["response"]
        # older gateway builds nest the record under "sep"
        return SEPResult.model_validate(response.get("sep", response))

    async def delete_sep(self, sep_number: str, operator_user: str) -> str:
        """Void a SEP and return the gateway's confirmation message."""
        body = {"request": {"t_sep": {"noSep": sep_number, "user": operator_user}}}
        envelope = await self._call(
            "delete_sep", "DELETE", "/SEP/2.0/delete", body=body, failure_message="Gagal menghapus SEP"
        )
        return envelope["metaData"].get("message") or "SEP berhasil dihapus"

    async def get_reference_list(self, kind: str, keyword: str | None = None) -> list[ReferenceItem]:
        """Return reference rows for ``kind`` (poli, diagnosa, faskes or dpjp)."""
        try:
            template = REFERENCE_PATHS[kind]
        except KeyError:
            raise ValueError(f"unknown reference kind: {kind!r}") from None
        envelope = await self._call(
            f"reference:{kind}", "GET", template.format(keyword=keyword or ""), failure_message="Referensi tidak ditemukan"
        )
        response = envelope.get("response") or {}
        rows = response.get("list")
        if rows is None:
            # some tables name the list after the table itself
            rows = next((v for v in response.values() if isinstance(v, list)), [])
        return [ReferenceItem.model_validate(row) for row in rows]
