"""Exception types raised by the gateway clients and their HTTP handlers."""
from __future__ import annotations
from fastapi import Request, status
from fastapi.responses import JSONResponse
from .logger import get_logger

logger = get_logger(__name__)


class BPJSAdapterError(Exception):
    """Base error. ``status_code`` is what the HTTP handlers answer with."""

    def __init__(self, message: str, status_code: int = 500, code: str | None = None):
        self.message = message
        self.status_code = status_code
        self.code = code or "ADAPTER_ERROR"
        super().__init__(self.message)


class ConfigurationError(BPJSAdapterError):
    def __init__(self, message: str):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, "CONFIGURATION_ERROR")


class IntegrationDisabledError(BPJSAdapterError):
    def __init__(self, message: str = "BPJS integration is disabled"):
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE, "INTEGRATION_DISABLED")


class TransportError(BPJSAdapterError):
    """Non-2xx HTTP answer or no answer at all (``http_status`` is then None)."""

    def __init__(self, message: str, http_status: int | None = None, reason: str = ""):
        self.http_status = http_status
        self.reason = reason
        super().__init__(message, status.HTTP_502_BAD_GATEWAY, "TRANSPORT_ERROR")


class DomainError(BPJSAdapterError):
    """The gateway answered but ``metaData.code`` was not the success code.

    ``str(exc)`` is the gateway's own message so it can be shown to staff as-is.
    """

    def __init__(self, message: str, gateway_code: str | None = None):
        self.gateway_code = gateway_code
        super().__init__(message, status.HTTP_400_BAD_REQUEST, "GATEWAY_REJECTED")


class SepMismatchError(BPJSAdapterError):
    def __init__(self, sep_number: str):
        self.sep_number = sep_number
        super().__init__(
            f"SEP {sep_number} belongs to a different participant than this appointment",
            status.HTTP_409_CONFLICT,
            "SEP_MISMATCH",
        )


class SepPendingError(BPJSAdapterError):
    def __init__(self, appointment_id: str):
        self.appointment_id = appointment_id
        super().__init__(
            f"A previous SEP request for appointment {appointment_id} ended without a gateway answer. "
            "Confirm the SEP number issued at BPJS, or resubmit with force=true.",
            status.HTTP_409_CONFLICT,
            "SEP_PENDING",
        )


async def adapter_error_handler(request: Request, exc: BPJSAdapterError) -> JSONResponse:
    """Render adapter errors as ``{"error": text, "code": code}`` for the front desk UI."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log("Request failed", error=exc.code, message=exc.message, path=request.url.path, status_code=exc.status_code)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message, "code": exc.code})
