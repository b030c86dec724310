import os
from datetime import date
from functools import lru_cache
from typing import Any, Literal, Optional
import uvicorn
from fastapi import FastAPI, HTTPException, Depends, Query, Body
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel, Field
from .client import BPJSClient
from .config import BPJSConfig, SatuSehatConfig, CLINIC_API_KEY, LOG_LEVEL, LOG_FORMAT
from .errors import BPJSAdapterError, DomainError, TransportError, SepPendingError, SepMismatchError, adapter_error_handler
from .logger import configure_logging, get_logger
from .models import SEPRequest
from .satusehat import SatuSehatClient
from .store import AppointmentSepStore, InMemoryAppointmentSepStore

configure_logging(LOG_LEVEL, LOG_FORMAT)
logger = get_logger(__name__)


class EligibilityRequest(BaseModel):
    bpjs_number: str = Field(alias="bpjsNumber", pattern=r"^\d{13}$")
    service_date: date = Field(alias="serviceDate")

    model_config = {
        "populate_by_name": True
    }

class SepCreateRequest(BaseModel):
    sep_request: SEPRequest = Field(alias="sepRequest")
    appointment_id: str = Field(alias="appointmentId", min_length=1)
    # retry past an unresolved earlier attempt; never replaces a stored SEP
    force: bool = False

    model_config = {
        "populate_by_name": True
    }

class SepDeleteRequest(BaseModel):
    sep_number: str = Field(alias="sepNumber", min_length=1)
    user: str = Field(min_length=1)
    appointment_id: Optional[str] = Field(None, alias="appointmentId")

    model_config = {
        "populate_by_name": True
    }

class SepConfirmRequest(BaseModel):
    appointment_id: str = Field(alias="appointmentId", min_length=1)
    sep_number: str = Field(alias="sepNumber", min_length=1)

    model_config = {
        "populate_by_name": True
    }


# HTTPBearer scheme so Swagger-UI can attach the Authorization header globally
auth_scheme = HTTPBearer(auto_error=False)

app = FastAPI(title="BPJS Adapter Service")
app.add_exception_handler(BPJSAdapterError, adapter_error_handler)

_store = InMemoryAppointmentSepStore()

def verify_api_key(credentials: HTTPAuthorizationCredentials = Depends(auth_scheme)):
    """Validate Bearer token provided via Authorization header"""
    if (
        not CLINIC_API_KEY
        or credentials is None
        or credentials.scheme.lower() != "bearer"
        or credentials.credentials != CLINIC_API_KEY
    ):
        raise HTTPException(status_code=401, detail="Invalid API key")

def get_bpjs_client() -> BPJSClient:
    return BPJSClient(BPJSConfig.from_env())

@lru_cache()
def get_satusehat_client() -> SatuSehatClient:
    # one instance per process so its token cache outlives a single request
    return SatuSehatClient(SatuSehatConfig.from_env())

def get_store() -> AppointmentSepStore:
    return _store

def _sep_body(sep) -> dict[str, Any]:
    return sep.model_dump(by_alias=True)


@app.get("/health")
async def health():
    return {"status": "ok", "bpjs_enabled": BPJSConfig.from_env().enabled}

# Eligibility ---------------------------------------------------------------

@app.post("/bpjs/eligibility", dependencies=[Depends(verify_api_key)])
async def check_eligibility(req: EligibilityRequest, client: BPJSClient = Depends(get_bpjs_client)):
    """Check a card number against BPJS for the given service date."""
    try:
        result = await client.check_eligibility(req.bpjs_number, req.service_date)
    except (DomainError, TransportError) as exc:
        return JSONResponse(status_code=exc.status_code, content={"eligible": False, "error": exc.message})
    return {"eligible": True, "peserta": result.participant.model_dump(by_alias=True)}

# SEP -----------------------------------------------------------------------

@app.post("/bpjs/sep", dependencies=[Depends(verify_api_key)])
async def create_sep(
    req: SepCreateRequest,
    client: BPJSClient = Depends(get_bpjs_client),
    store: AppointmentSepStore = Depends(get_store),
):
    """Issue a SEP for an appointment and store its number on the appointment.

    An appointment that already holds a SEP gets that SEP back, even with
    ``force``; replacing it means voiding it first. One whose previous attempt
    ended without a gateway answer is refused until the operator confirms the
    SEP or resubmits with ``force``.
    """
    existing = await store.get(req.appointment_id)
    if existing and existing.sep_number:
        try:
            sep = await client.get_sep(existing.sep_number)
            return {"success": True, "sepNumber": sep.sep_number, "sep": _sep_body(sep), "existing": True}
        except DomainError:
            logger.warning("Stored SEP unknown to BPJS, issuing a new one", appointment_id=req.appointment_id)
            await store.clear_sep(req.appointment_id)
    if existing and existing.pending and not req.force:
        raise SepPendingError(req.appointment_id)

    await store.mark_pending(req.appointment_id, req.sep_request)
    try:
        sep = await client.create_sep(req.sep_request)
    except DomainError:
        # a definitive refusal, nothing was issued
        await store.clear_pending(req.appointment_id)
        raise
    await store.record_sep(req.appointment_id, sep.sep_number)
    logger.info("SEP issued", appointment_id=req.appointment_id, sep_number=sep.sep_number)
    return {"success": True, "sepNumber": sep.sep_number, "sep": _sep_body(sep)}

@app.get("/bpjs/sep", dependencies=[Depends(verify_api_key)])
async def get_sep(
    sep_number: str = Query(..., alias="sepNumber", min_length=1),
    client: BPJSClient = Depends(get_bpjs_client),
):
    try:
        sep = await client.get_sep(sep_number)
    except DomainError as exc:
        return JSONResponse(status_code=404, content={"error": exc.message, "code": exc.code})
    return {"success": True, "sep": _sep_body(sep)}

@app.delete("/bpjs/sep", dependencies=[Depends(verify_api_key)])
async def delete_sep(
    req: SepDeleteRequest = Body(...),
    client: BPJSClient = Depends(get_bpjs_client),
    store: AppointmentSepStore = Depends(get_store),
):
    """Void a SEP at BPJS and clear it from the appointment when one is given."""
    message = await client.delete_sep(req.sep_number, req.user)
    if req.appointment_id:
        await store.clear_sep(req.appointment_id)
        await store.clear_pending(req.appointment_id)
    return {"success": True, "message": message}

@app.post("/bpjs/sep/confirm", dependencies=[Depends(verify_api_key)])
async def confirm_sep(
    req: SepConfirmRequest,
    client: BPJSClient = Depends(get_bpjs_client),
    store: AppointmentSepStore = Depends(get_store),
):
    """Attach a SEP found at BPJS to an appointment whose issuance is unresolved."""
    sep = await client.get_sep(req.sep_number)
    row = await store.get(req.appointment_id)
    if row and row.card_number and sep.participant.card_number and row.card_number != sep.participant.card_number:
        raise SepMismatchError(sep.sep_number)
    await store.record_sep(req.appointment_id, sep.sep_number)
    return {"success": True, "sepNumber": sep.sep_number, "sep": _sep_body(sep)}

# Reference data ------------------------------------------------------------

@app.get("/bpjs/referensi/{kind}", dependencies=[Depends(verify_api_key)])
async def reference_list(
    kind: Literal["poli", "diagnosa", "faskes", "dpjp"],
    keyword: Optional[str] = Query(None, description="Search text, facility name or YYYY-MM-DD for dpjp"),
    client: BPJSClient = Depends(get_bpjs_client),
):
    items = await client.get_reference_list(kind, keyword)
    return {"items": [item.model_dump(by_alias=True) for item in items]}

# SATUSEHAT -----------------------------------------------------------------

@app.post("/satusehat/patient", dependencies=[Depends(verify_api_key)])
async def create_satusehat_patient(
    patient: dict[str, Any] = Body(...),
    client: SatuSehatClient = Depends(get_satusehat_client),
):
    """Pass a FHIR Patient resource through to SATUSEHAT."""
    return await client.create_patient(patient)


def main() -> None:
    """Serve the app, e.g. ``bpjs-adapter`` or ``uvicorn bpjs_adapter.api:app``."""
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))
