"""SEP columns of the local appointment record.

The clinic database owns appointments; this module only tracks the SEP number
stored against one, plus a pending marker set while an issuance is in flight.
"""
from __future__ import annotations
from typing import Protocol
from pydantic import BaseModel
from .models import SEPRequest


class AppointmentSep(BaseModel):
    appointment_id: str
    sep_number: str | None = None
    card_number: str | None = None
    referral_number: str | None = None
    referral_date: str | None = None
    referral_facility: str | None = None
    pending: bool = False


class AppointmentSepStore(Protocol):
    async def get(self, appointment_id: str) -> AppointmentSep | None: ...

    async def mark_pending(self, appointment_id: str, request: SEPRequest) -> None: ...

    async def clear_pending(self, appointment_id: str) -> None: ...

    async def record_sep(self, appointment_id: str, sep_number: str) -> None: ...

    async def clear_sep(self, appointment_id: str) -> None: ...


class InMemoryAppointmentSepStore:
    """Dict-backed store used by the service in demo mode and by the tests."""

    def __init__(self) -> None:
        self._rows: dict[str, AppointmentSep] = {}

    def _row(self, appointment_id: str) -> AppointmentSep:
        return self._rows.setdefault(appointment_id, AppointmentSep(appointment_id=appointment_id))

    async def get(self, appointment_id: str) -> AppointmentSep | None:
        return self._rows.get(appointment_id)

    async def mark_pending(self, appointment_id: str, request: SEPRequest) -> None:
        row = self._row(appointment_id)
        row.pending = True
        row.card_number = request.card_number
        row.referral_number = request.referral.number
        row.referral_date = request.referral.date
        row.referral_facility = request.referral.facility

    async def clear_pending(self, appointment_id: str) -> None:
        if appointment_id in self._rows:
            self._rows[appointment_id].pending = False

    async def record_sep(self, appointment_id: str, sep_number: str) -> None:
        row = self._row(appointment_id)
        row.sep_number = sep_number
        row.pending = False

    async def clear_sep(self, appointment_id: str) -> None:
        if appointment_id in self._rows:
            self._rows[appointment_id].sep_number = None
