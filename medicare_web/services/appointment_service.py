from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Union
import asyncio
import logging

from ..core.exceptions import ApiError, AuthError
from ..core.http import ApiClient
from ..schemas.appointment import AppointmentUpdate, BookingForm, RescheduleForm
from ..schemas.auth import to_number
from ..schemas.session import Session
from .triage import UNKNOWN, patient_priority

logger = logging.getLogger(__name__)

SCHEDULED = "Scheduled"
ACCEPTED = "Accepted"
COMPLETED = "Completed"


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a backend date; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_appointment_date(value: Any, today: Optional[date] = None) -> str:
    """'Today', 'Tomorrow', or 'Mon D' with the year only when it differs."""
    parsed = parse_datetime(value)
    if parsed is None:
        return ""
    today = today or datetime.now(timezone.utc).date()
    day = parsed.date()
    if day == today:
        return "Today"
    if day == today + timedelta(days=1):
        return "Tomorrow"
    label = f"{day.strftime('%b')} {day.day}"
    if day.year != today.year:
        label += f", {day.year}"
    return label


def filter_appointments(
    appointments: Iterable[dict],
    date_text: Optional[str] = None,
    appointment_type: Optional[str] = None,
    patient: Optional[str] = None,
    status: Optional[str] = None,
) -> List[dict]:
    result = list(appointments)
    if date_text:
        result = [a for a in result if date_text in str(a.get("appointmentDate") or "")]
    if appointment_type:
        result = [a for a in result if a.get("appointmentType") == appointment_type]
    if patient:
        needle = patient.lower()
        result = [a for a in result if needle in str(a.get("patientName") or "").lower()]
    if status and status != "all":
        result = [a for a in result if a.get("status") == status]
    return result


def _on_day(appointment: dict, day: date) -> bool:
    return str(appointment.get("appointmentDate") or "").startswith(day.isoformat())


def appointment_stats(appointments: List[dict], today: Optional[date] = None) -> Dict[str, int]:
    today = today or datetime.now(timezone.utc).date()
    return {
        "total": len(appointments),
        "today": sum(1 for a in appointments if _on_day(a, today)),
        "scheduled": sum(1 for a in appointments if a.get("status") == SCHEDULED),
        "accepted": sum(1 for a in appointments if a.get("status") == ACCEPTED),
        "completed": sum(1 for a in appointments if a.get("status") == COMPLETED),
    }


def upcoming(appointments: Iterable[dict], now: Optional[datetime] = None, limit: int = 5) -> List[dict]:
    """Appointments from now on, soonest first."""
    now = now or datetime.now(timezone.utc)
    dated = []
    for appointment in appointments:
        when = parse_datetime(appointment.get("appointmentDate"))
        if when is not None and when >= now:
            dated.append((when, appointment))
    dated.sort(key=lambda pair: pair[0])
    return [appointment for _, appointment in dated[:limit]]


def appointment_trend(appointments: List[dict], days: int = 7, today: Optional[date] = None) -> List[Dict[str, Union[str, int]]]:
    """Appointment counts per day for the last ``days`` days, oldest first."""
    today = today or datetime.now(timezone.utc).date()
    trend = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        trend.append({
            "date": day.strftime("%m-%d"),
            "appointments": sum(1 for a in appointments if _on_day(a, day)),
        })
    return trend


def _first_number(*values):
    for value in values:
        number = to_number(value)
        if number is not None:
            return number
    return None


def patient_booking_payload(form: BookingForm, session: Session, patient: Optional[dict], doctor_id: Optional[str]) -> dict:
    """Booking body sent by a patient: form fields plus who is booking."""
    patient = patient or {}
    body = form.model_dump(by_alias=True, exclude={"consulting_doctor_id"})
    body.update({
        "patientName": session.name,
        "patientEmail": session.email,
        "patientGender": patient.get("gender") or "Not specified",
        "patientAge": patient.get("age") or 0,
        "patientId": session.patient_id,
        "doctorId": doctor_id or form.consulting_doctor_id,
        "status": SCHEDULED,
        # Vitals fall back to the patient's record when the form leaves them blank
        "bloodPressure": _first_number(form.blood_pressure, patient.get("bloodPressure")),
        "glucoseLevel": _first_number(form.glucose_level, patient.get("glucoseLevel")),
        "heartRate": _first_number(form.heart_rate, patient.get("heartRate")),
    })
    return {key: value for key, value in body.items() if value is not None}


class AppointmentService:
    def __init__(self, api: ApiClient):
        self.api = api

    async def for_doctor(self, doctor_id: str, enrich: bool = True) -> List[dict]:
        appointments = await self.api.get(f"/appointments/doctor/{doctor_id}") or []
        if enrich:
            appointments = list(await asyncio.gather(*(self._with_priority(a) for a in appointments)))
        return appointments

    async def for_patient(self, patient_id: str) -> List[dict]:
        return await self.api.get(f"/appointments/patient/{patient_id}") or []

    async def _with_priority(self, appointment: dict) -> dict:
        """Attach the patient's priority bucket and gender to one appointment."""
        if appointment.get("patientPriority"):
            return appointment
        enriched = dict(appointment)
        try:
            patient = await self.api.get(f"/patients/{appointment.get('patientId')}")
        except AuthError:
            raise
        except ApiError as e:
            logger.warning(f"Could not load patient {appointment.get('patientId')}: {e}")
            enriched["patientPriority"] = UNKNOWN
            enriched["patientGender"] = "N/A"
            return enriched
        enriched["patientPriority"] = patient_priority(patient)
        enriched["patientGender"] = (patient or {}).get("gender")
        return enriched

    async def get(self, appointment_id: str) -> dict:
        return await self.api.get(f"/appointments/{appointment_id}")

    async def book(self, payload: dict) -> Any:
        return await self.api.post("/appointments", json=payload)

    async def update(self, appointment_id: str, form: AppointmentUpdate) -> Any:
        form.check()
        return await self.api.put(f"/appointments/{appointment_id}", json=form.model_dump(by_alias=True))

    async def cancel(self, appointment_id: str) -> Any:
        return await self.api.delete(f"/appointments/{appointment_id}")

    async def accept(self, appointment_id: str) -> Any:
        return await self.api.patch(f"/appointments/{appointment_id}/accept")

    async def reschedule(self, appointment_id: str, form: RescheduleForm) -> Any:
        form.check()
        return await self.api.patch(
            f"/appointments/{appointment_id}/reschedule",
            json=form.model_dump(by_alias=True),
        )

    async def complete(self, appointment_id: str) -> Any:
        return await self.api.patch(f"/appointments/{appointment_id}/complete")
