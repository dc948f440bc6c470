"""
Dashboard aggregation for the three roles.

Each dashboard fans out independent backend requests with asyncio.gather and
renders only once all of them have settled.
"""

from datetime import datetime, timezone
from typing import Optional
import asyncio
import logging

from ..core.exceptions import ApiError, AuthError
from ..core.http import ApiClient
from ..schemas.session import Session
from .appointment_service import (
    AppointmentService, appointment_stats, appointment_trend, upcoming,
)
from .chat_service import ChatService
from .directory_service import DoctorService, PatientService, top_rated
from .triage import priority_breakdown

logger = logging.getLogger(__name__)


def month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class DashboardService:
    def __init__(self, api: ApiClient):
        self.api = api
        self.appointments = AppointmentService(api)
        self.chats = ChatService(api)
        self.doctors = DoctorService(api)
        self.patients = PatientService(api)

    async def admin(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> dict:
        """Admin overview; the range defaults to the current month so far."""
        end = end or datetime.now(timezone.utc)
        start = start or month_start(end)
        params = {"startDate": start.isoformat(), "endDate": end.isoformat()}

        dashboard, high_risk = await asyncio.gather(
            self.api.get("/admin/dashboard-data", params=params),
            self.api.get("/admin/high-risk-appointments", params=params),
        )
        return {
            **(dashboard or {}),
            "highRiskAppointments": high_risk or [],
            "range": params,
        }

    async def analytics(self) -> dict:
        risk, trend, critical = await asyncio.gather(
            self.api.get("/analytics/risk-summary"),
            self.api.get("/analytics/vitals-trend"),
            self.patients.critical(),
        )
        risk = risk or {}
        return {
            "riskSummary": risk,
            "totalPatients": sum(risk.get(k) or 0 for k in ("high", "moderate", "low")),
            "vitalsTrend": trend or [],
            "criticalPatients": critical,
        }

    async def doctor(self, session: Session) -> dict:
        appointments = await self.appointments.for_doctor(session.doctor_id, enrich=False)

        patient_ids = list(dict.fromkeys(a.get("patientId") for a in appointments if a.get("patientId")))
        results = await asyncio.gather(
            *(self.patients.get(pid) for pid in patient_ids),
            return_exceptions=True,
        )
        patients = []
        for pid, result in zip(patient_ids, results):
            if isinstance(result, AuthError):
                raise result
            if isinstance(result, ApiError):
                logger.warning(f"Error fetching patient {pid}: {result}")
            elif isinstance(result, BaseException):
                raise result
            else:
                patients.append(result or {})

        chats = await self.chats.for_doctor(session.doctor_id)
        return {
            "stats": appointment_stats(appointments),
            "trend": appointment_trend(appointments),
            "priorities": priority_breakdown(patients),
            "recentChats": chats[:3],
            "upcoming": upcoming(appointments),
        }

    async def patient(self, session: Session) -> dict:
        doctors, appointments = await asyncio.gather(
            self.doctors.list_all(),
            self.appointments.for_patient(session.patient_id),
        )
        return {
            "topRated": top_rated(doctors),
            "upcoming": upcoming(appointments),
            "doctorCount": len(doctors),
            "appointmentCount": len(appointments),
        }
