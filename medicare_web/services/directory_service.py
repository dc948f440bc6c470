from typing import Any, Iterable, List, Optional

from ..core.http import ApiClient
from ..schemas.doctor import DoctorForm, RatingForm
from ..schemas.profile import Vitals
from .triage import vitals_flags


def top_rated(doctors: Iterable[dict], limit: int = 3) -> List[dict]:
    return sorted(doctors, key=lambda d: d.get("averageRating") or 0, reverse=True)[:limit]


class DoctorService:
    def __init__(self, api: ApiClient):
        self.api = api

    async def list_all(self) -> List[dict]:
        return await self.api.get("/doctors") or []

    async def get(self, doctor_id: str) -> dict:
        return await self.api.get(f"/doctors/{doctor_id}")

    async def departments(self) -> List[dict]:
        return await self.api.get("/departments") or []

    # Admin management

    async def admin_list(self) -> List[dict]:
        return await self.api.get("/admin/doctors") or []

    async def create(self, form: DoctorForm) -> Any:
        return await self.api.post("/admin/doctors", json=form.payload())

    async def update(self, doctor_id: str, form: DoctorForm) -> Any:
        return await self.api.put(f"/admin/doctors/{doctor_id}", json=form.payload(editing=True))

    async def delete(self, doctor_id: str) -> Any:
        return await self.api.delete(f"/admin/doctors/{doctor_id}")

    async def rate(self, doctor_id: str, form: RatingForm) -> Any:
        """Submit a rating, then ask the backend to recompute doctor averages."""
        form.check()
        result = await self.api.post("/ratings", json={
            "doctorId": doctor_id,
            "appointmentId": form.appointment_id,
            "score": form.score,
            "comment": form.comment,
        })
        await self.api.post("/fix-all-ratings")
        return result


class PatientService:
    def __init__(self, api: ApiClient):
        self.api = api

    async def get(self, patient_id: str) -> dict:
        return await self.api.get(f"/patients/{patient_id}")

    async def get_with_flags(self, patient_id: str) -> dict:
        patient = await self.get(patient_id) or {}
        return {**patient, "vitalsFlags": vitals_flags(patient)}

    async def update_vitals(self, patient_id: str, vitals: Vitals) -> Any:
        return await self.api.put(f"/patients/{patient_id}", json=vitals.payload())

    async def critical(self) -> List[dict]:
        return await self.api.get("/patients", params={"critical": "true"}) or []

    # Admin management

    async def admin_list(self) -> List[dict]:
        return await self.api.get("/admin/patients") or []

    async def delete(self, patient_id: str) -> Any:
        return await self.api.delete(f"/admin/patients/{patient_id}")


def resolve_asset_url(path: Optional[str], static_base: str) -> Optional[str]:
    """Absolute URL of an uploaded asset such as a profile picture."""
    if not path:
        return None
    if path.startswith(("http://", "https://")):
        return path
    return f"{static_base.rstrip('/')}/{path.lstrip('/')}"
