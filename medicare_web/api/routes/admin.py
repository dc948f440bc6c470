from datetime import datetime
from fastapi import APIRouter, Depends, status
from typing import Optional

from ...api.deps import (
    get_admin_session, get_dashboard_service, get_doctor_service, get_patient_service,
)
from ...schemas.doctor import DoctorForm
from ...services.dashboard_service import DashboardService
from ...services.directory_service import DoctorService, PatientService
from .profile import build_profile_router

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(get_admin_session)],
)

@router.get("")
@router.get("/dashboard")
async def admin_dashboard(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    dashboards: DashboardService = Depends(get_dashboard_service)
):
    """Hospital-wide figures for a date range (defaults to this month)."""
    return await dashboards.admin(start_date, end_date)

@router.get("/analytics")
async def analytics(dashboards: DashboardService = Depends(get_dashboard_service)):
    return await dashboards.analytics()

# Doctor management
@router.get("/doctors")
async def list_doctors(doctors: DoctorService = Depends(get_doctor_service)):
    return await doctors.admin_list()

@router.post("/doctors", status_code=status.HTTP_201_CREATED)
async def create_doctor(
    form: DoctorForm,
    doctors: DoctorService = Depends(get_doctor_service)
):
    await doctors.create(form)
    return {"success": True, "message": "Doctor created successfully.", "doctors": await doctors.admin_list()}

@router.put("/doctors/{doctor_id}")
async def update_doctor(
    doctor_id: str,
    form: DoctorForm,
    doctors: DoctorService = Depends(get_doctor_service)
):
    await doctors.update(doctor_id, form)
    return {"success": True, "message": "Doctor updated successfully.", "doctors": await doctors.admin_list()}

@router.delete("/doctors/{doctor_id}")
async def delete_doctor(
    doctor_id: str,
    doctors: DoctorService = Depends(get_doctor_service)
):
    await doctors.delete(doctor_id)
    return {"success": True, "message": "Doctor has been deleted.", "doctors": await doctors.admin_list()}

# Patient management
@router.get("/patients")
async def list_patients(patients: PatientService = Depends(get_patient_service)):
    return await patients.admin_list()

@router.delete("/patients/{patient_id}")
async def delete_patient(
    patient_id: str,
    patients: PatientService = Depends(get_patient_service)
):
    await patients.delete(patient_id)
    return {"success": True, "message": "Patient has been deleted.", "patients": await patients.admin_list()}

router.include_router(build_profile_router(get_admin_session))
