from fastapi import APIRouter, Depends, Query, status
from typing import Optional
import asyncio

from ...api.deps import (
    get_appointment_service, get_chat_service, get_dashboard_service,
    get_doctor_service, get_doctor_session, get_patient_service,
)
from ...schemas.appointment import DoctorBookingForm, RescheduleForm
from ...schemas.chat import MessageForm
from ...schemas.session import Session
from ...services.appointment_service import (
    COMPLETED, AppointmentService, appointment_stats, filter_appointments,
)
from ...services.chat_service import ChatService
from ...services.dashboard_service import DashboardService
from ...services.directory_service import DoctorService, PatientService
from .profile import build_profile_router

router = APIRouter(
    prefix="/doctor",
    tags=["Doctor"],
    dependencies=[Depends(get_doctor_session)],
)

async def _appointment_list(appointments: AppointmentService, session: Session, **filters) -> dict:
    items = await appointments.for_doctor(session.doctor_id)
    return {
        "appointments": filter_appointments(items, **filters),
        "stats": appointment_stats(items),
    }

def _active(history):
    """The open appointment, falling back to the most recent one."""
    return next((a for a in history if a.get("status") != COMPLETED), history[0] if history else None)

@router.get("")
@router.get("/dashboard")
async def doctor_dashboard(
    session: Session = Depends(get_doctor_session),
    dashboards: DashboardService = Depends(get_dashboard_service)
):
    return await dashboards.doctor(session)

@router.get("/appointments")
async def list_appointments(
    date: Optional[str] = None,
    appointment_type: Optional[str] = Query(None, alias="type"),
    patient: Optional[str] = None,
    session: Session = Depends(get_doctor_session),
    appointments: AppointmentService = Depends(get_appointment_service)
):
    """Appointments with patient priority, filtered by date, type and patient name."""
    return await _appointment_list(
        appointments, session, date_text=date, appointment_type=appointment_type, patient=patient
    )

@router.post("/appointments/{appointment_id}/accept")
async def accept_appointment(
    appointment_id: str,
    session: Session = Depends(get_doctor_session),
    appointments: AppointmentService = Depends(get_appointment_service)
):
    await appointments.accept(appointment_id)
    view = await _appointment_list(appointments, session)
    return {"success": True, "message": "Appointment accepted and patient notified.", **view}

@router.post("/appointments/{appointment_id}/reschedule")
async def reschedule_appointment(
    appointment_id: str,
    form: RescheduleForm,
    session: Session = Depends(get_doctor_session),
    appointments: AppointmentService = Depends(get_appointment_service)
):
    await appointments.reschedule(appointment_id, form)
    view = await _appointment_list(appointments, session)
    return {"success": True, "message": "Appointment rescheduled", **view}

@router.get("/patients/{patient_id}")
async def patient_detail(
    patient_id: str,
    patients: PatientService = Depends(get_patient_service),
    appointments: AppointmentService = Depends(get_appointment_service)
):
    patient, history = await asyncio.gather(
        patients.get_with_flags(patient_id),
        appointments.for_patient(patient_id),
    )
    return {"patient": patient, "appointments": history, "activeAppointment": _active(history)}

@router.post("/patients/{patient_id}/appointments/{appointment_id}/complete")
async def complete_appointment(
    patient_id: str,
    appointment_id: str,
    appointments: AppointmentService = Depends(get_appointment_service)
):
    await appointments.complete(appointment_id)
    history = await appointments.for_patient(patient_id)
    return {"success": True, "message": "Appointment has been marked as completed.", "activeAppointment": _active(history)}

@router.post("/book-appointment", status_code=status.HTTP_201_CREATED)
async def book_appointment(
    form: DoctorBookingForm,
    session: Session = Depends(get_doctor_session),
    appointments: AppointmentService = Depends(get_appointment_service)
):
    form.check()
    if not form.consulting_doctor:
        form.consulting_doctor = session.name
    await appointments.book(form.payload(session.doctor_id))
    return {"success": True, "message": "Appointment booked successfully", "redirect": "/doctor/appointments"}

@router.get("/doctors")
async def list_doctors(doctors: DoctorService = Depends(get_doctor_service)):
    return await doctors.list_all()

@router.get("/departments")
async def list_departments(doctors: DoctorService = Depends(get_doctor_service)):
    return await doctors.departments()

@router.get("/chats")
async def list_chats(
    session: Session = Depends(get_doctor_session),
    chats: ChatService = Depends(get_chat_service)
):
    return await chats.for_doctor(session.doctor_id)

@router.get("/chats/{chat_id}")
async def view_chat(
    chat_id: str,
    chats: ChatService = Depends(get_chat_service)
):
    return await chats.open(chat_id)

@router.post("/chats/{chat_id}/messages")
async def send_message(
    chat_id: str,
    form: MessageForm,
    session: Session = Depends(get_doctor_session),
    chats: ChatService = Depends(get_chat_service)
):
    return await chats.send(chat_id, session.name, form)

router.include_router(build_profile_router(get_doctor_session))
