from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from ...api.deps import (
    get_appointment_service, get_chat_service, get_dashboard_service,
    get_doctor_service, get_patient_service, get_patient_session,
)
from ...schemas.appointment import AppointmentUpdate, BookingForm
from ...schemas.chat import MessageForm
from ...schemas.doctor import RatingForm
from ...schemas.session import Session
from ...services.appointment_service import (
    AppointmentService, filter_appointments, format_appointment_date, patient_booking_payload,
)
from ...services.chat_service import ChatService
from ...services.dashboard_service import DashboardService
from ...services.directory_service import DoctorService, PatientService
from .profile import build_profile_router

router = APIRouter(
    prefix="/patient",
    tags=["Patient"],
    dependencies=[Depends(get_patient_session)],
)

@router.get("")
@router.get("/dashboard")
async def patient_dashboard(
    session: Session = Depends(get_patient_session),
    dashboards: DashboardService = Depends(get_dashboard_service)
):
    return await dashboards.patient(session)

@router.get("/doctors")
async def list_doctors(doctors: DoctorService = Depends(get_doctor_service)):
    return await doctors.list_all()

@router.get("/departments")
async def list_departments(doctors: DoctorService = Depends(get_doctor_service)):
    return await doctors.departments()

@router.get("/book-appointment")
async def booking_form(
    doctor_id: Optional[str] = Query(None, alias="doctorId"),
    session: Session = Depends(get_patient_session),
    doctors: DoctorService = Depends(get_doctor_service),
    patients: PatientService = Depends(get_patient_service)
):
    """Defaults for the booking form: chosen doctor and the patient's current vitals."""
    patient = await patients.get(session.patient_id) if session.patient_id else None
    doctor = await doctors.get(doctor_id) if doctor_id else None
    patient = patient or {}
    return {
        "doctor": doctor,
        "form": {
            "appointmentType": "Consultation",
            "consultingDoctor": (doctor or {}).get("fullName", ""),
            "consultingDoctorId": doctor_id or "",
            "bloodPressure": patient.get("bloodPressure") or "",
            "glucoseLevel": patient.get("glucoseLevel") or "",
            "heartRate": patient.get("heartRate") or "",
        },
    }

@router.post("/book-appointment", status_code=status.HTTP_201_CREATED)
async def book_appointment(
    form: BookingForm,
    doctor_id: Optional[str] = Query(None, alias="doctorId"),
    session: Session = Depends(get_patient_session),
    appointments: AppointmentService = Depends(get_appointment_service),
    patients: PatientService = Depends(get_patient_service)
):
    form.check()
    patient = await patients.get(session.patient_id) if session.patient_id else None
    await appointments.book(patient_booking_payload(form, session, patient, doctor_id))
    return {"success": True, "message": "Appointment booked successfully!", "redirect": "/patient/appointments"}

@router.get("/appointments")
async def list_appointments(
    status_filter: str = Query("all", alias="status"),
    session: Session = Depends(get_patient_session),
    appointments: AppointmentService = Depends(get_appointment_service)
):
    items = await appointments.for_patient(session.patient_id)
    return [
        {**a, "displayDate": format_appointment_date(a.get("appointmentDate"))}
        for a in filter_appointments(items, status=status_filter)
    ]

@router.get("/update-appointment/{appointment_id}")
async def appointment_form(
    appointment_id: str,
    appointments: AppointmentService = Depends(get_appointment_service)
):
    appointment = await appointments.get(appointment_id) or {}
    return AppointmentUpdate(
        appointmentDate=str(appointment.get("appointmentDate") or "").split("T")[0],
        appointmentTime=appointment.get("appointmentTime") or "",
        appointmentReason=appointment.get("appointmentReason") or "",
        appointmentType=appointment.get("appointmentType") or "Consultation",
        consultingDoctor=appointment.get("consultingDoctor") or "",
        notes=appointment.get("notes") or "",
    ).model_dump(by_alias=True)

@router.put("/update-appointment/{appointment_id}")
async def update_appointment(
    appointment_id: str,
    form: AppointmentUpdate,
    appointments: AppointmentService = Depends(get_appointment_service)
):
    await appointments.update(appointment_id, form)
    return {"success": True, "message": "Appointment updated successfully.", "redirect": "/patient/appointments"}

@router.delete("/update-appointment/{appointment_id}")
async def cancel_appointment(
    appointment_id: str,
    appointments: AppointmentService = Depends(get_appointment_service)
):
    await appointments.cancel(appointment_id)
    return {"success": True, "message": "Appointment has been cancelled.", "redirect": "/patient/appointments"}

@router.get("/rate-doctor/{doctor_id}")
async def rating_form(
    doctor_id: str,
    doctors: DoctorService = Depends(get_doctor_service)
):
    return {"doctor": await doctors.get(doctor_id)}

@router.post("/rate-doctor/{doctor_id}")
async def rate_doctor(
    doctor_id: str,
    form: RatingForm,
    appointment_id: Optional[str] = Query(None, alias="appointment"),
    doctors: DoctorService = Depends(get_doctor_service)
):
    if appointment_id and not form.appointment_id:
        form.appointment_id = appointment_id
    await doctors.rate(doctor_id, form)
    return {"success": True, "message": "Your rating has been submitted.", "redirect": "/patient/appointments"}

@router.get("/chats")
async def list_chats(
    session: Session = Depends(get_patient_session),
    chats: ChatService = Depends(get_chat_service)
):
    return await chats.for_patient(session.patient_id)

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
    session: Session = Depends(get_patient_session),
    chats: ChatService = Depends(get_chat_service)
):
    return await chats.send(chat_id, session.name, form)

router.include_router(build_profile_router(get_patient_session))
