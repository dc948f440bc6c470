from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional

from ..core.exceptions import ValidationError
from .auth import to_number


class AppointmentFields(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    appointment_date: str = Field(default="", alias="appointmentDate")
    appointment_time: str = Field(default="", alias="appointmentTime")
    appointment_reason: str = Field(default="", alias="appointmentReason")
    appointment_type: str = Field(default="Consultation", alias="appointmentType")
    consulting_doctor: str = Field(default="", alias="consultingDoctor")
    notes: str = ""

    def check(self) -> None:
        if not self.appointment_date or not self.appointment_time:
            raise ValidationError("Please select both date and time", field="appointmentDate")


class BookingForm(AppointmentFields):
    """Patient-side booking; vitals are copied from the patient record when omitted."""
    consulting_doctor_id: Optional[str] = Field(default=None, alias="consultingDoctorId")
    blood_pressure: Any = Field(default=None, alias="bloodPressure")
    glucose_level: Any = Field(default=None, alias="glucoseLevel")
    heart_rate: Any = Field(default=None, alias="heartRate")


class DoctorBookingForm(AppointmentFields):
    """Doctor-side booking on behalf of a patient."""
    patient_name: str = Field(default="", alias="patientName")
    patient_email: str = Field(default="", alias="patientEmail")
    patient_gender: str = Field(default="Female", alias="patientGender")
    patient_age: Any = Field(default=None, alias="patientAge")

    def check(self) -> None:
        super().check()
        if not self.patient_name.strip():
            raise ValidationError("Patient name is required", field="patientName")

    def payload(self, doctor_id: Optional[str]) -> dict:
        body = self.model_dump(by_alias=True)
        body["patientAge"] = to_number(self.patient_age)
        body["doctorId"] = doctor_id
        body["status"] = "Scheduled"
        return body


class AppointmentUpdate(AppointmentFields):
    pass


class RescheduleForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    appointment_date: Optional[str] = Field(default=None, alias="appointmentDate")
    appointment_time: Optional[str] = Field(default=None, alias="appointmentTime")

    def check(self) -> None:
        if not self.appointment_date or not self.appointment_time:
            raise ValidationError("Please select both date and time", field="appointmentDate")
