from datetime import date, datetime, timezone

import pytest

from medicare_web.core.exceptions import ValidationError
from medicare_web.schemas.appointment import BookingForm, DoctorBookingForm, RescheduleForm
from medicare_web.schemas.auth import LoginCredentials, RegisterFields, to_number
from medicare_web.schemas.chat import MessageForm
from medicare_web.schemas.doctor import DoctorForm, RatingForm
from medicare_web.schemas.profile import PasswordChange, ProfileUpdate
from medicare_web.schemas.session import Session
from medicare_web.services.appointment_service import (
    appointment_stats, appointment_trend, filter_appointments, format_appointment_date,
    patient_booking_payload, upcoming,
)
from medicare_web.services.directory_service import resolve_asset_url, top_rated
from medicare_web.services.triage import (
    compute_priority, patient_priority, priority_breakdown, vitals_flags,
)

from .conftest import PATIENT_PROFILE

APPOINTMENTS = [
    {"_id": "a1", "appointmentDate": "2026-10-19T00:00:00Z", "appointmentType": "Consultation",
     "patientName": "Sam Patel", "status": "Scheduled"},
    {"_id": "a2", "appointmentDate": "2026-10-20T00:00:00Z", "appointmentType": "Follow-up",
     "patientName": "Ann Lee", "status": "Accepted"},
    {"_id": "a3", "appointmentDate": "2026-10-12T00:00:00Z", "appointmentType": "Consultation",
     "patientName": "sam patel", "status": "Completed"},
]


class TestTriage:

    @pytest.mark.parametrize("bp, glucose, expected", [
        (150, 90, "High"),
        (110, 141, "High"),
        (130, 90, "Moderate"),
        (110, 101, "Moderate"),
        (120, 100, "Low"),
        (None, None, "Low"),
        ("145", "", "High"),
    ])
    def test_compute_priority(self, bp, glucose, expected):
        assert compute_priority(bp, glucose) == expected

    def test_missing_patient_is_unknown(self):
        assert patient_priority(None) == "Unknown"

    def test_priority_breakdown(self):
        patients = [
            {"bloodPressure": 150}, {"glucoseLevel": 110}, {"bloodPressure": 100}, {},
        ]
        assert priority_breakdown(patients) == {"High": 1, "Moderate": 1, "Low": 2}

    def test_vitals_flags(self):
        flags = vitals_flags({"glucoseLevel": 141, "bloodPressure": 120, "heartRate": "abc"})
        assert flags == {"glucoseHigh": True, "bloodPressureHigh": False, "heartRateHigh": False}


class TestAppointmentHelpers:

    def test_format_appointment_date(self):
        today = date(2026, 10, 19)
        assert format_appointment_date("2026-10-19T00:00:00Z", today) == "Today"
        assert format_appointment_date("2026-10-20", today) == "Tomorrow"
        assert format_appointment_date("2026-11-03", today) == "Nov 3"
        assert format_appointment_date("2027-01-05", today) == "Jan 5, 2027"
        assert format_appointment_date(None, today) == ""

    def test_filters(self):
        assert [a["_id"] for a in filter_appointments(APPOINTMENTS, patient="SAM")] == ["a1", "a3"]
        assert [a["_id"] for a in filter_appointments(APPOINTMENTS, appointment_type="Follow-up")] == ["a2"]
        assert [a["_id"] for a in filter_appointments(APPOINTMENTS, date_text="2026-10-12")] == ["a3"]
        assert [a["_id"] for a in filter_appointments(APPOINTMENTS, status="Accepted")] == ["a2"]
        assert len(filter_appointments(APPOINTMENTS, status="all")) == 3

    def test_stats(self):
        stats = appointment_stats(APPOINTMENTS, today=date(2026, 10, 19))
        assert stats == {"total": 3, "today": 1, "scheduled": 1, "accepted": 1, "completed": 1}

    def test_upcoming_is_sorted_and_future_only(self):
        now = datetime(2026, 10, 18, 12, tzinfo=timezone.utc)
        result = upcoming(list(reversed(APPOINTMENTS)), now=now)
        assert [a["_id"] for a in result] == ["a1", "a2"]

    def test_trend_labels(self):
        trend = appointment_trend(APPOINTMENTS, days=3, today=date(2026, 10, 20))
        assert trend == [
            {"date": "10-18", "appointments": 0},
            {"date": "10-19", "appointments": 1},
            {"date": "10-20", "appointments": 1},
        ]

    def test_patient_booking_payload(self):
        """Blank vitals fall back to the patient record."""
        session = Session.from_profile(PATIENT_PROFILE)
        form = BookingForm(appointmentDate="2026-10-21", appointmentTime="10:00", bloodPressure="")

        body = patient_booking_payload(form, session, {"gender": "Male", "age": 40, "bloodPressure": 130}, "d1")

        assert body["patientName"] == "Sam"
        assert body["patientId"] == "p1"
        assert body["doctorId"] == "d1"
        assert body["status"] == "Scheduled"
        assert body["bloodPressure"] == 130
        assert "glucoseLevel" not in body

    def test_reschedule_requires_date_and_time(self):
        with pytest.raises(ValidationError, match="Please select both date and time"):
            RescheduleForm(appointmentDate="2026-10-21").check()

    def test_doctor_booking_requires_patient(self):
        form = DoctorBookingForm(appointmentDate="2026-10-21", appointmentTime="09:00")
        with pytest.raises(ValidationError, match="Patient name is required"):
            form.check()


class TestForms:

    def test_to_number(self):
        assert to_number("") is None
        assert to_number(" 42 ") == 42
        assert to_number("7.5") == 7.5
        assert to_number(True) is None

    def test_identifier_routing(self):
        assert LoginCredentials.from_identifier("a@b.c", "x").payload() == {"email": "a@b.c", "password": "x"}
        assert LoginCredentials.from_identifier("0712345678", "x").payload() == {"mobileNumber": "0712345678", "password": "x"}

    @pytest.mark.parametrize("fields, message", [
        ({"email": "a@b.c", "password": "secret1", "glucoseLevel": 90}, "Name is required"),
        ({"name": "A", "email": "abc", "password": "secret1", "glucoseLevel": 90}, "Valid email required"),
        ({"name": "A", "email": "a@b.c", "password": "123", "glucoseLevel": 90}, "Password must be at least 6 characters"),
    ])
    def test_register_validation(self, fields, message):
        with pytest.raises(ValidationError) as exc_info:
            RegisterFields(**fields).check()
        assert exc_info.value.message == message

    def test_mobile_number_must_have_ten_digits(self):
        with pytest.raises(ValidationError):
            ProfileUpdate(mobileNumber="12345").check()
        ProfileUpdate(mobileNumber="0712345678").check()

    def test_password_change(self):
        with pytest.raises(ValidationError, match="New passwords do not match"):
            PasswordChange(currentPassword="a", newPassword="secret1", confirmPassword="secret2").check()
        with pytest.raises(ValidationError, match="at least 6"):
            PasswordChange(currentPassword="a", newPassword="abc", confirmPassword="abc").check()

    def test_doctor_form_payload(self):
        form = DoctorForm(fullName="Dr. Who", email="who@x.com", specialist="Cardiology, Neurology ,")
        assert form.payload(editing=True)["specialist"] == ["Cardiology", "Neurology"]
        assert "password" not in form.payload(editing=True)
        with pytest.raises(ValidationError):
            form.payload()

    def test_rating_needs_stars(self):
        with pytest.raises(ValidationError, match="star rating"):
            RatingForm(score=0).check()

    def test_blank_message(self):
        with pytest.raises(ValidationError, match="Message cannot be empty"):
            MessageForm(text="   ").check()


class TestDirectoryHelpers:

    def test_top_rated(self):
        doctors = [{"_id": "a", "averageRating": 3}, {"_id": "b"}, {"_id": "c", "averageRating": 5},
                   {"_id": "d", "averageRating": 4.5}]
        assert [d["_id"] for d in top_rated(doctors)] == ["c", "d", "a"]

    def test_resolve_asset_url(self):
        base = "https://backend.test"
        assert resolve_asset_url("uploads/me.png", base) == "https://backend.test/uploads/me.png"
        assert resolve_asset_url("/uploads/me.png", base + "/") == "https://backend.test/uploads/me.png"
        assert resolve_asset_url("https://cdn.test/me.png", base) == "https://cdn.test/me.png"
        assert resolve_asset_url(None, base) is None
