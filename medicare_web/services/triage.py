"""Priority buckets and vitals warnings shown to doctors and patients."""

from typing import Any, Dict, Iterable, Optional

from ..schemas.auth import to_number

HIGH = "High"
MODERATE = "Moderate"
LOW = "Low"
UNKNOWN = "Unknown"

# Normal ranges: glucose 70-140 mg/dL, systolic BP < 120 mmHg, heart rate 60-100 BPM
GLUCOSE_HIGH = 140
BLOOD_PRESSURE_HIGH = 120
HEART_RATE_HIGH = 100


def _value(value: Any) -> float:
    number = to_number(value)
    return number if number is not None else 0


def compute_priority(blood_pressure: Any, glucose_level: Any) -> str:
    bp = _value(blood_pressure)
    glucose = _value(glucose_level)
    if bp > 140 or glucose > 140:
        return HIGH
    if bp > 120 or glucose > 100:
        return MODERATE
    return LOW


def patient_priority(patient: Optional[dict]) -> str:
    if not patient:
        return UNKNOWN
    return compute_priority(patient.get("bloodPressure"), patient.get("glucoseLevel"))


def priority_breakdown(patients: Iterable[dict]) -> Dict[str, int]:
    counts = {HIGH: 0, MODERATE: 0, LOW: 0}
    for patient in patients:
        counts[compute_priority(patient.get("bloodPressure"), patient.get("glucoseLevel"))] += 1
    return counts


def vitals_flags(vitals: Optional[dict]) -> Dict[str, bool]:
    """Which vitals are above their normal range. Missing values are not high."""
    vitals = vitals or {}

    def above(field, limit):
        number = to_number(vitals.get(field))
        return number is not None and number > limit

    return {
        "glucoseHigh": above("glucoseLevel", GLUCOSE_HIGH),
        "bloodPressureHigh": above("bloodPressure", BLOOD_PRESSURE_HIGH),
        "heartRateHigh": above("heartRate", HEART_RATE_HIGH),
    }
