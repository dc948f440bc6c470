from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Union

from ..core.exceptions import ValidationError


class DoctorForm(BaseModel):
    """Admin create/edit form for a doctor account."""
    model_config = ConfigDict(populate_by_name=True)

    full_name: str = Field(alias="fullName")
    email: str
    password: str = ""
    gender: str = "Male"
    contact_number: str = Field(default="", alias="contactNumber")
    specialist: Union[str, List[str]] = ""
    designation: str = ""

    def specialties(self) -> List[str]:
        if isinstance(self.specialist, list):
            items = self.specialist
        else:
            items = self.specialist.split(",")
        return [item.strip() for item in items if item and item.strip()]

    def payload(self, editing: bool = False) -> dict:
        if not editing and not self.password:
            raise ValidationError("Password is required for a new doctor", field="password")
        body = self.model_dump(by_alias=True)
        body["specialist"] = self.specialties()
        # Leaving the password blank on edit keeps the current one
        if editing and not body["password"]:
            del body["password"]
        return body


class RatingForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    score: int = 0
    comment: str = ""
    appointment_id: Optional[str] = Field(default=None, alias="appointmentId")

    def check(self) -> None:
        if not 1 <= self.score <= 5:
            raise ValidationError("Please select a star rating.", field="score")
