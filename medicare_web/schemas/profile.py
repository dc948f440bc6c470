import re
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional

from ..core.exceptions import ValidationError
from .auth import to_number

MOBILE_NUMBER = re.compile(r"^\d{10}$")


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: Optional[str] = None
    email: Optional[str] = None
    mobile_number: Optional[str] = Field(default=None, alias="mobileNumber")
    gender: Optional[str] = None
    age: Any = None

    def check(self) -> None:
        if self.mobile_number and not MOBILE_NUMBER.match(self.mobile_number):
            raise ValidationError("Please enter a valid 10-digit mobile number", field="mobileNumber")

    def payload(self) -> dict:
        body = self.model_dump(by_alias=True, exclude_none=True)
        if "age" in body:
            body["age"] = to_number(body["age"])
        return body


class Vitals(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    blood_pressure: Any = Field(default=None, alias="bloodPressure")
    glucose_level: Any = Field(default=None, alias="glucoseLevel")
    heart_rate: Any = Field(default=None, alias="heartRate")

    def payload(self) -> dict:
        return {
            "bloodPressure": to_number(self.blood_pressure),
            "glucoseLevel": to_number(self.glucose_level),
            "heartRate": to_number(self.heart_rate),
        }


class ProfileEdit(BaseModel):
    profile: ProfileUpdate = Field(default_factory=ProfileUpdate)
    vitals: Optional[Vitals] = None


class PasswordChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(alias="currentPassword")
    new_password: str = Field(alias="newPassword")
    confirm_password: str = Field(alias="confirmPassword")

    def check(self) -> None:
        if self.new_password != self.confirm_password:
            raise ValidationError("New passwords do not match", field="confirmPassword")
        if len(self.new_password) < 6:
            raise ValidationError("Password must be at least 6 characters", field="newPassword")
