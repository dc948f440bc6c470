from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Any, Optional, Union

from ..core.exceptions import ValidationError
from .session import Session


def to_number(value: Any) -> Optional[Union[int, float]]:
    """Coerce a form value to a number; blank means absent."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return int(number) if number.is_integer() else number


class LoginCredentials(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None
    mobile_number: Optional[str] = Field(default=None, validation_alias=AliasChoices("mobileNumber", "mobile_number"))
    password: str = ""

    @classmethod
    def from_identifier(cls, identifier: str, password: str) -> "LoginCredentials":
        """An identifier containing '@' is an email, anything else a mobile number."""
        identifier = (identifier or "").strip()
        if "@" in identifier:
            return cls(email=identifier, password=password)
        return cls(mobile_number=identifier, password=password)

    def check(self) -> None:
        if not (self.email or "").strip() and not (self.mobile_number or "").strip():
            raise ValidationError("Email or mobile number is required", field="email")
        if not self.password:
            raise ValidationError("Password is required", field="password")

    def payload(self) -> dict:
        body = {"password": self.password}
        if self.email:
            body["email"] = self.email.strip()
        else:
            body["mobileNumber"] = self.mobile_number.strip()
        return body


class RegisterFields(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = ""
    email: str = ""
    password: str = ""
    age: Any = None
    gender: str = "Male"
    blood_pressure: Any = Field(default=None, validation_alias=AliasChoices("bloodPressure", "blood_pressure"))
    glucose_level: Any = Field(default=None, validation_alias=AliasChoices("glucoseLevel", "glucose_level"))
    heart_rate: Any = Field(default=None, validation_alias=AliasChoices("heartRate", "heart_rate"))

    def check(self) -> None:
        if not self.name.strip():
            raise ValidationError("Name is required", field="name")
        if "@" not in self.email:
            raise ValidationError("Valid email required", field="email")
        if len(self.password) < 6:
            raise ValidationError("Password must be at least 6 characters", field="password")
        if to_number(self.glucose_level) is None:
            raise ValidationError("Glucose Level is mandatory", field="glucoseLevel")

    def payload(self) -> dict:
        body = {
            "name": self.name.strip(),
            "email": self.email.strip(),
            "password": self.password,
            "gender": self.gender,
            "age": to_number(self.age),
            "bloodPressure": to_number(self.blood_pressure),
            "glucoseLevel": to_number(self.glucose_level),
            "heartRate": to_number(self.heart_rate),
        }
        body.update(self.model_extra or {})
        return {key: value for key, value in body.items() if value is not None}


class LoginForm(BaseModel):
    """Body of POST /login: one identifier field, email or mobile number."""
    identifier: str = Field(default="", validation_alias=AliasChoices("identifier", "email", "mobileNumber"))
    password: str = ""


class AuthResult(BaseModel):
    success: bool
    session: Optional[Session] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls, session: Session) -> "AuthResult":
        return cls(success=True, session=session)

    @classmethod
    def failed(cls, message: str) -> "AuthResult":
        return cls(success=False, message=message)
