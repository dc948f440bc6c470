from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from typing import Any, Optional

from ..core.security import UserRole, parse_role


def _id_to_str(value: Any) -> Any:
    if value is None or isinstance(value, str):
        return value
    return str(value)


class Session(BaseModel):
    """The signed-in user as resolved from ``GET /profile/me``."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    user_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("_id", "id", "userId", "user_id"))
    name: str = ""
    email: Optional[str] = None
    role: str
    doctor_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("doctorId", "doctor_id"))
    patient_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("patientId", "patient_id"))
    profile_picture: Optional[str] = Field(default=None, validation_alias=AliasChoices("profilePicture", "profile_picture"))

    normalize_ids = field_validator("user_id", "doctor_id", "patient_id", mode="before")(_id_to_str)

    @classmethod
    def from_profile(cls, profile: dict) -> "Session":
        return cls.model_validate(profile)

    @property
    def known_role(self) -> Optional[UserRole]:
        return parse_role(self.role)
