from datetime import datetime
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional


class Notification(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    message: str = ""
    link: Optional[str] = None
    read: bool = False
    created_at: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("createdAt", "created_at"))

    @field_validator("id", mode="before")
    @classmethod
    def id_as_str(cls, value):
        return value if isinstance(value, str) else str(value)


class NotificationFeed(BaseModel):
    notifications: List[Notification]
    unread_count: int
