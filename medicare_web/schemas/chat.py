from pydantic import BaseModel

from ..core.exceptions import ValidationError


class MessageForm(BaseModel):
    text: str = ""

    def check(self) -> None:
        if not self.text.strip():
            raise ValidationError("Message cannot be empty", field="text")
