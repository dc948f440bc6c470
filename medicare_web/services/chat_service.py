from typing import Any, List
import logging

from ..core.exceptions import ApiError
from ..core.http import ApiClient
from ..schemas.chat import MessageForm

logger = logging.getLogger(__name__)

class ChatService:
    def __init__(self, api: ApiClient):
        self.api = api

    async def for_doctor(self, doctor_id: str) -> List[dict]:
        return await self.api.get(f"/chats/doctor/{doctor_id}") or []

    async def for_patient(self, patient_id: str) -> List[dict]:
        return await self.api.get(f"/chats/patient/{patient_id}") or []

    async def open(self, chat_id: str) -> dict:
        """Load a conversation and mark it read for the viewer."""
        chat = await self.api.get(f"/chats/{chat_id}")
        try:
            await self.api.patch(f"/chats/{chat_id}/read")
        except ApiError as e:
            logger.warning(f"Could not mark chat {chat_id} as read: {e}")
        return chat

    async def send(self, chat_id: str, sender: str, form: MessageForm) -> Any:
        form.check()
        result = await self.api.post(f"/chats/{chat_id}/messages", json={
            "sender": sender,
            "text": form.text,
        })
        if isinstance(result, dict) and "chat" in result:
            return result["chat"]
        return result
