from typing import List, Optional
import asyncio
import logging

from pydantic import ValidationError as SchemaError

from ..core.config import settings
from ..core.exceptions import ApiError
from ..core.http import ApiClient
from ..schemas.notification import Notification
from ..schemas.session import Session
from .auth_service import SessionStore

logger = logging.getLogger(__name__)

class NotificationPoller:
    """Keeps the signed-in user's notification list fresh.

    Polling runs as an asyncio task that lives exactly as long as the session.
    Mutations only touch local state once the server has confirmed them; a
    failed mutation is followed by a full refresh.
    """

    def __init__(self, api: ApiClient, store: SessionStore, interval: Optional[float] = None):
        self.api = api
        self.store = store
        self.interval = interval if interval is not None else settings.NOTIFICATION_POLL_INTERVAL
        self.notifications: List[Notification] = []
        self._task: Optional[asyncio.Task] = None
        self._owner: Optional[str] = None

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.read)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def attach(self):
        """Follow the session store: poll while signed in, stop on logout."""
        return self.store.subscribe(self._on_session_change)

    def _on_session_change(self, session: Optional[Session]) -> None:
        if session is None:
            self.stop()
            return
        if self.running and session.user_id != self._owner:
            # Another account signed in over the previous one
            self.stop()
        self.start()

    def start(self) -> None:
        if self.running:
            return
        self._owner = self.store.session.user_id if self.store.session else None
        self._task = asyncio.get_running_loop().create_task(self._poll())
        logger.info(f"Notification polling started (every {self.interval}s)")

    def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            logger.info("Notification polling stopped")
        self._owner = None
        self.notifications = []

    async def aclose(self) -> None:
        task = self._task
        self.stop()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _poll(self) -> None:
        while True:
            try:
                await self.refresh()
            except Exception:
                logger.exception("Notification poll failed")
            await asyncio.sleep(self.interval)

    async def refresh(self) -> bool:
        """Replace the local list with the server's. Failures keep prior state."""
        if not self.store.is_authenticated:
            return False
        user_id = self.store.session.user_id
        try:
            data = await self.api.get("/notifications")
            items = [Notification.model_validate(item) for item in (data or [])]
        except (ApiError, SchemaError, TypeError) as e:
            logger.error(f"Error fetching notifications: {e}")
            return False

        # The session may have ended or changed hands while the request was in flight
        if not self.store.is_authenticated or self.store.session.user_id != user_id:
            return False
        self.notifications = items
        return True

    async def mark_as_read(self, notification_id: str) -> bool:
        try:
            await self.api.patch(f"/notifications/{notification_id}/read")
        except ApiError as e:
            logger.error(f"Error marking notification {notification_id} as read: {e}")
            await self.refresh()
            return False

        self.notifications = [
            n.model_copy(update={"read": True}) if n.id == notification_id else n
            for n in self.notifications
        ]
        return True

    async def mark_all_as_read(self) -> bool:
        try:
            await self.api.patch("/notifications/read-all")
        except ApiError as e:
            logger.error(f"Error marking all notifications as read: {e}")
            await self.refresh()
            return False

        self.notifications = [n.model_copy(update={"read": True}) for n in self.notifications]
        return True

    async def clear_all_read(self) -> bool:
        try:
            await self.api.delete("/notifications/clear")
        except ApiError as e:
            logger.error(f"Error clearing notifications: {e}")
            await self.refresh()
            return False

        self.notifications = [n for n in self.notifications if not n.read]
        return True
