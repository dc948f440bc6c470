from fastapi import APIRouter, Depends

from ...api.deps import get_current_session, get_notification_poller
from ...schemas.notification import NotificationFeed
from ...services.notification_service import NotificationPoller

router = APIRouter(
    prefix="/notifications",
    tags=["Notifications"],
    dependencies=[Depends(get_current_session)],
)

def _feed(poller: NotificationPoller) -> NotificationFeed:
    return NotificationFeed(notifications=poller.notifications, unread_count=poller.unread_count)

@router.get("", response_model=NotificationFeed)
async def list_notifications(poller: NotificationPoller = Depends(get_notification_poller)):
    return _feed(poller)

@router.post("/refresh", response_model=NotificationFeed)
async def refresh_notifications(poller: NotificationPoller = Depends(get_notification_poller)):
    await poller.refresh()
    return _feed(poller)

@router.patch("/read-all")
async def mark_all_as_read(poller: NotificationPoller = Depends(get_notification_poller)):
    success = await poller.mark_all_as_read()
    return {"success": success, **_feed(poller).model_dump()}

@router.delete("/clear")
async def clear_all_read(poller: NotificationPoller = Depends(get_notification_poller)):
    success = await poller.clear_all_read()
    return {"success": success, **_feed(poller).model_dump()}

@router.patch("/{notification_id}/read")
async def mark_as_read(
    notification_id: str,
    poller: NotificationPoller = Depends(get_notification_poller)
):
    success = await poller.mark_as_read(notification_id)
    return {"success": success, **_feed(poller).model_dump()}
