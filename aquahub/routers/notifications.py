from fastapi import APIRouter, Depends, Query, WebSocket

from aquahub.schemas.notification import NotificationList, NotificationOut
from aquahub.services.notification_service import NotificationService
from aquahub.session import Session, get_current_session, open_websocket_session
from aquahub.utils.dependencies import get_notification_service, to_out
from aquahub.utils.websocket_manager import manager


router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationList)
async def list_notifications(limit: int = Query(20, ge=1, le=100), unread_only: bool = False, session: Session = Depends(get_current_session), service: NotificationService = Depends(get_notification_service)):
    items = await service.list_for_user(session, limit=limit, unread_only=unread_only)
    return {"items": [to_out(it) for it in items], "unread": await service.unread_count(session)}


@router.post("/read-all")
async def mark_all_read(session: Session = Depends(get_current_session), service: NotificationService = Depends(get_notification_service)):
    return {"updated": await service.mark_all_read(session)}


@router.post("/{notification_id}/read", response_model=NotificationOut)
async def mark_read(notification_id: str, session: Session = Depends(get_current_session), service: NotificationService = Depends(get_notification_service)):
    return to_out(await service.mark_read(session, notification_id))


@router.websocket("/ws")
async def notifications_socket(websocket: WebSocket, service: NotificationService = Depends(get_notification_service)):
    session = await open_websocket_session(websocket)
    if session is None:
        return
    subscription = await service.subscribe(session)
    await manager.stream(
        session.user_id,
        websocket,
        subscription,
        serialize=lambda snap: {"items": [to_out(it) for it in snap["items"]], "unread": snap["unread"]},
    )
