from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket

from aquahub.schemas.chat import (
    DirectConversationRequest,
    DirectConversationResponse,
    MessageOut,
    MessagePage,
    SendMessageRequest,
)
from aquahub.services.chat_service import ChatService
from aquahub.session import Session, get_current_session, open_websocket_session
from aquahub.utils.dependencies import get_chat_service, to_out
from aquahub.utils.errors import AquaHubError
from aquahub.utils.websocket_manager import manager


router = APIRouter(prefix="/conversations", tags=["chat"])


@router.post("/direct", response_model=DirectConversationResponse)
async def get_or_create_direct_conversation(body: DirectConversationRequest, session: Session = Depends(get_current_session), service: ChatService = Depends(get_chat_service)):
    convo, created = await service.find_or_create(session, body.recipient_id, body.recipient_name, body.recipient_avatar)
    return {"conversation_id": convo["_id"], "is_new": created}


@router.get("")
async def list_conversations(limit: int = Query(20, ge=1, le=100), cursor: Optional[str] = None, session: Session = Depends(get_current_session), service: ChatService = Depends(get_chat_service)):
    items, next_cursor = await service.list_conversations(session, limit=limit, cursor=cursor)
    return {"items": [to_out(it) for it in items], "next_cursor": next_cursor}


@router.get("/unread")
async def unread_total(session: Session = Depends(get_current_session), service: ChatService = Depends(get_chat_service)):
    return {"total": await service.total_unread(session)}


@router.get("/{conversation_id}/messages", response_model=MessagePage)
async def list_messages(conversation_id: str, limit: int = Query(50, ge=1, le=200), cursor: Optional[str] = None, session: Session = Depends(get_current_session), service: ChatService = Depends(get_chat_service)):
    messages, next_cursor = await service.get_history(session, conversation_id, limit=limit, cursor=cursor)
    return {"items": [to_out(m) for m in messages], "next_cursor": next_cursor}


@router.post("/{conversation_id}/messages", response_model=MessageOut, status_code=201)
async def send_message(conversation_id: str, body: SendMessageRequest, session: Session = Depends(get_current_session), service: ChatService = Depends(get_chat_service)):
    saved = await service.send_message(session, conversation_id, body.payload)
    return to_out(saved)


@router.post("/{conversation_id}/read")
async def mark_read(conversation_id: str, session: Session = Depends(get_current_session), service: ChatService = Depends(get_chat_service)):
    await service.mark_read(session, conversation_id)
    return {"ok": True}


@router.websocket("/ws")
async def conversations_socket(websocket: WebSocket, service: ChatService = Depends(get_chat_service)):
    session = await open_websocket_session(websocket)
    if session is None:
        return
    subscription = await service.subscribe_conversations(session)
    await manager.stream(session.user_id, websocket, subscription, serialize=lambda items: [to_out(it) for it in items])


@router.websocket("/{conversation_id}/ws")
async def messages_socket(websocket: WebSocket, conversation_id: str, service: ChatService = Depends(get_chat_service)):
    session = await open_websocket_session(websocket)
    if session is None:
        return
    try:
        subscription = await service.subscribe_messages(session, conversation_id)
    except AquaHubError as e:
        await websocket.close(code=4000 + e.status_code, reason=e.message)
        return
    await manager.stream(session.user_id, websocket, subscription, serialize=lambda items: [to_out(it) for it in items])
