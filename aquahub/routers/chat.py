from fastapi import APIRouter, Depends

from aquahub.schemas.chat import FirstContactRequest
from aquahub.services.chat_service import ChatService
from aquahub.session import Session, get_current_session
from aquahub.utils.dependencies import get_chat_service, to_out


router = APIRouter(prefix="/messages", tags=["chat"])


@router.post("", status_code=201)
async def send_first_contact(body: FirstContactRequest, session: Session = Depends(get_current_session), service: ChatService = Depends(get_chat_service)):
    """Message a user directly, opening the conversation on first contact (product inquiries, service requests)."""
    convo, message = await service.send_first_contact(
        session, body.recipient_id, body.payload, body.recipient_name, body.recipient_avatar
    )
    return {"conversation_id": convo["_id"], "message": to_out(message)}
