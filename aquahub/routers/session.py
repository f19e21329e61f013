from fastapi import APIRouter, Depends

from aquahub.session import Session, get_current_session
from aquahub.utils.websocket_manager import manager


router = APIRouter(prefix="/session", tags=["session"])


@router.get("", response_model=Session)
async def current_session(session: Session = Depends(get_current_session)):
    return session


@router.post("/teardown")
async def teardown(session: Session = Depends(get_current_session)):
    """Called on sign-out: closes every live stream the user still has open."""
    open_streams = len(manager.active_connections.get(session.user_id, []))
    await manager.teardown(session.user_id)
    return {"closed": open_streams}
