import logging
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, HTTPException, WebSocket
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from aquahub.utils.security import decode_access_token

logger = logging.getLogger(__name__)

security = HTTPBearer()


class Session(BaseModel):
    """Identity of the caller, passed explicitly to every service call."""

    user_id: str
    name: str
    avatar_url: str = ""

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "Session":
        sub = claims.get("sub")
        if not sub:
            raise jwt.InvalidTokenError("token has no subject")
        return cls(
            user_id=str(sub),
            name=claims.get("name") or "New user",
            avatar_url=claims.get("picture") or "",
        )

    def snapshot(self) -> Dict[str, str]:
        return {"user_id": self.user_id, "name": self.name, "avatar_url": self.avatar_url}


def get_current_session(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Session:
    try:
        return Session.from_claims(decode_access_token(credentials.credentials))
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError as e:
        logger.info("JWT verification failed: %s", e)
        raise HTTPException(status_code=401, detail="Invalid token")


async def open_websocket_session(websocket: WebSocket) -> Optional[Session]:
    """Build the session for a WebSocket from ``?token=``; closes the socket and returns None when invalid."""
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=4401)
        return None
    try:
        return Session.from_claims(decode_access_token(token))
    except jwt.InvalidTokenError:
        await websocket.close(code=4401)
        return None
