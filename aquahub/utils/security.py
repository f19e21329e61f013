from typing import Any, Dict

import jwt

from aquahub.config import settings


def decode_access_token(token: str) -> Dict[str, Any]:
    # Raises jwt.InvalidTokenError (incl. ExpiredSignatureError) on bad tokens.
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
