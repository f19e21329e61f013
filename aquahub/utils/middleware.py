import logging
import uuid

from fastapi import Request

logger = logging.getLogger(__name__)


async def logging_middleware(request: Request, call_next):
    request_id = str(uuid.uuid4())

    logger.info("[REQ %s] %s %s", request_id, request.method, request.url.path)

    try:
        response = await call_next(request)
    except Exception:
        logger.exception("[REQ %s] Unhandled error", request_id)
        raise
    logger.info("[REQ %s] %s", request_id, response.status_code)
    response.headers["X-Request-ID"] = request_id
    return response
