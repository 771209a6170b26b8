from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from editor_backend import settings
from editor_backend.settings import logger

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

MESSAGES = {
    "/api/compiler/execute": "Too many code execution requests, please try again later.",
    "/api/web-engine/execute": "Too many web execution requests, please try again later.",
}


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    retry_after = exc.limit.limit.get_expiry()
    logger.warning(f"Rate limit hit on {request.url.path} by {get_remote_address(request)}: {exc.detail}")
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": MESSAGES.get(request.url.path, "Too many requests, please try again later."),
            "retryAfter": f"{retry_after} seconds",
        },
        headers={"Retry-After": str(retry_after)},
    )
