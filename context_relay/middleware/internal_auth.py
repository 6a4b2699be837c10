from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from context_relay.core.config import logger

PUBLIC_PATHS = ("/", "/health", "/api/health", "/docs", "/openapi.json", "/docs-index")


class InternalAuthMiddleware(BaseHTTPMiddleware):
    """
    Проверка X-Internal-Auth для административных endpoint-ов.

    Webhook WhatsApp и health остаются открытыми.
    """

    def __init__(self, app, api_key: str):
        super().__init__(app)
        self._api_key = api_key

    async def dispatch(self, request: Request, call_next):
        if request.url.path in PUBLIC_PATHS or request.url.path.startswith("/webhook"):
            return await call_next(request)
        auth = request.headers.get("x-internal-auth")
        if auth != self._api_key:
            logger.warning(
                f"[context-relay][AUTH_FAIL] Unauthorized {request.method} {request.url.path}"
            )
            return JSONResponse(status_code=401, content={"detail": "unauthorized"})
        return await call_next(request)
