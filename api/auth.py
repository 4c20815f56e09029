import secrets

from fastapi import Request

from api.config import settings
from api.exceptions import AuthenticationError, LadderException

ADMIN_SCHEME = "Admin "


async def require_admin_token(request: Request):
    if not settings.admin_api_token:
        raise LadderException("Admin endpoints are disabled", status_code=503)
    auth = request.headers.get("Authorization")
    if not auth or not auth.startswith(ADMIN_SCHEME):
        raise AuthenticationError("Missing admin token")
    token = auth[len(ADMIN_SCHEME):]
    if not secrets.compare_digest(token, settings.admin_api_token):
        raise AuthenticationError("Invalid admin token")
