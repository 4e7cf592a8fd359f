"""
Bearer-token dependency for the routers.

get_current_user_required answers 401 without a usable access token and binds
the operator id to the log context and to Sentry.
"""

from typing import Optional
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from logging_config import set_request_context
from sentry_integration import set_user
from services.auth import ACCESS_TOKEN_TYPE, AuthUser, decode_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _user_from_credentials(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[AuthUser]:
    if credentials is None:
        return None
    claims = decode_token(credentials.credentials)
    if claims is None or claims.token_type != ACCESS_TOKEN_TYPE:
        return None
    return AuthUser(id=claims.user_id, email=claims.email, name=claims.name)


async def get_current_user_required(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> AuthUser:
    if credentials is None:
        raise _unauthorized("Not authenticated")

    user = _user_from_credentials(credentials)
    if user is None:
        raise _unauthorized("Invalid or expired token")

    set_request_context(user_id=user.id)
    set_user(user.id)
    return user
