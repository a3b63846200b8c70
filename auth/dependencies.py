"""
FastAPI dependencies for authentication.

Provides ``get_current_user`` (Bearer verification) plus accessors for the
managers that ``create_app`` builds once and keeps on ``app.state``.
"""

from __future__ import annotations

import logging
from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from api.errors import ApiError
from auth.jwt import TokenIssuer
from core.session_manager import SessionManager
from utils.schemas import TokenClaims

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> Optional[TokenClaims]:
    """
    Verify the ``Authorization: Bearer <token>`` header and return the
    decoded claims, also attached as ``request.state.user``.

    Pre-flight ``OPTIONS`` requests pass through without an identity.
    """
    if request.method == "OPTIONS":
        return None

    if credentials is None or not credentials.credentials:
        raise ApiError.unauthorized("Not authorized")

    try:
        claims = issuer.decode_access_token(credentials.credentials)
    except jwt.InvalidTokenError as exc:
        logger.debug("Rejected access token on %s: %s", request.url.path, exc)
        raise ApiError.unauthorized("Not authorized")

    request.state.user = claims
    return claims
