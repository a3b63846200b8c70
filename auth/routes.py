"""
Auth API routes — registration, login, refresh, session check.

Route prefix: /api/user
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth.dependencies import get_current_user, get_session_manager
from core.session_manager import SessionManager
from database.session import get_db_session
from utils.schemas import AccessTokenResponse, CamelModel, TokenClaims, TokenPair

router = APIRouter(tags=["user"])


# ── Request schemas ────────────────────────────────────────────────────
# Fields are optional so missing credentials surface as the handler's own
# "Wrong email or password" message rather than a schema error.


class RegisterRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class RefreshRequest(CamelModel):
    refresh_token: Optional[str] = None


# ── Endpoints ──────────────────────────────────────────────────────────


@router.post("/registration", response_model=TokenPair)
async def registration(
    req: RegisterRequest,
    session: AsyncSession = Depends(get_db_session),
    manager: SessionManager = Depends(get_session_manager),
) -> TokenPair:
    """Register a new user and return an access + refresh pair."""
    return await manager.register(session, req.email, req.password, req.name)


@router.post("/login", response_model=TokenPair)
async def login(
    req: LoginRequest,
    session: AsyncSession = Depends(get_db_session),
    manager: SessionManager = Depends(get_session_manager),
) -> TokenPair:
    """Login with email + password."""
    return await manager.login(session, req.email, req.password)


@router.post("/refresh", response_model=TokenPair)
async def refresh(
    req: RefreshRequest,
    session: AsyncSession = Depends(get_db_session),
    manager: SessionManager = Depends(get_session_manager),
) -> TokenPair:
    """Rotate the refresh token and mint a new access token."""
    return await manager.refresh(session, req.refresh_token)


@router.get("/auth", response_model=AccessTokenResponse)
async def check(
    user: Optional[TokenClaims] = Depends(get_current_user),
    manager: SessionManager = Depends(get_session_manager),
) -> AccessTokenResponse:
    """Session liveness check; answers with a fresh access token."""
    return AccessTokenResponse(access_token=manager.check(user))
