"""
User session handlers: registration, login, refresh and session check.

Composes the credential store (``database.helpers``) with the
``TokenIssuer``.  One instance is built at startup and shared by every
request; the per-request ``AsyncSession`` is passed into each call.

Refresh tokens rotate: registration, login and every refresh overwrite the
user's single stored token, and ``refresh`` only accepts the stored value,
so a superseded token is rejected even while its signature is still valid.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import ApiError
from auth.jwt import TokenIssuer
from auth.password import MAX_PASSWORD_BYTES, hash_password, verify_password
from database.helpers import (
    create_user,
    find_refresh_token,
    get_user_by_email,
    upsert_refresh_token,
)
from database.models import User
from utils.schemas import TokenClaims, TokenPair

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL = "User with this email already exists"


def _claims_for(user: User) -> TokenClaims:
    return TokenClaims(id=str(user.id), email=user.email, name=user.name or "")


class SessionManager:
    def __init__(self, token_issuer: TokenIssuer, bcrypt_rounds: int = 12):
        self._issuer = token_issuer
        self._bcrypt_rounds = bcrypt_rounds

    async def _issue_and_store(self, session: AsyncSession, claims: TokenClaims) -> TokenPair:
        tokens = self._issuer.issue_tokens(claims)
        await upsert_refresh_token(session, claims.id, tokens.refresh_token)
        return tokens

    async def register(
        self,
        session: AsyncSession,
        email: Optional[str],
        password: Optional[str],
        name: Optional[str] = None,
    ) -> TokenPair:
        if not email or not password:
            raise ApiError.bad_request("Wrong email or password")

        if await get_user_by_email(session, email) is not None:
            raise ApiError.bad_request(DUPLICATE_EMAIL)

        if len(password.encode()) > MAX_PASSWORD_BYTES:
            raise ApiError.bad_request("Password is too long")

        password_hash = await asyncio.to_thread(
            hash_password, password, self._bcrypt_rounds,
        )

        try:
            user = await create_user(session, email, name or "", password_hash)
        except IntegrityError:
            # lost a race with a concurrent registration of the same email
            await session.rollback()
            raise ApiError.bad_request(DUPLICATE_EMAIL)

        tokens = await self._issue_and_store(session, _claims_for(user))
        logger.info("Registered user %s (%s)", user.email, user.id)
        return tokens

    async def login(
        self,
        session: AsyncSession,
        email: Optional[str],
        password: Optional[str],
    ) -> TokenPair:
        user = await get_user_by_email(session, email) if email else None
        if user is None:
            raise ApiError.bad_request("User not found")

        matches = await asyncio.to_thread(verify_password, password or "", user.password_hash)
        if not matches:
            logger.info("Wrong password for %s", user.id)
            raise ApiError.bad_request("Wrong password")

        tokens = await self._issue_and_store(session, _claims_for(user))
        logger.info("Login: %s (%s)", user.email, user.id)
        return tokens

    async def refresh(self, session: AsyncSession, refresh_token: Optional[str]) -> TokenPair:
        """
        Exchange the stored refresh token for a new pair.

        Order matters: the store lookup runs before signature verification
        so a rotated-out token is refused as ``invalid`` even if it has not
        expired yet.
        """
        if not refresh_token:
            raise ApiError.unauthorized("No refresh token provided")

        stored = await find_refresh_token(session, refresh_token)
        if stored is None:
            raise ApiError.unauthorized("Invalid refresh token")

        try:
            claims = self._issuer.decode_refresh_token(refresh_token)
        except jwt.InvalidTokenError:
            raise ApiError.unauthorized("Expired refresh token")

        if claims.id != str(stored.user_id):
            raise ApiError.unauthorized("Invalid refresh token")

        tokens = await self._issue_and_store(session, claims)
        logger.info("Refreshed tokens for %s", claims.id)
        return tokens

    def check(self, claims: Optional[TokenClaims]) -> str:
        """Return a fresh access token for an already authenticated caller."""
        if claims is None:
            raise ApiError.unauthorized("Unauthorized")
        return self._issuer.issue_access_token(claims)
