"""
JWT creation and verification.

Access and refresh tokens are HS256 JWTs signed with *different* secrets
and carrying different lifetimes.  Only refresh tokens are ever stored;
access tokens are checked purely by signature + expiry.
"""

from __future__ import annotations

import time
import uuid
from typing import Any, Dict

import jwt

from utils.schemas import TokenClaims, TokenPair


class TokenIssuer:
    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_expiry_seconds: int,
        refresh_expiry_seconds: int,
        algorithm: str = "HS256",
    ):
        if not access_secret:
            raise ValueError("access secret is not configured")
        if not refresh_secret:
            raise ValueError("refresh secret is not configured")
        if access_secret == refresh_secret:
            raise ValueError("access and refresh secrets must differ")

        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self._access_expiry = access_expiry_seconds
        self._refresh_expiry = refresh_expiry_seconds
        self._algorithm = algorithm

    @classmethod
    def from_settings(cls, settings) -> "TokenIssuer":
        return cls(
            access_secret=settings.access_secret_key,
            refresh_secret=settings.refresh_secret_key,
            access_expiry_seconds=settings.access_token_expiry_seconds,
            refresh_expiry_seconds=settings.refresh_token_expiry_seconds,
            algorithm=settings.jwt_algorithm,
        )

    def _sign(self, claims: TokenClaims, secret: str, expiry_seconds: int) -> str:
        now = int(time.time())
        payload: Dict[str, Any] = {
            "id": claims.id,
            "email": claims.email,
            "name": claims.name,
            "iat": now,
            "exp": now + expiry_seconds,
            # unique per token so a rotated token never equals the one it replaces
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def _decode(self, token: str, secret: str) -> TokenClaims:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[self._algorithm],
            options={"require": ["exp", "id"]},
        )
        return TokenClaims(**payload)

    def issue_access_token(self, claims: TokenClaims) -> str:
        return self._sign(claims, self._access_secret, self._access_expiry)

    def issue_tokens(self, claims: TokenClaims) -> TokenPair:
        """Mint a fresh access + refresh pair for ``claims``."""
        return TokenPair(
            access_token=self.issue_access_token(claims),
            refresh_token=self._sign(claims, self._refresh_secret, self._refresh_expiry),
        )

    def decode_access_token(self, token: str) -> TokenClaims:
        """
        Verify an access token and return its claims.

        Raises ``jwt.InvalidTokenError`` (or a subclass such as
        ``ExpiredSignatureError``) when the token is malformed, signed with
        another key, or expired.
        """
        return self._decode(token, self._access_secret)

    def decode_refresh_token(self, token: str) -> TokenClaims:
        """Same as ``decode_access_token`` but against the refresh secret."""
        return self._decode(token, self._refresh_secret)
