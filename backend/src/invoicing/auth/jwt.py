"""JWT verification for requests issued by the identity service.

Tokens are signed with a shared secret (HS256 by default). The ``sub`` claim
is the user identity the business directory is keyed by.
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import jwt

from invoicing.config import settings


class JWTAuth:
    """JWT authentication handler."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        access_token_expire_minutes: Optional[int] = None,
    ):
        """Initialize JWT auth from settings unless overridden."""
        self.secret_key = secret_key or settings.jwt_secret_key
        self.algorithm = algorithm or settings.jwt_algorithm
        self.access_token_expire_minutes = access_token_expire_minutes or settings.access_token_expire_minutes

    def create_access_token(
        self,
        user_id: str,
        email: Optional[str] = None,
        additional_claims: Optional[Dict] = None,
    ) -> str:
        """
        Create JWT access token.

        Used by tooling and tests; production tokens come from the identity
        service signed with the same secret.

        Args:
            user_id: User identity (becomes the ``sub`` claim)
            email: User email
            additional_claims: Additional JWT claims

        Returns:
            Encoded JWT token
        """
        now = datetime.now(timezone.utc)
        expire = now + timedelta(minutes=self.access_token_expire_minutes)

        claims = {
            "sub": str(user_id),
            "iat": now,
            "exp": expire,
            "type": "access",
        }
        if email:
            claims["email"] = email
        if additional_claims:
            claims.update(additional_claims)

        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> Dict:
        """
        Verify and decode JWT token.

        Args:
            token: JWT token string

        Returns:
            Decoded token claims

        Raises:
            jwt.ExpiredSignatureError: If token is expired
            jwt.InvalidTokenError: If token is invalid
        """
        return jwt.decode(
            token,
            self.secret_key,
            algorithms=[self.algorithm],
            options={"require": ["sub", "exp"]},
        )

    def verify_access_token(self, token: str) -> Dict:
        """
        Verify access token specifically.

        Raises:
            jwt.InvalidTokenError: If not an access token
        """
        payload = self.verify_token(token)

        if payload.get("type") != "access":
            raise jwt.InvalidTokenError("Not an access token")

        return payload


# Global JWT auth instance
jwt_auth = JWTAuth()
