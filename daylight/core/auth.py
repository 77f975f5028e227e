"""Authentication dependencies for FastAPI routes.

Verifies Supabase access tokens (HS256, shared project secret) with PyJWT and
exposes the authenticated user's id to route handlers.
"""

from typing import Any, Dict, Optional
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from daylight.config import settings
from daylight.utils.logging import get_logger

LOGGER = get_logger(__name__)

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


class JWTClaims(BaseModel):
    """Decoded JWT claims from Supabase."""

    sub: str  # User ID
    email: Optional[str] = None
    role: str = "authenticated"
    exp: int
    iat: Optional[int] = None
    iss: Optional[str] = None
    aud: Optional[str] = None
    app_metadata: Optional[Dict[str, Any]] = None
    user_metadata: Optional[Dict[str, Any]] = None


class CurrentUser(BaseModel):
    id: UUID
    email: Optional[str] = None
    role: str = "authenticated"


class JWTVerifier:
    """JWT verifier for Supabase access tokens."""

    def __init__(self, supabase_url: str, jwt_secret: str, audience: str = "authenticated"):
        """Initialize JWT verifier.

        Args:
            supabase_url: Supabase project URL; when set, the issuer is checked
            jwt_secret: Supabase JWT secret for HS256 verification
            audience: Expected ``aud`` claim
        """
        self.expected_issuer = f"{supabase_url.rstrip('/')}/auth/v1" if supabase_url else None
        self.jwt_secret = jwt_secret
        self.audience = audience

    def verify_token(self, token: str) -> JWTClaims:
        """Verify and decode a Supabase JWT token.

        Raises:
            jwt.InvalidTokenError: If token is invalid, expired or mis-issued
        """
        if not self.jwt_secret:
            raise jwt.InvalidTokenError("SUPABASE_JWT_SECRET is not configured")

        payload = jwt.decode(
            token,
            self.jwt_secret,
            algorithms=["HS256"],
            audience=self.audience,
            issuer=self.expected_issuer,
            options={
                "verify_exp": True,
                "verify_iss": self.expected_issuer is not None,
                "require": ["sub", "exp"],
            },
        )
        return JWTClaims(**payload)


jwt_verifier = JWTVerifier(
    supabase_url=settings.supabase.url,
    jwt_secret=settings.supabase.jwt_secret,
    audience=settings.supabase.jwt_audience,
)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> CurrentUser:
    """Get the current authenticated user from the Bearer token.

    Raises:
        HTTPException: If token is missing, invalid, or expired
    """
    if not credentials:
        LOGGER.warning("No authorization credentials provided")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = jwt_verifier.verify_token(credentials.credentials)
        user = CurrentUser(id=UUID(claims.sub), email=claims.email, role=claims.role)
    except (jwt.InvalidTokenError, ValueError) as e:
        LOGGER.warning(f"Invalid token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    LOGGER.debug(f"Authenticated user: {user.id}")
    return user


async def get_current_user_id(
    current_user: CurrentUser = Depends(get_current_user),
) -> UUID:
    return current_user.id
