"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
Dashboard tokens are short-lived access tokens carrying:
- sub: the dashboard user
- company_id: the tenant whose events the holder may receive
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from leap.config import settings


class TokenError(Exception):
    """Raised when token creation/verification fails."""


def create_access_token(
    subject: str,
    company_id: Optional[str] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """Create a JWT access token."""
    now = datetime.now(timezone.utc)
    expires = now + timedelta(
        minutes=expires_minutes or settings.access_token_expire_minutes
    )
    payload = {
        "sub": subject,
        "type": "access",
        "exp": expires,
        "iat": now,
    }
    if company_id:
        payload["company_id"] = company_id
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict:
    """Verify and decode a JWT token.

    Returns the payload dict on success.
    Raises TokenError on failure.
    """
    try:
        payload = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
        return payload
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")


def company_from_token(token: str) -> str:
    """Verify a token and return its company_id claim."""
    payload = verify_token(token)
    company_id = payload.get("company_id")
    if not company_id:
        raise TokenError("company_id required in token")
    return str(company_id)
