"""JWT helpers for bearer tokens.

Tokens carry the user id in ``sub`` and, optionally, the company the user is
acting for in ``company_id``. Issuing real sessions belongs to the identity
provider; ``create_access_token`` exists for local runs and tests.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from jose import JWTError, jwt

from quotedesk.config import settings
from quotedesk.core.clock import utcnow


def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None,
) -> str:
    to_encode = data.copy()
    expire = utcnow() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def create_access_token_for_subject(
    subject: str,
    company_id: Optional[str] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    claims: dict = {"sub": str(subject)}
    if company_id:
        claims["company_id"] = str(company_id)
    minutes = expires_minutes or settings.access_token_expire_minutes
    return create_access_token(claims, expires_delta=timedelta(minutes=minutes))


def decode_access_token(token: str) -> Optional[dict]:
    """Decode a JWT access token; returns the claims or None if invalid."""

    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
