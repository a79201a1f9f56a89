import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from django.conf import settings

from .exceptions import Unauthorized
from .models import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthContext:
    """The authenticated caller of a single request, as carried by its token."""

    subject_id: int
    role: str
    expires_at: datetime


def issue_token(user, now=None) -> str:
    now = now or datetime.now(timezone.utc)
    payload = {
        "sub": str(user.pk),
        "role": user.role,
        "iat": now,
        "exp": now + timedelta(days=settings.JWT_EXPIRES_DAYS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> AuthContext:
    try:
        data = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token expired")
    except jwt.InvalidTokenError as exc:
        logger.info("Rejected bearer token: %s", exc)
        raise Unauthorized("Invalid token")

    role = data.get("role")
    if role not in User.Role.values:
        raise Unauthorized("Invalid token")
    try:
        subject_id = int(data["sub"])
    except (TypeError, ValueError):
        raise Unauthorized("Invalid token")
    return AuthContext(
        subject_id=subject_id,
        role=role,
        expires_at=datetime.fromtimestamp(data["exp"], tz=timezone.utc),
    )


def token_from_header(header_value) -> str:
    if not header_value:
        raise Unauthorized("Missing Authorization header")
    scheme, _, token = header_value.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized("Invalid Authorization header")
    return token.strip()
