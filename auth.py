"""
Project: SharePlate Canteen Backend
Description:
Identity claims, bearer tokens and the menu write gate.

Tokens are signed with itsdangerous (the same signer Flask uses for its
session cookie) and carry the user id and role. The gate itself does no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from itsdangerous import BadSignature, URLSafeTimedSerializer

TOKEN_SALT = "shareplate-auth-token"


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


MENU_WRITER_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})


@dataclass(frozen=True)
class AuthClaim:
    user_id: int
    role: Role


class Denial(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[Denial] = None


ALLOWED = Decision(allowed=True)


def authorize_menu_write(claim: Optional[AuthClaim]) -> Decision:
    if claim is None:
        return Decision(allowed=False, reason=Denial.UNAUTHENTICATED)
    if claim.role not in MENU_WRITER_ROLES:
        return Decision(allowed=False, reason=Denial.FORBIDDEN)
    return ALLOWED


# --------- token collaborator ---------
def _serializer(secret_key):
    return URLSafeTimedSerializer(secret_key, salt=TOKEN_SALT)


def issue_token(user, secret_key) -> str:
    return _serializer(secret_key).dumps({"uid": user.id, "email": user.email, "role": user.role})


def verify_token(token, secret_key, max_age=None) -> Optional[AuthClaim]:
    """Return the claim carried by ``token`` or None when it cannot be trusted."""
    if not token:
        return None
    try:
        payload = _serializer(secret_key).loads(token, max_age=max_age)
    except BadSignature:
        # SignatureExpired is a BadSignature too
        return None
    if not isinstance(payload, dict) or "uid" not in payload:
        return None
    try:
        role = Role(payload.get("role"))
    except ValueError:
        return None
    return AuthClaim(user_id=payload["uid"], role=role)


def bearer_token(header) -> Optional[str]:
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
