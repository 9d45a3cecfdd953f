"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT creation/verification via PyJWT (separate access and refresh secrets)
- JTI generation for token identifiers
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from models.user import Role
from utils.exceptions import InvalidToken

ph = PasswordHasher()

ACCESS = "access"
REFRESH = "refresh"
IDENTITY_CLAIMS = ("user_id", "email", "role")


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2 (random salt per call)
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a plaintext password against an Argon2 digest.
    Mismatches and malformed digests both return False.
    """
    if not isinstance(password_hash, str) or not isinstance(password, str):
        return False
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Identity:
    """Decoded access-token identity attached to the request"""
    user_id: str
    email: str
    role: Role


def claims_for(user) -> Dict[str, Any]:
    """Identity claims carried by both token kinds"""
    role = user.role.value if isinstance(user.role, Role) else str(user.role)
    return {"user_id": str(user.id), "email": user.email, "role": role}


class TokenIssuer:
    """
    Signs and verifies access/refresh JWTs.

    The clock is only used when issuing; verification compares `exp` to the
    real current time, so a token issued with a clock in the past is seen as
    already aged by that amount.
    """

    def __init__(self, settings, clock: Optional[Callable[[], datetime]] = None):
        self.settings = settings
        self._clock = clock or _now

    def _issue(self, claims: Dict[str, Any], token_type: str) -> str:
        if token_type == ACCESS:
            secret, ttl = self.settings.access_secret, self.settings.access_ttl
        else:
            secret, ttl = self.settings.refresh_secret, self.settings.refresh_ttl
        now = self._clock()
        payload = {key: claims[key] for key in IDENTITY_CLAIMS}
        payload.update(
            {
                "type": token_type,
                "iat": now,
                "exp": now + ttl,
                "jti": generate_jti(),
            }
        )
        return jwt.encode(payload, secret, algorithm=self.settings.algorithm)

    def issue_access(self, claims: Dict[str, Any]) -> str:
        return self._issue(claims, ACCESS)

    def issue_refresh(self, claims: Dict[str, Any]) -> str:
        return self._issue(claims, REFRESH)

    def verify(self, token: str, secret: str, expected_type: Optional[str] = None) -> Dict[str, Any]:
        """
        Decode and validate a JWT. Raises InvalidToken on a bad signature,
        malformed input, expiry, missing claims or wrong token type; the
        caller cannot tell these apart.
        """
        if not token or not isinstance(token, str):
            raise InvalidToken()
        try:
            decoded = jwt.decode(
                token,
                secret,
                algorithms=[self.settings.algorithm],
                options={"require": ["exp", "iat", *IDENTITY_CLAIMS]},
            )
        except jwt.InvalidTokenError:
            raise InvalidToken() from None

        if expected_type and decoded.get("type") != expected_type:
            raise InvalidToken()
        return decoded

    def verify_access(self, token: str) -> Dict[str, Any]:
        return self.verify(token, self.settings.access_secret, ACCESS)

    def verify_refresh(self, token: str) -> Dict[str, Any]:
        return self.verify(token, self.settings.refresh_secret, REFRESH)
