"""
security helpers:
- Argon2 password hashing via argon2-cffi
- Access JWT issuance/verification via PyJWT (TokenSigner)
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from models.base_model import MAX_DB_INT
from models.user import Role
from utils.exceptions import InvalidToken, TokenExpired

ph = PasswordHasher()

DEFAULT_ACCESS_TTL = timedelta(minutes=60)


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2 (random salt embedded in the digest)
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a plaintext password using argon2; False on any mismatch
    """
    try:
        return ph.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AccessClaims:
    user_id: int
    role: Role
    issued_at: datetime
    expires_at: datetime


class TokenSigner:
    """
    Issues and verifies short-lived access tokens.

    Configuration is injected at construction; create_app() builds one from
    app.config and keeps it in app.extensions["token_signer"].
    """

    def __init__(self, secret: str, algorithm: str = "HS256", access_ttl: timedelta = DEFAULT_ACCESS_TTL):
        if not secret:
            raise ValueError("JWT secret must be configured")
        self.secret = secret
        self.algorithm = algorithm
        self.access_ttl = access_ttl

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "TokenSigner":
        return cls(
            secret=config.get("JWT_SECRET"),
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            access_ttl=config.get("JWT_ACCESS_TTL", DEFAULT_ACCESS_TTL),
        )

    def issue_access(self, user_id: int, role: Role | str, now: datetime | None = None) -> str:
        issued = now or _now()
        payload = {
            "user_id": int(user_id),
            "role": Role.parse(role).value,
            "iat": int(issued.timestamp()),
            "exp": int((issued + self.access_ttl).timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify_access(self, token: str) -> AccessClaims:
        """
        Decode and validate an access JWT.
        Raises TokenExpired once exp has passed, InvalidToken for anything else.
        """
        try:
            decoded = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpired()
        except jwt.InvalidTokenError as exc:
            raise InvalidToken(f"Invalid token: {exc}")

        user_id = decoded.get("user_id")
        if not isinstance(user_id, int) or isinstance(user_id, bool) or not 0 < user_id <= MAX_DB_INT:
            raise InvalidToken("Invalid token: bad user_id claim")
        try:
            role = Role.parse(decoded.get("role"))
        except ValueError:
            raise InvalidToken("Invalid token: unknown role")

        return AccessClaims(
            user_id=user_id,
            role=role,
            issued_at=datetime.fromtimestamp(decoded["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(decoded["exp"], tz=timezone.utc),
        )
