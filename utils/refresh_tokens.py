"""
Refresh token store.

Refresh secrets are 32 random bytes, hex-encoded, handed to the client once.
Only their SHA-256 hex digest is persisted: the secret carries 256 bits of entropy
and is single-use, so a fast unsalted hash is enough and keeps lookups indexable.
"""
from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timedelta
from typing import Any, Mapping, Tuple

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError

from models.base_model import utcnow
from models.refresh_token import RefreshToken
from utils.exceptions import InvalidRefreshToken, StoreFailure

logger = logging.getLogger(__name__)

SECRET_BYTES = 32
DEFAULT_REFRESH_TTL = timedelta(hours=720)


def generate_refresh_secret() -> str:
    return secrets.token_hex(SECRET_BYTES)


def hash_refresh_secret(secret: str) -> str:
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


class RefreshTokenStore:
    """Issues, redeems (single use) and revokes refresh tokens backed by DBStorage."""

    def __init__(self, storage, refresh_ttl: timedelta = DEFAULT_REFRESH_TTL):
        self.storage = storage
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_config(cls, storage, config: Mapping[str, Any]) -> "RefreshTokenStore":
        return cls(storage, refresh_ttl=config.get("JWT_REFRESH_TTL", DEFAULT_REFRESH_TTL))

    def issue(self, user_id: int, user_agent: str | None = None, ip: str | None = None) -> Tuple[str, datetime]:
        """Persist a new token for user_id; returns (secret, expires_at). The secret is not recoverable later."""
        secret = generate_refresh_secret()
        expires_at = utcnow() + self.refresh_ttl
        rt = RefreshToken(
            user_id=user_id,
            token_hash=hash_refresh_secret(secret),
            expires_at=expires_at,
            user_agent=(user_agent or "")[:512] or None,
            ip=(ip or "")[:64] or None,
        )
        self.storage.new(rt)
        try:
            self.storage.save()
        except SQLAlchemyError as exc:
            raise StoreFailure() from exc
        return secret, expires_at

    def redeem(self, secret: str) -> int:
        """
        Consume a live token and return its owner's id.

        The row is removed with a DELETE conditioned on both its id and the secret's
        hash, committed before returning, so when two callers race on the same
        secret only one sees rowcount == 1, even if the winner's replacement row
        were to land on the same id.
        Unknown, expired and already-used secrets all raise InvalidRefreshToken.
        """
        if not isinstance(secret, str) or not secret:
            raise InvalidRefreshToken()
        session = self.storage.get_session()
        token_hash = hash_refresh_secret(secret)
        row = (
            session.query(RefreshToken.id, RefreshToken.user_id)
            .filter(RefreshToken.token_hash == token_hash, RefreshToken.expires_at > utcnow())
            .first()
        )
        if row is None:
            raise InvalidRefreshToken()

        try:
            result = session.execute(
                delete(RefreshToken)
                .where(RefreshToken.id == row.id, RefreshToken.token_hash == token_hash)
                .execution_options(synchronize_session=False)
            )
            self.storage.save()
        except SQLAlchemyError as exc:
            raise StoreFailure() from exc

        if result.rowcount != 1:
            logger.info("refresh token for user %s already consumed", row.user_id)
            raise InvalidRefreshToken()
        return row.user_id

    def revoke(self, secret: str) -> None:
        """Delete the matching row if any; revoking an unknown token is not an error."""
        if not isinstance(secret, str) or not secret:
            return
        session = self.storage.get_session()
        try:
            session.execute(
                delete(RefreshToken)
                .where(RefreshToken.token_hash == hash_refresh_secret(secret))
                .execution_options(synchronize_session=False)
            )
            self.storage.save()
        except SQLAlchemyError as exc:
            raise StoreFailure() from exc

    def purge_expired(self, now: datetime | None = None) -> int:
        session = self.storage.get_session()
        try:
            result = session.execute(
                delete(RefreshToken)
                .where(RefreshToken.expires_at <= (now or utcnow()))
                .execution_options(synchronize_session=False)
            )
            self.storage.save()
        except SQLAlchemyError as exc:
            raise StoreFailure() from exc
        return result.rowcount
