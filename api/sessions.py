"""
Session flow: register, login, refresh (rotation) and logout on top of the
password hasher, the TokenSigner and the RefreshTokenStore.

    [anonymous] --login--> [authenticated] --refresh--> [authenticated]
    [authenticated] --logout--> [anonymous]
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.user import Role, User
from utils.exceptions import (
    DuplicateEmail,
    InvalidCredentials,
    InvalidRefreshToken,
    ShopError,
    StoreFailure,
    UserNotFound,
)
from utils.refresh_tokens import RefreshTokenStore
from utils.security import TokenSigner, hash_password, verify_password

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int

    def to_dict(self) -> dict:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "token_type": "bearer",
            "expires_in": self.expires_in,
        }


class SessionFlow:
    def __init__(
        self,
        storage,
        signer: TokenSigner,
        refresh_store: RefreshTokenStore,
        default_role: Role = Role.ADMIN,
        conceal_unknown_email: bool = False,
    ):
        self.storage = storage
        self.signer = signer
        self.refresh_store = refresh_store
        self.default_role = default_role
        self.conceal_unknown_email = conceal_unknown_email

    def _find_user_by_email(self, email: str) -> User | None:
        session = self.storage.get_session()
        return session.query(User).filter(User.email == email).first()

    def _issue_pair(self, user: User, user_agent: str | None, ip: str | None) -> TokenPair:
        access = self.signer.issue_access(user.id, user.role)
        refresh, _ = self.refresh_store.issue(user.id, user_agent=user_agent, ip=ip)
        return TokenPair(access, refresh, int(self.signer.access_ttl.total_seconds()))

    def register(self, name: str, email: str, password: str) -> User:
        if self._find_user_by_email(email):
            raise DuplicateEmail()
        user = User(name=name, email=email, password_hash=hash_password(password), role=self.default_role)
        self.storage.new(user)
        try:
            self.storage.save()
        except IntegrityError as exc:
            # lost a race with another registration for the same email
            raise DuplicateEmail() from exc
        except SQLAlchemyError as exc:
            raise StoreFailure() from exc
        logger.info("registered user %s (%s)", user.id, user.email)
        return user

    def login(self, email: str, password: str, user_agent: str | None = None, ip: str | None = None) -> TokenPair:
        user = self._find_user_by_email(email)
        if user is None:
            logger.warning("login failed: unknown email '%s'", email)
            if self.conceal_unknown_email:
                raise InvalidCredentials()
            raise UserNotFound()
        if not verify_password(password, user.password_hash):
            logger.warning("login failed: bad password for '%s'", email)
            raise InvalidCredentials()
        pair = self._issue_pair(user, user_agent, ip)
        logger.info("user %s logged in", user.id)
        return pair

    def refresh(self, secret: str, user_agent: str | None = None, ip: str | None = None) -> TokenPair:
        """
        Rotate: the presented secret is consumed first, unconditionally.
        If anything fails after that the client has to log in again.
        """
        try:
            user_id = self.refresh_store.redeem(secret)
        except InvalidRefreshToken:
            logger.info("refresh rejected")
            raise
        user = self.storage.get(User, user_id)
        if user is None:
            raise InvalidRefreshToken()
        pair = self._issue_pair(user, user_agent, ip)
        logger.info("rotated refresh token for user %s", user_id)
        return pair

    def logout(self, secret: str) -> None:
        try:
            self.refresh_store.revoke(secret)
        except ShopError:
            logger.exception("logout: revoke failed, ignoring")
