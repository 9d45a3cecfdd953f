"""
Session lifecycle: register, login, refresh, logout.

A session is Authenticated while its refresh-token row exists and Revoked
once logout deletes it. Refresh is a same-state operation: it reissues an
access token and never touches the refresh token or its row.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.refresh_token import RefreshToken
from models.user import Role, User
from utils.exceptions import (
    DuplicateUser,
    InvalidCredentials,
    InvalidToken,
    MissingToken,
    StoreUnavailable,
    UserNotFound,
)
from utils.security import TokenIssuer, claims_for, hash_password, verify_password

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    access_token: str
    refresh_token: str
    user: User


@dataclass
class RefreshResult:
    access_token: str
    user: User


def resolve_role(role: Optional[str]) -> Role:
    """Only an explicit "admin" (any case) grants the admin role"""
    if isinstance(role, str) and role.strip().lower() == Role.ADMIN.value:
        return Role.ADMIN
    return Role.USER


@contextmanager
def store_errors(action: str):
    """Re-raise credential store failures as StoreUnavailable"""
    try:
        yield
    except IntegrityError:
        raise
    except SQLAlchemyError as exc:
        raise StoreUnavailable(f"Store failure while {action}") from exc


class SessionManager:
    def __init__(self, storage, issuer: TokenIssuer):
        self.storage = storage
        self.issuer = issuer

    def _find_user_by_email(self, email: str) -> Optional[User]:
        session = self.storage.get_session()
        return session.query(User).filter(User.email == email).first()

    def _find_token(self, token: str) -> Optional[RefreshToken]:
        session = self.storage.get_session()
        return session.query(RefreshToken).filter(RefreshToken.token == token).first()

    def register(self, name: str, email: str, password: str, role: Optional[str] = None) -> User:
        with store_errors("registering user"):
            if self._find_user_by_email(email):
                raise DuplicateUser()

            user = User(
                name=name,
                email=email,
                password_hash=hash_password(password),
                role=resolve_role(role),
            )
            self.storage.new(user)
            try:
                self.storage.save()
            except IntegrityError:
                # A concurrent registration won the unique constraint
                raise DuplicateUser() from None

        logger.info("Registered user %s with role %s", user.id, user.role.value)
        return user

    def login(self, email: str, password: str) -> LoginResult:
        with store_errors("logging in"):
            user = self._find_user_by_email(email)
            if user is None:
                logger.warning("Login failed: unknown email")
                raise UserNotFound("The user does not exist")
            if not verify_password(password, user.password_hash):
                logger.warning("Login failed: bad password for user %s", user.id)
                raise InvalidCredentials()

            claims = claims_for(user)
            access_token = self.issuer.issue_access(claims)
            refresh_token = self.issuer.issue_refresh(claims)

            self.storage.new(RefreshToken(user_id=user.id, token=refresh_token))
            self.storage.save()

        logger.info("User %s logged in", user.id)
        return LoginResult(access_token=access_token, refresh_token=refresh_token, user=user)

    def refresh(self, refresh_token: Optional[str]) -> RefreshResult:
        if not refresh_token:
            raise MissingToken()

        with store_errors("refreshing token"):
            if self._find_token(refresh_token) is None:
                raise InvalidToken()

            decoded = self.issuer.verify_refresh(refresh_token)

            user = self.storage.get(User, decoded["user_id"])
            if user is None:
                raise UserNotFound()

        return RefreshResult(access_token=self.issuer.issue_access(claims_for(user)), user=user)

    def logout(self, refresh_token: Optional[str]) -> None:
        if not refresh_token:
            return

        with store_errors("logging out"):
            record = self._find_token(refresh_token)
            if record is None:
                return
            self.storage.delete(record)
            self.storage.save()

        logger.info("Revoked refresh token for user %s", record.user_id)
