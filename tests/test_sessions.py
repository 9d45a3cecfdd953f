from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

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
from utils.security import TokenIssuer, claims_for, verify_password
from utils.sessions import SessionManager, resolve_role


def _token_rows(sessions, user_id=None):
    query = sessions.storage.get_session().query(RefreshToken)
    if user_id:
        query = query.filter(RefreshToken.user_id == user_id)
    return query.all()


def test_register_hashes_password_and_defaults_role(sessions) -> None:
    user = sessions.register("A", "a@x.com", "secret123")

    assert user.role is Role.USER
    assert user.password_hash != "secret123"
    assert verify_password("secret123", user.password_hash)
    # Registration alone never opens a session
    assert _token_rows(sessions) == []


@pytest.mark.parametrize(
    "requested, expected",
    [("admin", Role.ADMIN), ("ADMIN", Role.ADMIN), ("user", Role.USER),
     ("superuser", Role.USER), ("", Role.USER), (None, Role.USER)],
)
def test_resolve_role(requested, expected) -> None:
    assert resolve_role(requested) is expected


def test_register_duplicate_email(sessions) -> None:
    sessions.register("A", "a@x.com", "secret123")

    with pytest.raises(DuplicateUser):
        sessions.register("B", "a@x.com", "another123")


def test_email_lookup_is_case_sensitive(sessions) -> None:
    sessions.register("A", "a@x.com", "secret123")

    with pytest.raises(UserNotFound):
        sessions.login("A@X.com", "secret123")


def test_register_race_on_unique_constraint_is_duplicate(sessions, monkeypatch) -> None:
    sessions.register("A", "a@x.com", "secret123")
    # Pretend the pre-check ran before the other request committed
    monkeypatch.setattr(sessions, "_find_user_by_email", lambda email: None)

    with pytest.raises(DuplicateUser):
        sessions.register("A again", "a@x.com", "secret123")


def test_login_returns_tokens_and_persists_one_record(sessions) -> None:
    user = sessions.register("A", "a@x.com", "secret123", role="admin")

    result = sessions.login("a@x.com", "secret123")

    claims = sessions.issuer.verify_access(result.access_token)
    assert claims["user_id"] == user.id
    assert claims["role"] == "admin"
    rows = _token_rows(sessions, user.id)
    assert [row.token for row in rows] == [result.refresh_token]


def test_login_unknown_email(sessions) -> None:
    with pytest.raises(UserNotFound):
        sessions.login("nobody@x.com", "secret123")


def test_login_wrong_password(sessions) -> None:
    sessions.register("A", "a@x.com", "secret123")

    with pytest.raises(InvalidCredentials):
        sessions.login("a@x.com", "wrong-password")
    assert _token_rows(sessions) == []


def test_concurrent_sessions_are_independent(sessions) -> None:
    user = sessions.register("A", "a@x.com", "secret123")
    laptop = sessions.login("a@x.com", "secret123")
    phone = sessions.login("a@x.com", "secret123")

    assert laptop.refresh_token != phone.refresh_token
    assert len(_token_rows(sessions, user.id)) == 2

    sessions.logout(laptop.refresh_token)

    assert sessions.refresh(phone.refresh_token).user.id == user.id
    with pytest.raises(InvalidToken):
        sessions.refresh(laptop.refresh_token)


def test_refresh_reissues_access_token_only(sessions) -> None:
    user = sessions.register("A", "a@x.com", "secret123")
    login = sessions.login("a@x.com", "secret123")

    first = sessions.refresh(login.refresh_token)
    second = sessions.refresh(login.refresh_token)

    assert first.access_token != login.access_token
    assert second.access_token != first.access_token
    assert sessions.issuer.verify_access(first.access_token)["user_id"] == user.id
    assert [row.token for row in _token_rows(sessions)] == [login.refresh_token]


@pytest.mark.parametrize("token", [None, ""])
def test_refresh_without_token(sessions, token) -> None:
    with pytest.raises(MissingToken):
        sessions.refresh(token)


def test_refresh_with_unknown_token(sessions) -> None:
    sessions.register("A", "a@x.com", "secret123")
    user = sessions.storage.get_session().query(User).one()
    # Signed correctly but never stored
    stray = sessions.issuer.issue_refresh(claims_for(user))

    with pytest.raises(InvalidToken):
        sessions.refresh(stray)


def test_refresh_with_stored_but_expired_token(sessions) -> None:
    user = sessions.register("A", "a@x.com", "secret123")
    old_issuer = TokenIssuer(
        sessions.issuer.settings,
        clock=lambda: datetime.now(timezone.utc) - timedelta(days=2),
    )
    expired = old_issuer.issue_refresh(claims_for(user))
    sessions.storage.new(RefreshToken(user_id=user.id, token=expired))
    sessions.storage.save()

    with pytest.raises(InvalidToken):
        sessions.refresh(expired)


def test_refresh_when_user_vanished(sessions) -> None:
    owner = sessions.register("A", "a@x.com", "secret123")
    ghost_claims = {"user_id": "no-such-user", "email": "ghost@x.com", "role": "user"}
    token = sessions.issuer.issue_refresh(ghost_claims)
    sessions.storage.new(RefreshToken(user_id=owner.id, token=token))
    sessions.storage.save()

    with pytest.raises(UserNotFound):
        sessions.refresh(token)


def test_refresh_returns_current_user_fields(sessions) -> None:
    user = sessions.register("A", "a@x.com", "secret123")
    login = sessions.login("a@x.com", "secret123")
    user.role = Role.ADMIN
    sessions.storage.new(user)
    sessions.storage.save()

    result = sessions.refresh(login.refresh_token)

    assert result.user.role is Role.ADMIN
    assert sessions.issuer.verify_access(result.access_token)["role"] == "admin"


def test_logout_revokes_and_is_idempotent(sessions) -> None:
    sessions.register("A", "a@x.com", "secret123")
    login = sessions.login("a@x.com", "secret123")

    sessions.logout(login.refresh_token)
    sessions.logout(login.refresh_token)
    sessions.logout(None)

    assert _token_rows(sessions) == []
    # Still cryptographically valid, but no longer stored
    assert sessions.issuer.verify_refresh(login.refresh_token)
    with pytest.raises(InvalidToken):
        sessions.refresh(login.refresh_token)


class _BrokenSession:
    def query(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))


class _BrokenStorage:
    def get_session(self):
        return _BrokenSession()


@pytest.mark.parametrize(
    "call",
    [
        lambda m: m.register("A", "a@x.com", "secret123"),
        lambda m: m.login("a@x.com", "secret123"),
        lambda m: m.refresh("some-token"),
        lambda m: m.logout("some-token"),
    ],
)
def test_store_failures_surface_as_store_unavailable(issuer, call) -> None:
    manager = SessionManager(_BrokenStorage(), issuer)

    with pytest.raises(StoreUnavailable) as exc_info:
        call(manager)

    assert isinstance(exc_info.value.__cause__, OperationalError)

