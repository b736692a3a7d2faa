"""AuthService tests: the workflow without HTTP in the way."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from pondobro.db.models import Session, User
from pondobro.db.stores import SessionStore, UserStore
from pondobro.services.auth_service import (
    AuthService,
    EmailTakenError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
)

PASSWORD = "long-enough-password"


@pytest.mark.asyncio
async def test_register_opens_session(db_session):
    result = await AuthService(db_session).register("svc@example.com", PASSWORD)
    assert result.user.id is not None
    assert result.session.user_id == result.user.id
    assert result.session.refresh_token
    assert result.access_token
    assert result.user.password_hash != PASSWORD


@pytest.mark.asyncio
async def test_register_is_atomic_when_session_insert_fails(db_session, monkeypatch):
    async def _broken_create(self, user_id, refresh_token, expires_at):
        raise OperationalError("INSERT INTO sessions", {}, Exception("disk full"))

    monkeypatch.setattr(SessionStore, "create", _broken_create)

    with pytest.raises(SQLAlchemyError):
        await AuthService(db_session).register("half@example.com", PASSWORD)

    users = (
        await db_session.execute(
            select(func.count()).select_from(User).where(User.email == "half@example.com")
        )
    ).scalar_one()
    assert users == 0


@pytest.mark.asyncio
async def test_register_race_maps_unique_violation_to_conflict(db_session, monkeypatch):
    """Two registrations that both pass the existence check: the insert decides."""
    svc = AuthService(db_session)
    await svc.register("race@example.com", PASSWORD)

    async def _never_exists(self, email):
        return False

    monkeypatch.setattr(UserStore, "email_exists", _never_exists)

    with pytest.raises(EmailTakenError):
        await svc.register("race@example.com", PASSWORD)

    users = (
        await db_session.execute(
            select(func.count()).select_from(User).where(User.email == "race@example.com")
        )
    ).scalar_one()
    assert users == 1

    # The session is still usable after the rollback
    assert (await svc.login("race@example.com", PASSWORD)).user.email == "race@example.com"


@pytest.mark.asyncio
async def test_login_rejects_bad_password_and_unknown_email(db_session):
    svc = AuthService(db_session)
    await svc.register("who@example.com", PASSWORD)

    with pytest.raises(InvalidCredentialsError) as wrong:
        await svc.login("who@example.com", "not-the-password")
    with pytest.raises(InvalidCredentialsError) as missing:
        await svc.login("nobody@example.com", PASSWORD)
    assert str(wrong.value) == str(missing.value)


@pytest.mark.asyncio
async def test_refresh_requires_token(db_session):
    with pytest.raises(InvalidRefreshTokenError, match="Missing"):
        await AuthService(db_session).refresh(None)


@pytest.mark.asyncio
async def test_refresh_returns_owner(db_session):
    svc = AuthService(db_session)
    reg = await svc.register("owner@example.com", PASSWORD)

    result = await svc.refresh(reg.session.refresh_token)
    assert result.user.id == reg.user.id
    assert result.session is None


@pytest.mark.asyncio
async def test_logout_reports_whether_a_session_existed(db_session):
    svc = AuthService(db_session)
    reg = await svc.register("bye@example.com", PASSWORD)

    assert await svc.logout(reg.session.refresh_token) is True
    assert await svc.logout(reg.session.refresh_token) is False
    assert await svc.logout(None) is False

    remaining = (
        await db_session.execute(select(func.count()).select_from(Session))
    ).scalar_one()
    assert remaining == 0
