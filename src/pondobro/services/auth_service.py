"""Auth service: register, login, refresh, logout.

Learn: The client's auth relationship is a small state machine:

    Anonymous ──register/login──▶ LoggedIn ──logout──▶ Anonymous
                                     │ ▲
                                     └─┘ refresh

Register and login both open a new server-side session (a fresh refresh
token per device); refresh only mints a new access token and leaves the
session untouched, with no rotation and no sliding expiry. Logout deletes the
session if it can find it and otherwise does nothing.

Routes translate the exceptions below into HTTP status codes.
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pondobro.auth.jwt import TokenService
from pondobro.auth.password import hash_password, verify_password
from pondobro.db.models import Session, User
from pondobro.db.stores import SessionStore, UserStore

logger = structlog.get_logger()


class EmailTakenError(Exception):
    """Registration with an email that already has an account."""


class InvalidCredentialsError(Exception):
    """Unknown email or wrong password, deliberately not told apart."""


class InvalidRefreshTokenError(Exception):
    """No session for the token, the session has expired, or its user is gone."""


@dataclass
class AuthResult:
    user: User
    access_token: str
    session: Optional[Session] = None


class AuthService:
    """Business logic for the account/session lifecycle."""

    def __init__(self, db: AsyncSession, tokens: Optional[TokenService] = None):
        self.db = db
        self.users = UserStore(db)
        self.sessions = SessionStore(db)
        self.tokens = tokens or TokenService()

    async def register(self, email: str, password: str) -> AuthResult:
        """Create an account and log it in.

        Learn: The existence check is the fast path; two concurrent
        registrations can both pass it, so the unique index is the real
        guard and its violation means the same thing. The user row and its
        first session are committed together.
        """
        if await self.users.email_exists(email):
            raise EmailTakenError("Email already exists")

        try:
            user = await self.users.add(email, hash_password(password))
            session = await self._open_session(user)
        except IntegrityError:
            await self.db.rollback()
            logger.info("auth.register_conflict", reason="unique_violation")
            raise EmailTakenError("Email already exists")
        except SQLAlchemyError:
            await self.db.rollback()
            raise

        logger.info("auth.registered", user_id=user.id)
        return self._issue(user, session)

    async def login(self, email: str, password: str) -> AuthResult:
        user = await self.users.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("auth.login_failed")
            raise InvalidCredentialsError("Invalid email or password")

        session = await self._open_session(user)
        logger.info("auth.logged_in", user_id=user.id)
        return self._issue(user, session)

    async def refresh(self, refresh_token: Optional[str]) -> AuthResult:
        """Exchange a live session's refresh token for a new access token.

        An expired session is refused but left in place.
        """
        if not refresh_token:
            raise InvalidRefreshTokenError("Missing refresh token")

        session = await self.sessions.get_by_token(refresh_token, with_user=True)
        if session is None or session.is_expired() or session.user is None:
            raise InvalidRefreshTokenError("Invalid or expired refresh token")

        logger.info("auth.refreshed", user_id=session.user_id)
        return self._issue(session.user)

    async def logout(self, refresh_token: Optional[str]) -> bool:
        """Delete the session behind *refresh_token*. Returns whether one existed."""
        if not refresh_token:
            return False

        session = await self.sessions.get_by_token(refresh_token)
        if session is None:
            return False

        await self.sessions.delete(session)
        await self.db.commit()
        logger.info("auth.logged_out", user_id=session.user_id)
        return True

    # ─── Helpers ────────────────────────────────────────

    async def _open_session(self, user: User) -> Session:
        session = await self.sessions.create(
            user_id=user.id,
            refresh_token=self.tokens.create_refresh_token(),
            expires_at=self.tokens.refresh_expiry(),
        )
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        return session

    def _issue(self, user: User, session: Optional[Session] = None) -> AuthResult:
        return AuthResult(
            user=user,
            access_token=self.tokens.create_access_token(user),
            session=session,
        )
