"""Credential and session stores: thin query wrappers over the ORM.

Learn: Stores own the queries; services own the rules. A store never
commits on its own except where an operation must be atomic on its own
(deleting a user together with everything it owns).
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pondobro.db.models import Session, Transaction, User, utcnow


class UserStore:
    """Persists user records. Email uniqueness is enforced by the schema."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    async def email_exists(self, email: str) -> bool:
        result = await self.db.execute(
            select(func.count()).select_from(User).where(User.email == email)
        )
        return result.scalar_one() > 0

    async def add(self, email: str, password_hash: str) -> User:
        """Insert a user and flush. Raises IntegrityError on a duplicate email."""
        user = User(email=email, password_hash=password_hash)
        self.db.add(user)
        await self.db.flush()
        return user

    async def delete(self, user: User) -> None:
        """Delete a user with all of its sessions and transactions, atomically."""
        await self.db.execute(delete(Session).where(Session.user_id == user.id))
        await self.db.execute(delete(Transaction).where(Transaction.user_id == user.id))
        await self.db.delete(user)
        await self.db.commit()


class SessionStore:
    """Persists refresh-token sessions, keyed by the token value."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, user_id: int, refresh_token: str, expires_at: datetime) -> Session:
        session = Session(
            user_id=user_id,
            refresh_token=refresh_token,
            expires_at=expires_at,
        )
        self.db.add(session)
        await self.db.flush()
        return session

    async def get_by_token(self, refresh_token: str, with_user: bool = False) -> Optional[Session]:
        """Exact-match lookup. Expiry is the caller's concern."""
        query = select(Session).where(Session.refresh_token == refresh_token)
        if with_user:
            query = query.options(selectinload(Session.user))
        result = await self.db.execute(query)
        return result.scalars().first()

    async def delete(self, session: Session) -> None:
        await self.db.delete(session)
        await self.db.flush()

    async def delete_expired(self, now: Optional[datetime] = None) -> int:
        """Remove sessions whose expiry has passed. Returns the number deleted.

        Nothing in the request path calls this; it exists for external
        cleanup (``pondobro purge-sessions``).
        """
        result = await self.db.execute(
            delete(Session).where(Session.expires_at < (now or utcnow()))
        )
        await self.db.commit()
        return result.rowcount or 0
