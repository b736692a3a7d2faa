"""Identity resolution: which user is this request acting for?

Learn: Two identity sources collapse into one user id through an ordered
chain of small strategies. Each strategy looks at the RequestContext and
returns a user id or None; the first hit wins.

Default order:
1. SessionCookieResolver: the refresh cookie names a stored session.
   No expiry check here; only /auth/refresh enforces session expiry.
2. BearerClaimsResolver: "sub" (or "nameid") from verified bearer claims.

So a cookie that resolves beats a bearer token, and a cookie that does
not resolve falls through to the bearer token.
"""

from typing import Optional, Protocol, Sequence

import structlog

from pondobro.auth.context import RequestContext
from pondobro.auth.jwt import user_id_from_claims
from pondobro.db.stores import SessionStore

logger = structlog.get_logger()


class IdentityStrategy(Protocol):
    name: str

    async def resolve(self, ctx: RequestContext) -> Optional[int]: ...


class SessionCookieResolver:
    """Resolve via the refresh cookie → session row → owning user."""

    name = "session_cookie"

    def __init__(self, sessions: SessionStore):
        self.sessions = sessions

    async def resolve(self, ctx: RequestContext) -> Optional[int]:
        if not ctx.refresh_token:
            return None
        session = await self.sessions.get_by_token(ctx.refresh_token)
        return session.user_id if session else None


class BearerClaimsResolver:
    """Resolve via claims of an already-verified bearer token."""

    name = "bearer_claims"

    async def resolve(self, ctx: RequestContext) -> Optional[int]:
        if ctx.claims is None:
            return None
        return user_id_from_claims(ctx.claims)


class IdentityResolver:
    """Run strategies in order; first non-None user id wins."""

    def __init__(self, strategies: Sequence[IdentityStrategy]):
        self.strategies = list(strategies)

    @classmethod
    def default(cls, sessions: SessionStore) -> "IdentityResolver":
        return cls([SessionCookieResolver(sessions), BearerClaimsResolver()])

    async def resolve(self, ctx: RequestContext) -> Optional[int]:
        if ctx.is_anonymous:
            return None
        for strategy in self.strategies:
            user_id = await strategy.resolve(ctx)
            if user_id is not None:
                logger.debug("auth.identity_resolved", via=strategy.name, user_id=user_id)
                return user_id
        return None
