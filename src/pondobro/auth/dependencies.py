"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers. The boundary work
happens here and nowhere else:
- read the refresh cookie
- verify the bearer token (an invalid token just means "no claims")
- bundle both into a RequestContext
- run the identity resolver chain and 401 if nothing matches
"""

from typing import Optional

import structlog
from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pondobro.auth.context import RequestContext
from pondobro.auth.jwt import TokenError, TokenService
from pondobro.auth.resolvers import IdentityResolver
from pondobro.config import settings
from pondobro.db.engine import get_db
from pondobro.db.stores import SessionStore

logger = structlog.get_logger()


def get_token_service() -> TokenService:
    return TokenService(settings)


def get_refresh_cookie(request: Request) -> Optional[str]:
    """The refresh cookie value, or None when absent/empty."""
    return request.cookies.get(settings.refresh_cookie_name) or None


def get_request_context(
    refresh_token: Optional[str] = Depends(get_refresh_cookie),
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> RequestContext:
    """Collect the request's credentials into an explicit context value."""
    claims = None
    if authorization and authorization.startswith("Bearer "):
        try:
            claims = tokens.decode_access_token(authorization[7:])
        except TokenError as e:
            logger.debug("auth.bearer_rejected", reason=str(e))
    return RequestContext(refresh_token=refresh_token, claims=claims)


def get_identity_resolver(db: AsyncSession = Depends(get_db)) -> IdentityResolver:
    return IdentityResolver.default(SessionStore(db))


async def get_current_user_id(
    ctx: RequestContext = Depends(get_request_context),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> int:
    """Resolved user id (required; 401 if no credential resolves)."""
    user_id = await resolver.resolve(ctx)
    if user_id is None:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id
