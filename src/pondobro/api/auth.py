"""Auth API: registration, login, refresh, logout.

Learn: Routes for the session lifecycle:
- POST /auth/register → create account, open session, set refresh cookie
- POST /auth/login → email/password → access token + refresh cookie
- POST /auth/refresh → refresh cookie → new access token
- POST /auth/logout → drop the session, clear the cookie

The refresh token only ever travels in an HttpOnly cookie; the JSON body
carries the access token. SameSite=None without Secure matches the
frontend's local http setup.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pondobro.auth.dependencies import get_refresh_cookie, get_token_service
from pondobro.auth.jwt import TokenService
from pondobro.config import settings
from pondobro.db.engine import get_db
from pondobro.schemas.auth import (
    AuthResponse,
    LoginRequest,
    OkResponse,
    RegisterRequest,
    UserSummary,
)
from pondobro.services.auth_service import (
    AuthResult,
    AuthService,
    EmailTakenError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/auth")

# Fixed regardless of the configured access-token lifetime.
ACCESS_TOKEN_EXPIRES_IN = 60 * 60


def _auth_svc(
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> AuthService:
    return AuthService(db, tokens)


# ─── Cookie helpers ──────────────────────────────────────


def set_refresh_cookie(response: Response, token: str, expires_at: datetime) -> None:
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=token,
        expires=expires_at,
        path="/",
        httponly=True,
        secure=False,
        samesite="none",
    )


def clear_refresh_cookie(response: Response) -> None:
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value="",
        expires=datetime.now(timezone.utc) - timedelta(days=1),
        path="/",
        httponly=True,
        secure=False,
        samesite="none",
    )


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        access_token=result.access_token,
        expires_in=ACCESS_TOKEN_EXPIRES_IN,
        user=UserSummary.model_validate(result.user),
    )


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=AuthResponse)
async def register(
    body: RegisterRequest,
    response: Response,
    svc: AuthService = Depends(_auth_svc),
):
    """Create a new account and start a session."""
    try:
        result = await svc.register(body.email, body.password)
    except EmailTakenError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SQLAlchemyError:
        logger.exception("auth.register_failed")
        raise HTTPException(
            status_code=500,
            detail="An unexpected error occurred while creating the account.",
        )

    set_refresh_cookie(response, result.session.refresh_token, result.session.expires_at)
    return _auth_response(result)


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    svc: AuthService = Depends(_auth_svc),
):
    """Login with email and password → access token + refresh cookie."""
    try:
        result = await svc.login(body.email, body.password)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except SQLAlchemyError:
        logger.exception("auth.login_error")
        raise HTTPException(
            status_code=500,
            detail="An unexpected error occurred while attempting to log in.",
        )

    set_refresh_cookie(response, result.session.refresh_token, result.session.expires_at)
    return _auth_response(result)


# ─── Refresh ────────────────────────────────────────────


@router.post("/refresh", response_model=AuthResponse)
async def refresh(
    refresh_token: Optional[str] = Depends(get_refresh_cookie),
    svc: AuthService = Depends(_auth_svc),
):
    """Exchange the refresh cookie for a new access token.

    Learn: The cookie is not rotated and its expiry is not extended:
    a session lives exactly refresh_token_expire_days from login.
    """
    try:
        result = await svc.refresh(refresh_token)
    except InvalidRefreshTokenError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except SQLAlchemyError:
        logger.exception("auth.refresh_error")
        raise HTTPException(
            status_code=500,
            detail="An unexpected error occurred while refreshing the session.",
        )
    return _auth_response(result)


# ─── Logout ─────────────────────────────────────────────


@router.post("/logout", response_model=OkResponse)
async def logout(
    response: Response,
    refresh_token: Optional[str] = Depends(get_refresh_cookie),
    svc: AuthService = Depends(_auth_svc),
):
    """End the session (if any) and clear the cookie. Always ok."""
    try:
        await svc.logout(refresh_token)
    except SQLAlchemyError:
        logger.exception("auth.logout_error")
        raise HTTPException(
            status_code=500,
            detail="An unexpected error occurred while logging out.",
        )

    clear_refresh_cookie(response)
    return OkResponse()
