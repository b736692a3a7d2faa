"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with PONDOBRO_ prefix.
Everything the deployment supplies lives here: JWT issuer/audience/secret,
token lifetimes, the database URL, and the frontend origins for CORS.
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings

DEV_JWT_SECRET = "change-me-in-production-0123456789"


class Settings(BaseSettings):
    """All app configuration. Set via PONDOBRO_* env vars."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/pondobro.db"

    # Auth
    jwt_issuer: str = "pondobro"
    jwt_audience: str = "pondobro-frontend"
    jwt_secret: str = DEV_JWT_SECRET
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    refresh_token_expire_days: int = 7
    refresh_cookie_name: str = "refresh_token"
    bcrypt_rounds: int = 12

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 5000

    # CORS: the SPA sends the refresh cookie, so origins must be explicit
    cors_origins: list[str] = [
        "http://localhost:8080",
        "http://127.0.0.1:8080",
    ]

    model_config = {"env_prefix": "PONDOBRO_"}

    @model_validator(mode="after")
    def validate_signing_secret(self):
        """A signing secret is required; the dev default only in development."""
        if not self.jwt_secret:
            raise ValueError("PONDOBRO_JWT_SECRET must not be empty.")
        if self.environment != "development" and self.jwt_secret == DEV_JWT_SECRET:
            raise ValueError(
                "PONDOBRO_JWT_SECRET must be set to a secure value in "
                "non-development environments. Generate one with: "
                'python -c "import secrets; print(secrets.token_urlsafe(32))"'
            )
        return self


# Singleton, import this everywhere
settings = Settings()
