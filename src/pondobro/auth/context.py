"""Explicit per-request auth context.

Learn: Rather than reading cookies or a "current user" from ambient
request state deep inside the services, the HTTP boundary collects both
credentials once into a RequestContext and passes it down.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RequestContext:
    """Raw credentials presented by one request.

    refresh_token: the refresh cookie value, if the browser sent one.
    claims: bearer token claims, already verified (signature, expiry,
    issuer, audience) by the boundary; None when absent or invalid.
    """

    refresh_token: Optional[str] = None
    claims: Optional[dict] = None

    @property
    def is_anonymous(self) -> bool:
        return not self.refresh_token and self.claims is None
