"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Health and auth are open. Transactions and dashboard take the
resolved user id as a handler argument (Depends(get_current_user_id)),
since every query they run is scoped by it.
"""

from fastapi import APIRouter

from pondobro.api.auth import router as auth_router
from pondobro.api.dashboard import router as dashboard_router
from pondobro.api.health import router as health_router
from pondobro.api.transactions import router as transactions_router

api_router = APIRouter(prefix="/api")

# Open routes, no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Ledger routes: cookie session or bearer token
api_router.include_router(transactions_router, tags=["transactions"])
api_router.include_router(dashboard_router, tags=["dashboard"])
