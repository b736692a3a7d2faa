"""Health check endpoint.

Learn: Liveness only. Answers as long as the process is serving
requests. It does not touch the database.
"""

from fastapi import APIRouter

router = APIRouter()


@router.get("/health")
async def health_check():
    return {"ok": True}
