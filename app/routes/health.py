"""
Health check endpoints.
Used for monitoring, deployment readiness checks, and basic connectivity tests.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException

from app.core.settings import settings
from app.services.similarity import get_similarity_ranker
from app.services.store import get_issue_store


router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """
    Basic health check endpoint.
    Returns 200 if service is running, with the active backends.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "store": "memory" if settings.USE_MOCK_DB else "firestore",
        "similarity_ranker": get_similarity_ranker().PROVIDER_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/db")
async def database_health():
    """
    Store connectivity check (Firestore, or the in-memory store in mock mode).
    """
    try:
        probe = get_issue_store().check_connection()
    except Exception as e:
        raise HTTPException(
            status_code=503,
            detail=f"Database connection failed: {e}",
        )

    return {
        "status": "healthy",
        **probe,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
