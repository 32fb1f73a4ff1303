"""
Health check endpoint.
"""

from datetime import datetime

from fastapi import APIRouter

from collector.models.schemas import HealthResponse
from collector.utils.config import get_settings
from domains.tracking.controller import CollectorState
from domains.tracking.loader import get_collector

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Verifies:
    - API is running
    - Collector is loaded and active
    """
    settings = get_settings()
    collector = get_collector()
    state = collector.state if collector else None

    return HealthResponse(
        status="healthy" if state == CollectorState.ACTIVE else "degraded",
        timestamp=datetime.now(),
        collector_state=state.value if state else None,
        version=settings.api_version
    )
