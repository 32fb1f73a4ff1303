"""
Collector status and control endpoints.

Includes:
- Controller state, readiness and subscription overview
- Manual resync trigger
"""

from fastapi import APIRouter, HTTPException
from loguru import logger

from collector.models.schemas import CollectorStatus, OperationStatus
from domains.tracking.controller import CollectorController, CollectorState
from domains.tracking.loader import get_collector

router = APIRouter()


def _require_collector() -> CollectorController:
    collector = get_collector()
    if collector is None:
        raise HTTPException(status_code=503, detail="Collector is not loaded")
    return collector


@router.get("/status", response_model=CollectorStatus)
async def collector_status():
    """Report controller state, satisfied conditions and sink counters."""
    return _require_collector().status()


@router.post("/resync", response_model=OperationStatus)
def trigger_resync():
    """
    Run one resync tick immediately.

    Records already written are still suppressed by the dedup sink.
    """
    collector = _require_collector()
    if collector.state != CollectorState.ACTIVE:
        raise HTTPException(
            status_code=409,
            detail=f"Collector is {collector.state.value}, not active"
        )

    logger.info("Manual resync triggered")
    written = collector.resync_now()

    return OperationStatus(
        status="completed",
        message=f"Resync wrote {written} new records",
        details={"written": written}
    )
