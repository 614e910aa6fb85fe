"""
Health check endpoint.
"""

import time
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends

from skillsync.api.dependencies import get_services
from skillsync.api.schemas import HealthResponse
from skillsync.core.services import PracticeServices

router = APIRouter(tags=["health"])

# Track startup time for uptime
_start_time: Optional[float] = None


def set_start_time(t: float):
    """Set application start time."""
    global _start_time
    _start_time = t


@router.get("/api/health", response_model=HealthResponse)
async def health_check(services: PracticeServices = Depends(get_services)):
    """
    Service health check.
    Returns status, number of loaded subjects, uptime and the progress backend in use.
    """
    uptime_seconds = 0.0
    if _start_time:
        uptime_seconds = round(time.time() - _start_time, 2)

    return HealthResponse(
        status="OK",
        timestamp=datetime.now(),
        subjects_processed=services.repository.subject_count(),
        uptime_seconds=uptime_seconds,
        progress_backend=services.progress_store.name,
    )
