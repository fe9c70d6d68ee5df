"""Service health check."""

import time
from typing import Dict, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from app.config import settings

router = APIRouter()

SERVICE_VERSION = "1.0.0"
_start_time = time.time()


class HealthResponse(BaseModel):
    status: str
    components: Dict[str, str]
    version: str
    uptime_seconds: Optional[float] = None


@router.get("/health", response_model=HealthResponse)
async def health():
    components = {
        "parser": "active",
        "statistics": "active",
        "correlation": "active",
        "charts": "active",
        "insights": "active",
        "validator": "active",
        "predictions": (
            "active" if settings.PREDICTIONS_URL and settings.PREDICTIONS_API_KEY
            else "disabled (not configured)"
        ),
    }
    return HealthResponse(
        status="healthy",
        components=components,
        version=SERVICE_VERSION,
        uptime_seconds=round(time.time() - _start_time, 1),
    )
