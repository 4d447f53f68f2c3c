"""
Liveness probe
"""
from datetime import datetime, timezone

from fastapi import APIRouter

router = APIRouter()

SERVICE_NAME = "stock-dashboard-backend"


@router.get("/health")
def health():
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": SERVICE_NAME,
    }
