"""
Enum definitions for models
"""
from enum import Enum


class SyncType(str, Enum):
    """Which sync path produced a log entry"""
    INITIAL = "initial"  # historical bootstrap
    MANUAL = "manual"    # batch quote refresh


class SyncStatus(str, Enum):
    """Outcome of a sync run"""
    SUCCESS = "success"
    PARTIAL = "partial"  # some symbols failed
    FAILED = "failed"


__all__ = [
    "SyncType",
    "SyncStatus",
]
