"""API routes for current values and history"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from unified_airquality.context import AppContext
from unified_airquality.history import RollingHistory

logger = logging.getLogger(__name__)
router = APIRouter()


class ValuesResponse(BaseModel):
    cycle: Optional[int] = None
    values: dict[str, Optional[float]]
    air_quality: str
    air_quality_level: int
    faults: dict[str, bool]
    failed_sources: list[str] = []


class HistoryEntryResponse(BaseModel):
    time: int
    temp: Optional[float] = None
    humidity: Optional[float] = None
    pressure: Optional[float] = None


def get_context(request: Request) -> AppContext:
    """Get AppContext from the application state."""
    return request.app.state.context


@router.get("/health")
async def health(context: AppContext = Depends(get_context)) -> dict[str, Any]:
    """Liveness plus the fault state of the last cycle"""
    cycle = context.current_cycle
    return {
        "status": "healthy",
        "started": context.is_started,
        "cycles": context.orchestrator.cycle_count,
        "error": cycle.error if cycle else None,
    }


@router.get("/api/values", response_model=ValuesResponse)
async def current_values(context: AppContext = Depends(get_context)) -> dict[str, Any]:
    """Derived values of the latest completed cycle"""
    cycle = context.current_cycle
    data = context.get_current_values().to_dict()
    data["cycle"] = cycle.index if cycle else None
    data["failed_sources"] = list(cycle.failed_sources) if cycle else []
    return data


@router.get("/api/history", response_model=list[HistoryEntryResponse])
async def history(
    limit: int = Query(100, ge=1, le=10000),
    context: AppContext = Depends(get_context),
) -> list[dict[str, Any]]:
    """Most recent history entries, oldest first"""
    store = context.history
    if not isinstance(store, RollingHistory):
        logger.debug("History store is not readable, returning no entries")
        return []
    return [entry.to_dict() for entry in store.entries(limit)]
