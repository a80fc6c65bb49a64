import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from finance_tracker.api.dependencies import get_aggregator, get_current_user_id
from finance_tracker.errors import StorageError
from finance_tracker.models import DashboardSummary
from finance_tracker.services.dashboard import DashboardAggregator

router = APIRouter()


@router.get("/api/dashboard")
async def get_dashboard(
    user_id: Annotated[int, Depends(get_current_user_id)],
    aggregator: Annotated[DashboardAggregator, Depends(get_aggregator)],
) -> DashboardSummary:
    try:
        return await asyncio.to_thread(aggregator.summarize, user_id)
    except StorageError as exc:
        raise HTTPException(status_code=500, detail="Failed to get dashboard statistics") from exc
