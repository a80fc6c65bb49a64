from typing import Annotated

from fastapi import Header, HTTPException, Request

from finance_tracker.services.dashboard import DashboardAggregator
from finance_tracker.services.uploads import UploadPipeline
from finance_tracker.storage.base import CrudStore


def get_store(request: Request) -> CrudStore:
    store = getattr(request.app.state, "store", None)
    if not store:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return store


def get_aggregator(request: Request) -> DashboardAggregator:
    aggregator = getattr(request.app.state, "aggregator", None)
    if not aggregator:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return aggregator


def get_upload_pipeline(request: Request) -> UploadPipeline:
    pipeline = getattr(request.app.state, "upload_pipeline", None)
    if not pipeline:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return pipeline


def get_current_user_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> int:
    """Identity of the caller, as set by the authenticating proxy in ``X-User-Id``."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    try:
        user_id = int(x_user_id)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail="Unauthorized") from exc
    if user_id <= 0:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user_id
