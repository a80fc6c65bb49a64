import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from finance_tracker.api.dependencies import get_store
from finance_tracker.api.schemas import UserCreate
from finance_tracker.errors import StorageError
from finance_tracker.models import User
from finance_tracker.storage.base import CrudStore

router = APIRouter()


@router.post("/api/users", status_code=201)
async def register_user(
    req: UserCreate,
    store: Annotated[CrudStore, Depends(get_store)],
) -> User:
    """Create the ledger owner record for a user the auth layer has accepted."""
    try:
        return await asyncio.to_thread(store.create_user, req.username)
    except StorageError as exc:
        raise HTTPException(status_code=409, detail="Could not create user") from exc
