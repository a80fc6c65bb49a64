import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response

from finance_tracker.api.dependencies import get_current_user_id, get_store
from finance_tracker.api.schemas import CategoryCreate, CategoryUpdate
from finance_tracker.errors import StorageError
from finance_tracker.logger import get_logger
from finance_tracker.models import Category
from finance_tracker.storage.base import CrudStore

logger = get_logger(__name__)

router = APIRouter()


async def _owned_category(store: CrudStore, category_id: int, user_id: int) -> Category:
    category = await asyncio.to_thread(store.get_category, category_id)
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    if category.user_id != user_id:
        raise HTTPException(status_code=403, detail="Forbidden")
    return category


@router.get("/api/categories")
async def list_categories(
    user_id: Annotated[int, Depends(get_current_user_id)],
    store: Annotated[CrudStore, Depends(get_store)],
) -> list[Category]:
    try:
        return await asyncio.to_thread(store.find_categories_by_user, user_id)
    except StorageError as exc:
        raise HTTPException(status_code=500, detail="Failed to get categories") from exc


@router.post("/api/categories", status_code=201)
async def create_category(
    req: CategoryCreate,
    user_id: Annotated[int, Depends(get_current_user_id)],
    store: Annotated[CrudStore, Depends(get_store)],
) -> Category:
    try:
        return await asyncio.to_thread(store.create_category, user_id, req.name, req.kind, req.icon)
    except StorageError as exc:
        raise HTTPException(status_code=500, detail="Failed to create category") from exc


@router.put("/api/categories/{category_id}")
async def update_category(
    category_id: int,
    req: CategoryUpdate,
    user_id: Annotated[int, Depends(get_current_user_id)],
    store: Annotated[CrudStore, Depends(get_store)],
) -> Category:
    try:
        await _owned_category(store, category_id, user_id)
        updated = await asyncio.to_thread(
            store.update_category, category_id, req.model_dump(exclude_unset=True, exclude_none=True)
        )
    except StorageError as exc:
        raise HTTPException(status_code=500, detail="Failed to update category") from exc
    if updated is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return updated


@router.delete("/api/categories/{category_id}", status_code=204)
async def delete_category(
    category_id: int,
    user_id: Annotated[int, Depends(get_current_user_id)],
    store: Annotated[CrudStore, Depends(get_store)],
) -> Response:
    try:
        await _owned_category(store, category_id, user_id)
        await asyncio.to_thread(store.delete_category, category_id)
    except StorageError as exc:
        raise HTTPException(status_code=500, detail="Failed to delete category") from exc
    logger.info("[CATEGORIES] User %s deleted category %s.", user_id, category_id)
    return Response(status_code=204)
