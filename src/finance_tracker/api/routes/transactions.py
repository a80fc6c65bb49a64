import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response

from finance_tracker.api.dependencies import get_current_user_id, get_store
from finance_tracker.api.schemas import TransactionCreate, TransactionUpdate
from finance_tracker.errors import StorageError
from finance_tracker.models import NewTransaction, Transaction
from finance_tracker.storage.base import CrudStore

router = APIRouter()


async def _owned_transaction(store: CrudStore, transaction_id: int, user_id: int) -> Transaction:
    transaction = await asyncio.to_thread(store.get_transaction, transaction_id)
    if transaction is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    if transaction.user_id != user_id:
        raise HTTPException(status_code=403, detail="Forbidden")
    return transaction


async def _check_category(store: CrudStore, category_id: int | None, user_id: int) -> None:
    if category_id is None:
        return
    category = await asyncio.to_thread(store.get_category, category_id)
    if category is None or category.user_id != user_id:
        raise HTTPException(status_code=400, detail="Unknown category")


@router.get("/api/transactions")
async def list_transactions(
    user_id: Annotated[int, Depends(get_current_user_id)],
    store: Annotated[CrudStore, Depends(get_store)],
) -> list[Transaction]:
    try:
        return await asyncio.to_thread(store.find_transactions_by_user, user_id)
    except StorageError as exc:
        raise HTTPException(status_code=500, detail="Failed to get transactions") from exc


@router.post("/api/transactions", status_code=201)
async def create_transaction(
    req: TransactionCreate,
    user_id: Annotated[int, Depends(get_current_user_id)],
    store: Annotated[CrudStore, Depends(get_store)],
) -> Transaction:
    try:
        await _check_category(store, req.category_id, user_id)
        return await asyncio.to_thread(
            store.create_transaction,
            NewTransaction(user_id=user_id, **req.model_dump()),
        )
    except StorageError as exc:
        raise HTTPException(status_code=500, detail="Failed to create transaction") from exc


@router.put("/api/transactions/{transaction_id}")
async def update_transaction(
    transaction_id: int,
    req: TransactionUpdate,
    user_id: Annotated[int, Depends(get_current_user_id)],
    store: Annotated[CrudStore, Depends(get_store)],
) -> Transaction:
    changes = req.model_dump(exclude_unset=True)
    # Explicit null is allowed for notes and category_id only
    changes = {
        key: value
        for key, value in changes.items()
        if value is not None or key in {"notes", "category_id"}
    }
    try:
        await _owned_transaction(store, transaction_id, user_id)
        await _check_category(store, changes.get("category_id"), user_id)
        updated = await asyncio.to_thread(store.update_transaction, transaction_id, changes)
    except StorageError as exc:
        raise HTTPException(status_code=500, detail="Failed to update transaction") from exc
    if updated is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return updated


@router.delete("/api/transactions/{transaction_id}", status_code=204)
async def delete_transaction(
    transaction_id: int,
    user_id: Annotated[int, Depends(get_current_user_id)],
    store: Annotated[CrudStore, Depends(get_store)],
) -> Response:
    try:
        await _owned_transaction(store, transaction_id, user_id)
        await asyncio.to_thread(store.delete_transaction, transaction_id)
    except StorageError as exc:
        raise HTTPException(status_code=500, detail="Failed to delete transaction") from exc
    return Response(status_code=204)
