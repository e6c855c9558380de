from typing import List, NoReturn, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import current_active_user_optional
from core.converters import item_to_schema
from core.errors import InventoryError, ItemNotFound, PolicyViolation, Unauthorized, ValidationError
from core.filters import SearchView
from db.database import get_async_session, User
from schemas.inventory import (
    InventoryItemCreate,
    InventoryItemRead,
    InventoryItemUpdate,
    InventorySummary,
    QuantityAdjust,
    QuantityUpdate,
)
from services import inventory as inventory_service
from services.inventory import Caller

router = APIRouter()


def get_caller(user: Optional[User] = Depends(current_active_user_optional)) -> Optional[Caller]:
    if user is None:
        return None
    return Caller(user_id=user.id)


def _raise_http(exc: InventoryError) -> NoReturn:
    if isinstance(exc, Unauthorized):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    if isinstance(exc, ValidationError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    if isinstance(exc, ItemNotFound):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    if isinstance(exc, PolicyViolation):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.message)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message)


@router.get("/items", response_model=List[InventoryItemRead])
async def list_inventory_items(
    q: Optional[str] = None,
    caller: Optional[Caller] = Depends(get_caller),
    db: AsyncSession = Depends(get_async_session),
):
    """
    List the caller's items, newest first.

    - q filters by name, SKU, category or description (case-insensitive).
    """
    try:
        items = await inventory_service.list_items(db, caller)
    except InventoryError as e:
        _raise_http(e)
    return [item_to_schema(it) for it in SearchView(items, q)]


@router.get("/summary", response_model=InventorySummary)
async def inventory_summary(
    caller: Optional[Caller] = Depends(get_caller),
    db: AsyncSession = Depends(get_async_session),
):
    try:
        return await inventory_service.summarize(db, caller)
    except InventoryError as e:
        _raise_http(e)


@router.get("/items/{item_id}", response_model=InventoryItemRead)
async def get_inventory_item(
    item_id: UUID,
    caller: Optional[Caller] = Depends(get_caller),
    db: AsyncSession = Depends(get_async_session),
):
    try:
        item = await inventory_service.get_item(db, caller, item_id)
    except InventoryError as e:
        _raise_http(e)
    return item_to_schema(item)


@router.post("/items", response_model=InventoryItemRead, status_code=status.HTTP_201_CREATED)
async def create_inventory_item(
    payload: InventoryItemCreate,
    caller: Optional[Caller] = Depends(get_caller),
    db: AsyncSession = Depends(get_async_session),
):
    try:
        item = await inventory_service.create_item(db, caller, payload)
    except InventoryError as e:
        _raise_http(e)
    return item_to_schema(item)


@router.patch("/items/{item_id}", response_model=InventoryItemRead)
async def update_inventory_item(
    item_id: UUID,
    payload: InventoryItemUpdate,
    caller: Optional[Caller] = Depends(get_caller),
    db: AsyncSession = Depends(get_async_session),
):
    try:
        item = await inventory_service.update_item(db, caller, item_id, payload)
    except InventoryError as e:
        _raise_http(e)
    return item_to_schema(item)


@router.put("/items/{item_id}/quantity", response_model=InventoryItemRead)
async def set_inventory_quantity(
    item_id: UUID,
    payload: QuantityUpdate,
    caller: Optional[Caller] = Depends(get_caller),
    db: AsyncSession = Depends(get_async_session),
):
    try:
        item = await inventory_service.update_quantity(db, caller, item_id, payload.quantity)
    except InventoryError as e:
        _raise_http(e)
    return item_to_schema(item)


@router.post("/items/{item_id}/adjust", response_model=InventoryItemRead)
async def adjust_inventory_quantity(
    item_id: UUID,
    payload: QuantityAdjust,
    caller: Optional[Caller] = Depends(get_caller),
    db: AsyncSession = Depends(get_async_session),
):
    """Add ``delta`` to the stock count; the result is clamped at 0."""
    try:
        item = await inventory_service.adjust_quantity(db, caller, item_id, payload.delta)
    except InventoryError as e:
        _raise_http(e)
    return item_to_schema(item)


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_inventory_item(
    item_id: UUID,
    caller: Optional[Caller] = Depends(get_caller),
    db: AsyncSession = Depends(get_async_session),
):
    try:
        await inventory_service.delete_item(db, caller, item_id)
    except InventoryError as e:
        _raise_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
