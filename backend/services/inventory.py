"""
Inventory access layer.

Every operation takes the caller explicitly (never ambient session state) and
goes through InventoryStore, which scopes all statements to the caller's rows.
After any successful mutation, clients must treat their item list as stale.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import ItemNotFound, Unauthorized, ValidationError
from core.filters import is_low_stock
from db.database import InventoryItem as InventoryItemModel
from db.inventory.store import InventoryStore
from schemas.inventory import InventoryItemCreate, InventoryItemUpdate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Caller:
    """The authenticated identity an operation runs as."""
    user_id: UUID


def _store(db: AsyncSession, caller: Optional[Caller]) -> InventoryStore:
    if caller is None or caller.user_id is None:
        raise Unauthorized()
    return InventoryStore(db, caller.user_id)


async def _reload(store: InventoryStore, item_id: UUID) -> InventoryItemModel:
    item = await store.get(item_id)
    if item is None:
        raise ItemNotFound()
    return item


async def list_items(db: AsyncSession, caller: Optional[Caller]) -> List[InventoryItemModel]:
    """All items owned by the caller, newest first."""
    return await _store(db, caller).select_all()


async def get_item(db: AsyncSession, caller: Optional[Caller], item_id: UUID) -> InventoryItemModel:
    return await _reload(_store(db, caller), item_id)


async def create_item(
    db: AsyncSession,
    caller: Optional[Caller],
    payload: InventoryItemCreate,
) -> InventoryItemModel:
    store = _store(db, caller)

    name = (payload.name or "").strip()
    if not name:
        raise ValidationError("Name is required")

    item = await store.insert(
        {
            "owner_id": caller.user_id,
            "name": name,
            "description": payload.description,
            "sku": payload.sku,
            "category": payload.category,
            "quantity": payload.quantity,
            "unit_price": payload.unit_price,
            "low_stock_threshold": payload.low_stock_threshold,
        }
    )
    logger.info("Created inventory item %s for owner %s", item.id, caller.user_id)
    return item


async def update_item(
    db: AsyncSession,
    caller: Optional[Caller],
    item_id: UUID,
    payload: InventoryItemUpdate,
) -> InventoryItemModel:
    """Direct edit: only the fields present in the payload are written."""
    store = _store(db, caller)
    data = payload.model_dump(exclude_unset=True)
    if "name" in data and not data["name"]:
        raise ValidationError("Name is required")
    if "quantity" in data and data["quantity"] is None:
        raise ValidationError("Quantity cannot be empty")

    if not data:
        return await _reload(store, item_id)

    if not await store.update(item_id, data):
        raise ItemNotFound()
    logger.info("Updated inventory item %s (%s)", item_id, ", ".join(sorted(data)))
    return await _reload(store, item_id)


async def update_quantity(
    db: AsyncSession,
    caller: Optional[Caller],
    item_id: UUID,
    quantity: int,
) -> InventoryItemModel:
    """Write an absolute quantity. Callers clamp at the edit site."""
    store = _store(db, caller)
    if quantity is None or quantity < 0:
        raise ValidationError("Quantity cannot be negative")

    if not await store.update(item_id, {"quantity": int(quantity)}):
        raise ItemNotFound()
    return await _reload(store, item_id)


async def adjust_quantity(
    db: AsyncSession,
    caller: Optional[Caller],
    item_id: UUID,
    delta: int,
) -> InventoryItemModel:
    """The +/- control: current quantity plus ``delta``, never below zero.

    The addition happens in the database, so concurrent adjustments all land.
    """
    store = _store(db, caller)
    if not await store.adjust_quantity(item_id, delta):
        raise ItemNotFound()
    return await _reload(store, item_id)


async def delete_item(db: AsyncSession, caller: Optional[Caller], item_id: UUID) -> None:
    store = _store(db, caller)
    if not await store.delete(item_id):
        raise ItemNotFound()
    logger.info("Deleted inventory item %s for owner %s", item_id, caller.user_id)


async def summarize(db: AsyncSession, caller: Optional[Caller]) -> dict:
    """Dashboard overview of the caller's stock."""
    items = await list_items(db, caller)

    total_value = Decimal("0")
    for it in items:
        if it.unit_price is not None:
            total_value += Decimal(it.unit_price) * int(it.quantity or 0)

    return {
        "item_count": len(items),
        "total_units": sum(int(it.quantity or 0) for it in items),
        "total_value": float(total_value.quantize(Decimal("0.01"))),
        "low_stock_count": sum(1 for it in items if is_low_stock(it)),
        "categories": sorted({it.category for it in items if it.category}, key=str.lower),
    }
