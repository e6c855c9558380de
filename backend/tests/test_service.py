import asyncio
from decimal import Decimal
import uuid

import pytest
from sqlalchemy import func, select

from core.errors import ItemNotFound, StoreError, Unauthorized, ValidationError
from db.database import InventoryItem, async_session_maker
from schemas.inventory import InventoryItemCreate, InventoryItemUpdate
from services import inventory as svc


async def _count_rows(db) -> int:
    return (await db.execute(select(func.count()).select_from(InventoryItem))).scalar_one()


async def test_every_operation_needs_a_caller(db):
    with pytest.raises(Unauthorized):
        await svc.list_items(db, None)
    with pytest.raises(Unauthorized):
        await svc.create_item(db, None, InventoryItemCreate(name="Hat"))
    with pytest.raises(Unauthorized):
        await svc.update_quantity(db, None, uuid.uuid4(), 1)
    with pytest.raises(Unauthorized):
        await svc.delete_item(db, None, uuid.uuid4())


@pytest.mark.parametrize("name", ["", "   ", None])
async def test_create_without_name_writes_nothing(db, alice, name):
    with pytest.raises(ValidationError) as exc:
        await svc.create_item(db, alice, InventoryItemCreate(name=name))
    assert exc.value.message == "Name is required"
    assert await _count_rows(db) == 0


async def test_create_round_trips_rounded_price(db, alice):
    created = await svc.create_item(
        db, alice, InventoryItemCreate(name="Blue Shirt", quantity=5, unit_price="19.999")
    )
    item = await svc.get_item(db, alice, created.id)

    assert item.owner_id == alice.user_id
    assert item.quantity == 5
    assert item.unit_price == Decimal("20.00")
    assert item.description is None


async def test_list_returns_only_callers_items_newest_first(db, alice, bob):
    older = await svc.create_item(db, alice, InventoryItemCreate(name="Older"))
    newer = await svc.create_item(db, alice, InventoryItemCreate(name="Newer"))
    await svc.create_item(db, bob, InventoryItemCreate(name="Bob's"))

    assert [it.id for it in await svc.list_items(db, alice)] == [newer.id, older.id]
    assert [it.name for it in await svc.list_items(db, bob)] == ["Bob's"]


async def test_update_quantity_twice_is_idempotent(db, alice):
    created = await svc.create_item(
        db, alice, InventoryItemCreate(name="Hat", sku="H-1", quantity=3, unit_price="4.50")
    )
    first = await svc.update_quantity(db, alice, created.id, 8)
    # the second call returns the same identity-mapped object
    created_at, first_updated_at = first.created_at, first.updated_at
    await asyncio.sleep(0.01)
    second = await svc.update_quantity(db, alice, created.id, 8)

    assert second.quantity == 8
    assert second.updated_at > first_updated_at
    assert second.created_at == created_at
    assert second.name == "Hat"
    assert second.sku == "H-1"
    assert second.unit_price == Decimal("4.50")


async def test_update_quantity_rejects_negative_values(db, alice):
    created = await svc.create_item(db, alice, InventoryItemCreate(name="Hat"))
    with pytest.raises(ValidationError):
        await svc.update_quantity(db, alice, created.id, -1)


async def test_decrement_at_zero_stays_at_zero(db, alice):
    created = await svc.create_item(db, alice, InventoryItemCreate(name="Hat", quantity=0))
    item = await svc.adjust_quantity(db, alice, created.id, -1)
    assert item.quantity == 0

    item = await svc.adjust_quantity(db, alice, created.id, 1)
    assert item.quantity == 1


async def test_adjust_adds_to_the_stored_quantity(db, alice):
    created = await svc.create_item(db, alice, InventoryItemCreate(name="Hat", quantity=2))
    # a second session writes behind the first one's back
    async with async_session_maker() as other:
        await svc.update_quantity(other, alice, created.id, 10)

    item = await svc.adjust_quantity(db, alice, created.id, -3)
    assert item.quantity == 7


async def test_concurrent_adjustments_all_apply(db, alice):
    created = await svc.create_item(db, alice, InventoryItemCreate(name="Hat", quantity=0))

    async def bump():
        async with async_session_maker() as session:
            await svc.adjust_quantity(session, alice, created.id, 1)

    await asyncio.gather(*(bump() for _ in range(5)))

    item = await svc.get_item(db, alice, created.id)
    assert item.quantity == 5


async def test_adjust_other_owners_item_is_not_found(db, alice, bob):
    created = await svc.create_item(db, alice, InventoryItemCreate(name="Hat", quantity=2))
    with pytest.raises(ItemNotFound):
        await svc.adjust_quantity(db, bob, created.id, 1)
    assert (await svc.get_item(db, alice, created.id)).quantity == 2


async def test_other_owner_cannot_touch_item(db, alice, bob):
    created = await svc.create_item(db, alice, InventoryItemCreate(name="Hat", quantity=2))

    assert await svc.list_items(db, bob) == []
    with pytest.raises(ItemNotFound):
        await svc.update_quantity(db, bob, created.id, 50)
    with pytest.raises(ItemNotFound):
        await svc.delete_item(db, bob, created.id)
    with pytest.raises(ItemNotFound):
        await svc.get_item(db, bob, created.id)

    item = await svc.get_item(db, alice, created.id)
    assert item.quantity == 2


async def test_not_found_is_a_store_error(db, alice):
    with pytest.raises(StoreError):
        await svc.delete_item(db, alice, uuid.uuid4())


async def test_update_item_applies_only_sent_fields(db, alice):
    created = await svc.create_item(
        db, alice, InventoryItemCreate(name="Hat", sku="H-1", category="Headwear", unit_price="4")
    )
    item = await svc.update_item(
        db, alice, created.id, InventoryItemUpdate(name="Wool Hat", category="", low_stock_threshold=None)
    )

    assert item.name == "Wool Hat"
    assert item.sku == "H-1"
    assert item.category is None
    assert item.low_stock_threshold is None
    assert item.unit_price == Decimal("4.00")


@pytest.mark.parametrize("name", ["", "   ", None])
async def test_update_item_rejects_blank_name(db, alice, name):
    created = await svc.create_item(db, alice, InventoryItemCreate(name="Hat"))
    with pytest.raises(ValidationError) as exc:
        await svc.update_item(db, alice, created.id, InventoryItemUpdate(name=name))
    assert exc.value.message == "Name is required"

    item = await svc.get_item(db, alice, created.id)
    assert item.name == "Hat"


async def test_update_item_with_empty_payload_returns_item(db, alice):
    created = await svc.create_item(db, alice, InventoryItemCreate(name="Hat"))
    item = await svc.update_item(db, alice, created.id, InventoryItemUpdate())
    assert item.name == "Hat"


async def test_delete_item(db, alice):
    created = await svc.create_item(db, alice, InventoryItemCreate(name="Hat"))
    await svc.delete_item(db, alice, created.id)
    assert await svc.list_items(db, alice) == []


async def test_summary(db, alice, bob):
    await svc.create_item(db, alice, InventoryItemCreate(name="Shirt", category="Apparel", quantity=4, unit_price="2.50"))
    await svc.create_item(db, alice, InventoryItemCreate(name="Tote", category="Bags", quantity=20, unit_price="1"))
    await svc.create_item(db, alice, InventoryItemCreate(name="Card", quantity=3))
    await svc.create_item(db, bob, InventoryItemCreate(name="Bob's", quantity=1000, unit_price="100"))

    summary = await svc.summarize(db, alice)

    assert summary["item_count"] == 3
    assert summary["total_units"] == 27
    assert summary["total_value"] == 30.0
    assert summary["low_stock_count"] == 2
    assert summary["categories"] == ["Apparel", "Bags"]
