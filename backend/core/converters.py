from typing import Dict

from db.database import InventoryItem as InventoryItemModel


def item_to_schema(item: InventoryItemModel) -> Dict:
    """Convert InventoryItem model to response dict, with the low stock flag"""
    return {
        "id": item.id,
        "owner_id": item.owner_id,
        "name": item.name,
        "description": item.description,
        "sku": item.sku,
        "category": item.category,
        "quantity": int(item.quantity or 0),
        "unit_price": float(item.unit_price) if item.unit_price is not None else None,
        "low_stock_threshold": item.low_stock_threshold,
        "low_stock": item.is_low_stock,
        "created_at": item.created_at,
        "updated_at": item.updated_at,
    }
