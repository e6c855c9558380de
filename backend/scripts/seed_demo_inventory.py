"""
Seed a handful of demo inventory items for one user.

Run locally:
  python backend/scripts/seed_demo_inventory.py --email demo@example.com

It uses the same DATABASE_* env vars as the backend (dotenv supported by core.config).
Items go through the access layer, so the normal validation and owner policy apply.
"""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import asdict, dataclass
from typing import Optional

from sqlalchemy import select, func

from db.database import async_session_maker, User
from schemas.inventory import InventoryItemCreate
from services.inventory import Caller, create_item, list_items


@dataclass(frozen=True)
class SeedItem:
    name: str
    sku: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    quantity: int = 0
    unit_price: Optional[str] = None
    low_stock_threshold: int = 10


SEED_ITEMS: list[SeedItem] = [
    SeedItem(name="Blue T-Shirt", sku="TS-BLU-001", category="Apparel", quantity=42, unit_price="19.99"),
    SeedItem(name="Red Hat", sku="HAT-RED-002", category="Apparel", quantity=6, unit_price="12.50"),
    SeedItem(name="Canvas Tote", sku="BAG-CNV-003", category="Bags", quantity=15, unit_price="9.00", low_stock_threshold=20),
    SeedItem(name="Sticker Pack", sku="STK-004", category="Accessories", quantity=0, unit_price="3.25"),
    SeedItem(name="Gift Card", category="Vouchers", description="Printed, any amount", quantity=100),
]


async def main(email: str) -> None:
    async with async_session_maker() as db:
        res = await db.execute(select(User).where(func.lower(User.email) == email.strip().lower()))
        user = res.scalar_one_or_none()
        if not user:
            raise SystemExit(f"No user with email {email!r}; register first via /auth/register")

        caller = Caller(user_id=user.id)
        existing = {(it.sku or it.name).lower() for it in await list_items(db, caller)}

        created = 0
        for seed in SEED_ITEMS:
            key = (seed.sku or seed.name).lower()
            if key in existing:
                print(f"Skipping {seed.name} (already present)")
                continue
            await create_item(db, caller, InventoryItemCreate(**asdict(seed)))
            created += 1

        print(f"Seeded {created} inventory items for {email}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed demo inventory items")
    parser.add_argument("--email", required=True, help="Owner account email")
    args = parser.parse_args()
    asyncio.run(main(args.email))
