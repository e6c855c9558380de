"""
Delete inventory items, for one user (--email) or for everyone.

inventory_items has forced row-level security on PostgreSQL, so the script
deletes owner by owner with app.current_user_id bound to each one, the same
way the API does. No role with BYPASSRLS is needed.

Run inside docker (recommended):
  docker exec -i inventory-api sh -lc "cd /app && PYTHONPATH=/app python scripts/reset_inventory.py --email demo@example.com"
"""

from __future__ import annotations

import argparse
import asyncio
from typing import Optional

from sqlalchemy import delete, select, func, text

from db.database import async_session_maker, InventoryItem, User


async def main(email: Optional[str]) -> None:
    async with async_session_maker() as db:
        owners = select(User.id)
        if email:
            owners = owners.where(func.lower(User.email) == email.strip().lower())
        owner_ids = list((await db.execute(owners)).scalars().all())
        if email and not owner_ids:
            raise SystemExit(f"No user with email {email!r}")

        bind_owner = db.get_bind().dialect.name == "postgresql"
        items_n = 0
        for owner_id in owner_ids:
            if bind_owner:
                await db.execute(
                    text("SELECT set_config('app.current_user_id', :uid, true)"),
                    {"uid": str(owner_id)},
                )
            res_items = await db.execute(delete(InventoryItem).where(InventoryItem.owner_id == owner_id))
            await db.commit()
            items_n += int(getattr(res_items, "rowcount", 0) or 0)

        print(f"Deleted inventory_items: {items_n}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Delete inventory items")
    parser.add_argument("--email", default=None, help="Only this owner's items (default: all)")
    args = parser.parse_args()
    asyncio.run(main(args.email))
