"""Database migration utilities"""
import logging
from typing import Iterable, List

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

# The caller identity is bound per transaction by InventoryStore
CALLER_EXPR = "NULLIF(current_setting('app.current_user_id', true), '')::uuid"

ROW_POLICIES = {
    "inventory_items_owner_select": ("SELECT", f"USING (owner_id = {CALLER_EXPR})"),
    "inventory_items_owner_insert": ("INSERT", f"WITH CHECK (owner_id = {CALLER_EXPR})"),
    "inventory_items_owner_update": ("UPDATE", f"USING (owner_id = {CALLER_EXPR})"),
    "inventory_items_owner_delete": ("DELETE", f"USING (owner_id = {CALLER_EXPR})"),
}

# FORCE makes the policies apply to the table owner too, which is the role the app connects as
TABLE_STATEMENTS = (
    "ALTER TABLE inventory_items ENABLE ROW LEVEL SECURITY",
    "ALTER TABLE inventory_items FORCE ROW LEVEL SECURITY",
)


def row_security_statements(existing_policies: Iterable[str] = ()) -> List[str]:
    """DDL to lock inventory_items down, skipping policies that already exist"""
    existing = set(existing_policies)
    statements = list(TABLE_STATEMENTS)
    for policy_name, (command, clause) in ROW_POLICIES.items():
        if policy_name in existing:
            continue
        statements.append(f"CREATE POLICY {policy_name} ON inventory_items FOR {command} {clause}")
    return statements


async def enable_inventory_row_security(engine: AsyncEngine):
    """Enable and force RLS on inventory_items and create the four owner policies (PostgreSQL only)"""
    if engine.dialect.name != "postgresql":
        logger.info("Skipping row-level security setup on %s", engine.dialect.name)
        return

    async with engine.begin() as conn:
        result = await conn.execute(
            text("""
                SELECT policyname
                FROM pg_policies
                WHERE tablename = 'inventory_items'
            """)
        )
        existing_policies = {row[0] for row in result.fetchall()}
        for policy_name in sorted(existing_policies & ROW_POLICIES.keys()):
            logger.info("Policy %s already exists on inventory_items", policy_name)

        for statement in row_security_statements(existing_policies):
            await conn.execute(text(statement))
            logger.info("Applied: %s", statement)
