import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import case, delete, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import PolicyViolation, StoreError, Unauthorized

from ..database import InventoryItem
from .item import utcnow

logger = logging.getLogger(__name__)

IMMUTABLE_COLUMNS = frozenset({"id", "owner_id", "created_at", "updated_at"})


class InventoryStore:
    """
    Owner-scoped access to ``inventory_items``.

    Every statement carries ``owner_id = <caller>``, so a caller only ever sees,
    changes or removes their own rows no matter which client issued the call.
    Update and delete report rows affected; zero means "not yours or gone".
    """

    def __init__(self, session: AsyncSession, owner_id: Optional[UUID]):
        if owner_id is None:
            raise Unauthorized()
        self.session = session
        self.owner_id = owner_id

    def _owned(self):
        return InventoryItem.owner_id == self.owner_id

    async def _bind_identity(self) -> None:
        # PostgreSQL policies read the caller from a transaction-local setting
        if self.session.get_bind().dialect.name != "postgresql":
            return
        await self.session.execute(
            text("SELECT set_config('app.current_user_id', :uid, true)"),
            {"uid": str(self.owner_id)},
        )

    async def _fail(self, action: str, exc: SQLAlchemyError) -> StoreError:
        await self.session.rollback()
        detail = str(getattr(exc, "orig", None) or exc).strip().splitlines()[0]
        logger.warning("inventory %s failed for owner %s: %s", action, self.owner_id, detail)
        return StoreError(f"Could not {action} item: {detail}")

    async def select_all(self) -> List[InventoryItem]:
        try:
            await self._bind_identity()
            res = await self.session.execute(
                select(InventoryItem)
                .where(self._owned())
                .order_by(InventoryItem.created_at.desc())
                .execution_options(populate_existing=True)
            )
        except SQLAlchemyError as e:
            raise await self._fail("list", e) from e
        return list(res.scalars().all())

    async def get(self, item_id: UUID) -> Optional[InventoryItem]:
        try:
            await self._bind_identity()
            res = await self.session.execute(
                select(InventoryItem)
                .where(InventoryItem.id == item_id, self._owned())
                .execution_options(populate_existing=True)
            )
        except SQLAlchemyError as e:
            raise await self._fail("load", e) from e
        return res.scalar_one_or_none()

    async def insert(self, values: Dict[str, Any]) -> InventoryItem:
        if values.get("owner_id") != self.owner_id:
            raise PolicyViolation("New row violates row-level security policy for inventory_items")
        unknown = {"id", "created_at", "updated_at"} & values.keys()
        if unknown:
            raise PolicyViolation(f"Cannot set {', '.join(sorted(unknown))} on insert")

        now = utcnow()
        item = InventoryItem(**values, created_at=now, updated_at=now)
        try:
            await self._bind_identity()
            self.session.add(item)
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._fail("create", e) from e
        return item

    async def update(self, item_id: UUID, values: Dict[str, Any]) -> int:
        """Apply ``values`` to one owned row and return rows affected (0 or 1)."""
        illegal = IMMUTABLE_COLUMNS & values.keys()
        if illegal:
            raise PolicyViolation(f"Cannot change {', '.join(sorted(illegal))}")
        if not values:
            return 0

        stmt = (
            update(InventoryItem)
            .where(InventoryItem.id == item_id, self._owned())
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            await self._bind_identity()
            res = await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._fail("update", e) from e
        return int(res.rowcount or 0)

    async def adjust_quantity(self, item_id: UUID, delta: int) -> int:
        """Add ``delta`` to one owned row's quantity in a single statement, clamped at 0."""
        adjusted = InventoryItem.quantity + int(delta)
        stmt = (
            update(InventoryItem)
            .where(InventoryItem.id == item_id, self._owned())
            .values(quantity=case((adjusted < 0, 0), else_=adjusted))
            .execution_options(synchronize_session=False)
        )
        try:
            await self._bind_identity()
            res = await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._fail("update", e) from e
        return int(res.rowcount or 0)

    async def delete(self, item_id: UUID) -> int:
        stmt = (
            delete(InventoryItem)
            .where(InventoryItem.id == item_id, self._owned())
            .execution_options(synchronize_session=False)
        )
        try:
            await self._bind_identity()
            res = await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._fail("delete", e) from e
        return int(res.rowcount or 0)
