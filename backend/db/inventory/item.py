import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from core.filters import is_low_stock

from ..database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    sku = Column(Text, nullable=True, index=True)
    category = Column(Text, nullable=True, index=True)

    quantity = Column(Integer, nullable=False, default=0, server_default="0")
    unit_price = Column(Numeric(10, 2), nullable=True)
    low_stock_threshold = Column(Integer, nullable=True, default=10, server_default="10")

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    # Refreshed by every UPDATE statement, callers never set it
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
    )

    owner = relationship("User", back_populates="inventory_items")

    @property
    def is_low_stock(self) -> bool:
        return is_low_stock(self)

    def __repr__(self) -> str:
        return f"<InventoryItem id={self.id} name={self.name!r} quantity={self.quantity}>"
