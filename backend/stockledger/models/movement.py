import enum
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from stockledger.db.base import Base
from stockledger.models.item import utcnow


class MovementKind(str, enum.Enum):
    RECEIVE = "RECEIVE"
    ISSUE = "ISSUE"


class Movement(Base):
    """Append-only ledger row; one per committed receipt or issue."""

    __tablename__ = "movements"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_movements_quantity_positive"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    item_id: Mapped[int] = mapped_column(ForeignKey("items.id"), nullable=False, index=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    kind: Mapped[MovementKind] = mapped_column(
        Enum(MovementKind, native_enum=False, length=16, validate_strings=True), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
