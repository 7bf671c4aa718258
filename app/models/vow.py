from datetime import datetime, date
from sqlalchemy import CheckConstraint, Integer, String, Text, DateTime, Date, Enum, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column
import enum

from app.db.base import Base


class VowStatus(str, enum.Enum):
    active = "active"
    completed = "completed"
    paused = "paused"
    broken = "broken"


class Vow(Base):
    """A commitment of `duration_days` days. current_day <= duration_days."""

    __tablename__ = "vows"
    __table_args__ = (
        CheckConstraint("current_day <= duration_days", name="ck_vows_current_day_le_duration"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    identity: Mapped[str] = mapped_column(String(500), nullable=False)
    boundary: Mapped[str] = mapped_column(String(500), nullable=False)
    statement: Mapped[str] = mapped_column(Text, nullable=False)
    duration_days: Mapped[int] = mapped_column(Integer, nullable=False)
    current_day: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    days_kept: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    days_breached: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        Enum(VowStatus, name="vow_status_enum"),
        nullable=False,
        default=VowStatus.active,
    )
    last_completed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
