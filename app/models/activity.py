"""
Activity — one dated user action.

Append-only. The streak calculator reads these as a list of days; the
alignment scorers read them as counts.

category values:
  "reflection"      — a daily reflection
  "vow_completion"  — a vow day marked complete (vow_id set, unique per vow/day)
  "trigger_log"     — an urge / trigger event (emotions, intensity, location)
  "streak_recovery" — a missed day bought back with XP

emotions: JSON-encoded list of strings stored as Text.
"""
from datetime import datetime, date
from sqlalchemy import Integer, String, Text, DateTime, Date, Enum, ForeignKey, Index, func, text
from sqlalchemy.orm import Mapped, mapped_column
import enum

from app.db.base import Base


class ActivityCategory(str, enum.Enum):
    reflection = "reflection"
    vow_completion = "vow_completion"
    trigger_log = "trigger_log"
    streak_recovery = "streak_recovery"


class Activity(Base):
    __tablename__ = "activities"
    __table_args__ = (
        Index("ix_activities_user_day", "user_id", "day"),
        Index(
            "uq_activities_vow_completion_day", "vow_id", "day",
            unique=True,
            postgresql_where=text("category = 'vow_completion'"),
            sqlite_where=text("category = 'vow_completion'"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    vow_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("vows.id", ondelete="SET NULL"), nullable=True, index=True
    )
    category: Mapped[str] = mapped_column(
        Enum(ActivityCategory, name="activity_category_enum"), nullable=False, index=True
    )
    day: Mapped[date] = mapped_column(Date, nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    emotions: Mapped[str | None] = mapped_column(Text, nullable=True)
    urge_intensity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    location: Mapped[str | None] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
