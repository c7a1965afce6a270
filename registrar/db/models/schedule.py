"""Weekly schedule entry model."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from registrar.db import Base, UTCDateTime, new_id, utcnow


class Schedule(Base):
    """Recurring weekly session of a course (0 is Sunday)."""

    __tablename__ = "schedules"
    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_schedules_day_of_week"),
        CheckConstraint(
            "length(start_time) = 5 AND length(end_time) = 5", name="ck_schedules_time_format"
        ),
        CheckConstraint("start_time < end_time", name="ck_schedules_time_order"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    course_id: Mapped[str] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    # HH:MM, zero padded so lexical order is chronological
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    room: Mapped[str | None] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow
    )

    course: Mapped["Course"] = relationship("Course", back_populates="schedules")

    def __repr__(self) -> str:  # pragma: no cover
        return f"Schedule(id={self.id!r}, day_of_week={self.day_of_week!r})"
