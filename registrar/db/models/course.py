"""Course catalog model."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from registrar.db import Base, UTCDateTime, new_id, utcnow


class Course(Base):
    """A course offered by its owning teacher."""

    __tablename__ = "courses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    room: Mapped[str | None] = mapped_column(String(128), nullable=True)
    start_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    end_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    teacher_id: Mapped[str] = mapped_column(
        ForeignKey("teachers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow
    )

    teacher: Mapped["Teacher"] = relationship("Teacher", back_populates="courses")
    schedules: Mapped[list["Schedule"]] = relationship(
        "Schedule",
        back_populates="course",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="[Schedule.day_of_week, Schedule.start_time]",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"Course(id={self.id!r}, code={self.code!r})"
