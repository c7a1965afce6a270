"""Teacher role model."""
from __future__ import annotations

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from registrar.db import Base, new_id


class Teacher(Base):
    """Teacher profile of a user; owns courses."""

    __tablename__ = "teachers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )

    user: Mapped["User"] = relationship("User", back_populates="teacher")
    courses: Mapped[list["Course"]] = relationship("Course", back_populates="teacher")

    def __repr__(self) -> str:  # pragma: no cover - repr not critical
        return f"Teacher(id={self.id!r}, user_id={self.user_id!r})"
