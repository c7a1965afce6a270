"""User identity model."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from registrar.db import Base, UTCDateTime, new_id, utcnow


class User(Base):
    """Shared identity from which the teacher and student roles derive."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    first_name: Mapped[str] = mapped_column(String(128), nullable=False)
    last_name: Mapped[str] = mapped_column(String(128), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow
    )

    teacher: Mapped["Teacher"] = relationship(
        "Teacher", back_populates="user", uselist=False
    )
    student: Mapped["Student"] = relationship(
        "Student", back_populates="user", uselist=False
    )

    def __repr__(self) -> str:  # pragma: no cover - repr not critical
        return f"User(id={self.id!r}, email={self.email!r})"
