"""User registration and teacher role management."""
from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from ..db import session_scope
from ..db.models import Course, Student, Teacher, User
from ..errors import ConflictError, ForbiddenError, NotFoundError
from .roles import resolve_teacher

LOGGER = logging.getLogger(__name__)

DUPLICATE_EMAIL_MESSAGE = "User with this email already exists"


def get_user_by_email(session: Session, email: str) -> User | None:
    return session.scalar(select(User).where(User.email == email))


def _load_user(session: Session, user_id: str) -> User | None:
    return session.scalar(
        select(User)
        .options(selectinload(User.teacher), selectinload(User.student))
        .where(User.id == user_id)
        .execution_options(populate_existing=True)
    )


class UserService:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def register(
        self,
        email: str,
        first_name: str,
        last_name: str,
        *,
        teacher: bool = False,
        student: bool = True,
    ) -> User:
        email = email.strip().lower()
        with session_scope(self._session_factory) as session:
            if get_user_by_email(session, email) is not None:
                raise ConflictError(DUPLICATE_EMAIL_MESSAGE)

            user = User(email=email, first_name=first_name, last_name=last_name)
            session.add(user)
            try:
                session.flush()
            except IntegrityError as exc:
                raise ConflictError(DUPLICATE_EMAIL_MESSAGE) from exc
            if teacher:
                session.add(Teacher(user_id=user.id))
            if student:
                session.add(Student(user_id=user.id))
            session.flush()
            user = _load_user(session, user.id)

        LOGGER.info("Registered user %s (teacher=%s, student=%s)", user.id, teacher, student)
        return user

    def get_user(self, user_id: str) -> User:
        with session_scope(self._session_factory) as session:
            user = _load_user(session, user_id)
            if user is None:
                raise NotFoundError("User not found")
            return user

    def update_role(self, actor_user_id: str, target_user_id: str, is_teacher: bool) -> User:
        """Grant or revoke the teacher role; only teachers may do either."""

        with session_scope(self._session_factory) as session:
            if resolve_teacher(session, actor_user_id) is None:
                raise ForbiddenError("Only teachers can assign roles")

            target = _load_user(session, target_user_id)
            if target is None:
                raise NotFoundError("User not found")

            if is_teacher:
                if target.teacher is not None:
                    raise ConflictError("User is already a teacher")
                session.add(Teacher(user_id=target.id))
            else:
                if target.teacher is None:
                    raise ConflictError("User is not a teacher")
                owned = session.scalar(
                    select(func.count())
                    .select_from(Course)
                    .where(Course.teacher_id == target.teacher.id)
                )
                if owned:
                    raise ConflictError("Teacher still owns courses")
                session.delete(target.teacher)
            session.flush()
            target = _load_user(session, target.id)

        LOGGER.info(
            "User %s set teacher role of %s to %s", actor_user_id, target_user_id, is_teacher
        )
        return target


__all__ = ["DUPLICATE_EMAIL_MESSAGE", "UserService", "get_user_by_email"]
