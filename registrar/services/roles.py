"""Resolve an authenticated identity to its teacher or student profile."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from ..db import session_scope
from ..db.models import Student, Teacher
from ..errors import RoleMismatchError, UnauthorizedError
from .common import Identity

LOGGER = logging.getLogger(__name__)


def resolve_teacher(session: Session, subject_id: str) -> Teacher | None:
    return session.scalar(select(Teacher).where(Teacher.user_id == subject_id))


def resolve_student(session: Session, subject_id: str) -> Student | None:
    return session.scalar(select(Student).where(Student.user_id == subject_id))


class RoleGuard:
    """Lookup-and-gate for role-scoped operations; never mutates."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _subject(identity: Identity | None) -> str:
        if identity is None or not identity.subject_id:
            LOGGER.warning("No subject found on the request identity")
            raise UnauthorizedError()
        return identity.subject_id

    def require_teacher(self, identity: Identity | None) -> Teacher:
        subject_id = self._subject(identity)
        with session_scope(self._session_factory) as session:
            teacher = resolve_teacher(session, subject_id)
        if teacher is None:
            raise RoleMismatchError("You are not a teacher")
        LOGGER.info("Teacher found: %s", teacher.id)
        return teacher

    def require_student(self, identity: Identity | None) -> Student:
        subject_id = self._subject(identity)
        with session_scope(self._session_factory) as session:
            student = resolve_student(session, subject_id)
        if student is None:
            raise RoleMismatchError("You are not a student")
        LOGGER.info("Student found: %s", student.id)
        return student


__all__ = ["RoleGuard", "resolve_student", "resolve_teacher"]
