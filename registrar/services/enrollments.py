"""Student/course membership: enrolment, listing and withdrawal."""
from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from ..db import session_scope
from ..db.models import Course, Enrollment, Grade
from ..errors import ConflictError, ForbiddenError, NotFoundError
from .common import Page, PageRequest, fetch_page, search_clause
from .courses import get_course

LOGGER = logging.getLogger(__name__)

DUPLICATE_ENROLLMENT_MESSAGE = "Student is already enrolled in this course"


def find_enrollment(session: Session, student_id: str, course_id: str) -> Enrollment | None:
    return session.scalar(
        select(Enrollment).where(
            Enrollment.student_id == student_id,
            Enrollment.course_id == course_id,
        )
    )


class EnrollmentService:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def _precheck(self, student_id: str, course_id: str) -> None:
        with session_scope(self._session_factory) as session:
            if get_course(session, course_id) is None:
                raise NotFoundError(f"Course with ID {course_id} not found")
            if find_enrollment(session, student_id, course_id) is not None:
                raise ConflictError(DUPLICATE_ENROLLMENT_MESSAGE)

    def create(self, student_id: str, course_id: str) -> Enrollment:
        # Check-then-act: the (student_id, course_id) unique constraint decides races.
        self._precheck(student_id, course_id)

        with session_scope(self._session_factory) as session:
            enrollment = Enrollment(student_id=student_id, course_id=course_id)
            session.add(enrollment)
            try:
                session.flush()
            except IntegrityError as exc:
                LOGGER.warning(
                    "Duplicate enrollment of student %s in course %s rejected by the store",
                    student_id,
                    course_id,
                )
                raise ConflictError(DUPLICATE_ENROLLMENT_MESSAGE) from exc

        LOGGER.info("Student %s enrolled in course %s", student_id, course_id)
        return enrollment

    def get_my_enrollments(self, student_id: str, request: PageRequest) -> Page[Enrollment]:
        stmt = (
            select(Enrollment)
            .options(selectinload(Enrollment.course))
            .where(Enrollment.student_id == student_id)
        )
        if request.term:
            stmt = stmt.where(
                Enrollment.course.has(
                    search_clause(request.term, Course.title, Course.code, Course.description)
                )
            )
        stmt = stmt.order_by(Enrollment.created_at, Enrollment.id)

        with session_scope(self._session_factory) as session:
            return fetch_page(session, stmt, request)

    def _owned(self, session: Session, enrollment_id: str, student_id: str, denial: str) -> Enrollment:
        enrollment = session.scalar(
            select(Enrollment)
            .options(selectinload(Enrollment.course))
            .where(Enrollment.id == enrollment_id)
        )
        if enrollment is None:
            raise NotFoundError(f"Enrollment with ID {enrollment_id} not found")
        if enrollment.student_id != student_id:
            raise ForbiddenError(denial)
        return enrollment

    def get_enrollment_by_id(self, enrollment_id: str, student_id: str) -> Enrollment:
        with session_scope(self._session_factory) as session:
            return self._owned(
                session, enrollment_id, student_id, "You do not have access to this enrollment"
            )

    def withdraw_enrollment(self, enrollment_id: str, student_id: str) -> Enrollment:
        with session_scope(self._session_factory) as session:
            enrollment = self._owned(
                session, enrollment_id, student_id, "You cannot withdraw from this enrollment"
            )
            # Grades first, then the enrollment, in the same transaction.
            removed = session.execute(
                delete(Grade).where(
                    Grade.student_id == enrollment.student_id,
                    Grade.course_id == enrollment.course_id,
                )
            )
            session.delete(enrollment)
            session.flush()

        LOGGER.info(
            "Student %s withdrew enrollment %s (%s grade rows removed)",
            student_id,
            enrollment_id,
            removed.rowcount,
        )
        return enrollment


__all__ = ["DUPLICATE_ENROLLMENT_MESSAGE", "EnrollmentService", "find_enrollment"]
