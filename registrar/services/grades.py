"""Grade records scoped to (student, course, assigning teacher) and statistics."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from ..db import session_scope
from ..db.models import Grade, Student
from ..errors import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from .courses import get_course
from .enrollments import find_enrollment

LOGGER = logging.getLogger(__name__)

DUPLICATE_GRADE_MESSAGE = "Student already has a grade for this course"


@dataclass(slots=True)
class CourseStatistics:
    course_id: str
    course_title: str
    total_grades: int = 0
    average_grade: float = 0
    highest_grade: float = 0
    lowest_grade: float = 0


@dataclass(slots=True)
class GradeStatistics:
    total_courses: int = 0
    average_grade: float = 0
    highest_grade: float = 0
    lowest_grade: float = 0


def _validate_grade(value: float) -> None:
    if value < 0:
        raise InvalidInputError("grade must not be negative")


def _aggregate(session: Session, *criteria) -> tuple[int, float, float, float]:
    """Return (count, mean rounded to two places, max, min); zeros when empty."""

    count, mean, highest, lowest = session.execute(
        select(
            func.count(Grade.id),
            func.avg(Grade.grade),
            func.max(Grade.grade),
            func.min(Grade.grade),
        ).where(*criteria)
    ).one()
    if not count:
        return 0, 0, 0, 0
    return count, round(float(mean), 2), float(highest), float(lowest)


class GradeService:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def _owned_grade(self, session: Session, teacher_id: str, grade_id: str, action: str) -> Grade:
        grade = session.scalar(
            select(Grade).options(selectinload(Grade.course)).where(Grade.id == grade_id)
        )
        if grade is None:
            raise NotFoundError(f"Grade with ID {grade_id} not found")
        # Rights follow the teacher who issued the grade, not the current course owner.
        if grade.teacher_id != teacher_id:
            raise ForbiddenError(f"You can only {action} grades you assigned")
        return grade

    def assign_grade(self, teacher_id: str, student_id: str, course_id: str, value: float) -> Grade:
        _validate_grade(value)
        with session_scope(self._session_factory) as session:
            course = get_course(session, course_id)
            if course is None:
                raise NotFoundError(f"Course with ID {course_id} not found")
            if session.get(Student, student_id) is None:
                raise NotFoundError(f"Student with ID {student_id} not found")
            if course.teacher_id != teacher_id:
                raise ForbiddenError("You are not the owner of this course")
            if find_enrollment(session, student_id, course_id) is None:
                raise NotFoundError("Student is not enrolled in this course")

            grade = Grade(
                student_id=student_id,
                course_id=course_id,
                teacher_id=teacher_id,
                grade=value,
            )
            session.add(grade)
            try:
                session.flush()
            except IntegrityError as exc:
                LOGGER.warning("Duplicate grade for student %s in course %s", student_id, course_id)
                raise ConflictError(DUPLICATE_GRADE_MESSAGE) from exc
            session.refresh(grade, ["course"])

        LOGGER.info("Teacher %s assigned grade %s to student %s", teacher_id, grade.id, student_id)
        return grade

    def update_grade(self, teacher_id: str, grade_id: str, value: float) -> Grade:
        _validate_grade(value)
        with session_scope(self._session_factory) as session:
            grade = self._owned_grade(session, teacher_id, grade_id, "update")
            grade.grade = value
            session.flush()

        LOGGER.info("Teacher %s updated grade %s", teacher_id, grade_id)
        return grade

    def delete_grade(self, teacher_id: str, grade_id: str) -> Grade:
        with session_scope(self._session_factory) as session:
            grade = self._owned_grade(session, teacher_id, grade_id, "delete")
            session.delete(grade)
            session.flush()

        LOGGER.info("Teacher %s deleted grade %s", teacher_id, grade_id)
        return grade

    def get_grade_by_id(self, teacher_id: str, grade_id: str) -> Grade:
        with session_scope(self._session_factory) as session:
            return self._owned_grade(session, teacher_id, grade_id, "view")

    def get_grades_by_course(self, teacher_id: str, course_id: str) -> Sequence[Grade]:
        with session_scope(self._session_factory) as session:
            course = get_course(session, course_id)
            if course is None:
                raise NotFoundError(f"Course with ID {course_id} not found")
            if course.teacher_id != teacher_id:
                raise ForbiddenError("You are not the owner of this course")
            stmt = (
                select(Grade)
                .options(selectinload(Grade.student).selectinload(Student.user))
                .where(Grade.course_id == course_id)
                .order_by(Grade.created_at, Grade.id)
            )
            return session.scalars(stmt).all()

    def calculate_course_statistics(self, course_id: str) -> CourseStatistics:
        with session_scope(self._session_factory) as session:
            course = get_course(session, course_id)
            if course is None:
                raise NotFoundError(f"Course with ID {course_id} not found")
            count, mean, highest, lowest = _aggregate(session, Grade.course_id == course_id)
        return CourseStatistics(
            course_id=course.id,
            course_title=course.title,
            total_grades=count,
            average_grade=mean,
            highest_grade=highest,
            lowest_grade=lowest,
        )

    def get_my_grades(self, student_id: str) -> Sequence[Grade]:
        with session_scope(self._session_factory) as session:
            stmt = (
                select(Grade)
                .options(selectinload(Grade.course))
                .where(Grade.student_id == student_id)
                .order_by(Grade.created_at, Grade.id)
            )
            return session.scalars(stmt).all()

    def get_my_grades_by_course(self, student_id: str, course_id: str) -> Sequence[Grade]:
        with session_scope(self._session_factory) as session:
            if get_course(session, course_id) is None:
                raise NotFoundError(f"Course with ID {course_id} not found")
            stmt = (
                select(Grade)
                .options(selectinload(Grade.course))
                .where(Grade.student_id == student_id, Grade.course_id == course_id)
                .order_by(Grade.created_at, Grade.id)
            )
            return session.scalars(stmt).all()

    def get_my_grade_statistics(self, student_id: str) -> GradeStatistics:
        """An empty grade history is a valid state and yields all zeros."""

        with session_scope(self._session_factory) as session:
            count, mean, highest, lowest = _aggregate(session, Grade.student_id == student_id)
        return GradeStatistics(
            total_courses=count,
            average_grade=mean,
            highest_grade=highest,
            lowest_grade=lowest,
        )


__all__ = [
    "CourseStatistics",
    "DUPLICATE_GRADE_MESSAGE",
    "GradeService",
    "GradeStatistics",
]
