"""Course lifecycle, including atomic creation and replacement of schedules."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from ..db import as_utc, session_scope
from ..db.models import Course, Enrollment, Grade, Schedule, Student, Teacher, User
from ..errors import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from .common import Page, PageRequest, fetch_page, search_clause

LOGGER = logging.getLogger(__name__)

DUPLICATE_CODE_MESSAGE = "Course with this code already exists"
# Zero padded so that lexical order of stored times is chronological.
TIME_PATTERN = r"([01]\d|2[0-3]):[0-5]\d"


@dataclass(slots=True)
class ScheduleData:
    day_of_week: int
    start_time: str
    end_time: str
    room: str | None = None


@dataclass(slots=True)
class CourseData:
    code: str
    title: str
    start_date: datetime
    end_date: datetime
    description: str | None = None
    room: str | None = None
    schedule: list[ScheduleData] = field(default_factory=list)


@dataclass(slots=True)
class CoursePatch:
    """Partial update; ``None`` leaves a field untouched.

    A ``schedule`` list (even an empty one) replaces the whole schedule set.
    """

    title: str | None = None
    description: str | None = None
    room: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    schedule: list[ScheduleData] | None = None

    def field_changes(self) -> dict[str, object]:
        values = {
            "title": self.title,
            "description": self.description,
            "room": self.room,
            "start_date": self.start_date,
            "end_date": self.end_date,
        }
        return {key: value for key, value in values.items() if value is not None}


@dataclass(slots=True)
class EnrolledStudent:
    enrollment_id: str
    student_id: str
    user: User
    enrolled_at: datetime


@dataclass(slots=True)
class EnrolledStudents:
    course_id: str
    course_title: str
    total_enrolled: int
    students: list[EnrolledStudent]


@dataclass(slots=True)
class TeacherProfile:
    teacher_id: str
    user: User
    total_courses: int


def get_course(session: Session, course_id: str) -> Course | None:
    return session.get(Course, course_id)


def get_course_by_code(session: Session, code: str) -> Course | None:
    return session.scalar(select(Course).where(Course.code == code))


def _load_course(session: Session, course_id: str) -> Course:
    stmt = (
        select(Course)
        .options(selectinload(Course.schedules))
        .where(Course.id == course_id)
        .execution_options(populate_existing=True)
    )
    return session.scalars(stmt).one()


def check_slot(day_of_week: int, start_time: str, end_time: str) -> None:
    """Reject a weekly slot that would break calendar ordering."""
    if not 0 <= day_of_week <= 6:
        raise InvalidInputError("day_of_week must be between 0 and 6")
    for value in (start_time, end_time):
        if not isinstance(value, str) or not re.fullmatch(TIME_PATTERN, value):
            raise InvalidInputError(f"Invalid time {value!r}, expected zero padded HH:MM")
    if end_time <= start_time:
        raise InvalidInputError("end_time must be later than start_time")


def check_date_range(start_date: datetime, end_date: datetime) -> None:
    if as_utc(end_date) < as_utc(start_date):
        raise InvalidInputError("end_date must be on or after start_date")


def _add_schedules(session: Session, course_id: str, entries: Iterable[ScheduleData]) -> None:
    entries = list(entries)
    for entry in entries:
        check_slot(entry.day_of_week, entry.start_time, entry.end_time)
    session.add_all(
        Schedule(
            course_id=course_id,
            day_of_week=entry.day_of_week,
            start_time=entry.start_time,
            end_time=entry.end_time,
            room=entry.room,
        )
        for entry in entries
    )
    try:
        session.flush()
    except IntegrityError as exc:
        LOGGER.warning("Rejected schedule rows for course %s: %s", course_id, exc.orig)
        raise InvalidInputError("Invalid schedule entry") from exc


class CourseService:
    """Owns courses and their schedule sets."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def _code_taken(self, code: str) -> bool:
        with session_scope(self._session_factory) as session:
            return get_course_by_code(session, code) is not None

    def create_course(self, teacher_id: str, data: CourseData) -> Course:
        check_date_range(data.start_date, data.end_date)
        # The unique index on courses.code is authoritative; this only fails fast.
        if self._code_taken(data.code):
            raise ConflictError(DUPLICATE_CODE_MESSAGE)

        with session_scope(self._session_factory) as session:
            course = Course(
                code=data.code,
                title=data.title,
                description=data.description,
                room=data.room,
                start_date=data.start_date,
                end_date=data.end_date,
                teacher_id=teacher_id,
            )
            session.add(course)
            try:
                session.flush()
            except IntegrityError as exc:
                session.rollback()
                if get_course_by_code(session, data.code) is None:
                    # Not a code clash (e.g. the teacher profile vanished); let it propagate.
                    raise
                LOGGER.warning("Course code %s lost a concurrent create", data.code)
                raise ConflictError(DUPLICATE_CODE_MESSAGE) from exc

            if data.schedule:
                _add_schedules(session, course.id, data.schedule)
            course = _load_course(session, course.id)

        LOGGER.info("Teacher %s created course %s", teacher_id, course.code)
        return course

    def update_course(self, teacher_id: str, code: str, patch: CoursePatch) -> Course:
        with session_scope(self._session_factory) as session:
            existing = get_course_by_code(session, code)
            if existing is None:
                raise NotFoundError(f"Course with code {code} not found")
            # Reported as not found rather than forbidden; see DESIGN.md.
            if existing.teacher_id != teacher_id:
                raise NotFoundError("Course not found for this teacher")

            for key, value in patch.field_changes().items():
                setattr(existing, key, value)
            # The patch may carry only one side of the range.
            check_date_range(existing.start_date, existing.end_date)
            session.flush()

            if patch.schedule is not None:
                session.execute(delete(Schedule).where(Schedule.course_id == existing.id))
                _add_schedules(session, existing.id, patch.schedule)
            course = _load_course(session, existing.id)

        LOGGER.info("Teacher %s updated course %s", teacher_id, code)
        return course

    def remove_course(self, teacher_id: str, code: str) -> Course:
        with session_scope(self._session_factory) as session:
            existing = get_course_by_code(session, code)
            if existing is None:
                raise NotFoundError(f"Course with code {code} not found")
            if existing.teacher_id != teacher_id:
                raise ForbiddenError("You are not the owner of this course")

            # Dependents go first so no grade or enrollment outlives its course.
            session.execute(delete(Grade).where(Grade.course_id == existing.id))
            session.execute(delete(Enrollment).where(Enrollment.course_id == existing.id))
            session.execute(delete(Schedule).where(Schedule.course_id == existing.id))
            session.delete(existing)
            session.flush()

        LOGGER.info("Teacher %s removed course %s", teacher_id, code)
        return existing

    def list_courses(self, request: PageRequest, teacher_id: str | None = None) -> Page[Course]:
        stmt = select(Course)
        if teacher_id:
            stmt = stmt.where(Course.teacher_id == teacher_id)
        if request.term:
            stmt = stmt.where(search_clause(request.term, Course.title, Course.description))
        stmt = stmt.order_by(Course.created_at, Course.id)

        with session_scope(self._session_factory) as session:
            return fetch_page(session, stmt, request)

    def get_my_courses(self, teacher_id: str, request: PageRequest) -> Page[Course]:
        return self.list_courses(request, teacher_id=teacher_id)

    def get_course_by_code(self, code: str) -> Course:
        with session_scope(self._session_factory) as session:
            course = get_course_by_code(session, code)
            if course is None:
                raise NotFoundError(f"Course with code {code} not found")
            return _load_course(session, course.id)

    def get_enrolled_students(self, course_id: str) -> EnrolledStudents:
        with session_scope(self._session_factory) as session:
            course = get_course(session, course_id)
            if course is None:
                raise NotFoundError("Course not found")
            return _enrolled_students(session, course)

    def get_enrollments_by_course(self, teacher_id: str, course_id: str) -> EnrolledStudents:
        with session_scope(self._session_factory) as session:
            course = get_course(session, course_id)
            if course is None:
                raise NotFoundError("Course not found")
            if course.teacher_id != teacher_id:
                raise ForbiddenError("You are not the owner of this course")
            return _enrolled_students(session, course)

    def get_teacher_profile(self, teacher_id: str) -> TeacherProfile:
        with session_scope(self._session_factory) as session:
            teacher = session.scalar(
                select(Teacher).options(selectinload(Teacher.user)).where(Teacher.id == teacher_id)
            )
            if teacher is None:
                raise NotFoundError("Teacher not found")
            total = session.scalar(
                select(func.count()).select_from(Course).where(Course.teacher_id == teacher_id)
            )
            return TeacherProfile(teacher_id=teacher.id, user=teacher.user, total_courses=total or 0)


def _enrolled_students(session: Session, course: Course) -> EnrolledStudents:
    stmt = (
        select(Enrollment)
        .options(selectinload(Enrollment.student).selectinload(Student.user))
        .where(Enrollment.course_id == course.id)
        .order_by(Enrollment.created_at.asc(), Enrollment.id)
    )
    enrollments: Sequence[Enrollment] = session.scalars(stmt).all()
    return EnrolledStudents(
        course_id=course.id,
        course_title=course.title,
        total_enrolled=len(enrollments),
        students=[
            EnrolledStudent(
                enrollment_id=item.id,
                student_id=item.student.id,
                user=item.student.user,
                enrolled_at=item.created_at,
            )
            for item in enrollments
        ],
    )


__all__ = [
    "TIME_PATTERN",
    "CourseData",
    "CoursePatch",
    "CourseService",
    "EnrolledStudent",
    "EnrolledStudents",
    "ScheduleData",
    "TeacherProfile",
    "check_date_range",
    "check_slot",
    "get_course",
    "get_course_by_code",
]
