"""Per-course schedule entries; writes require ownership of the parent course."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from ..db import session_scope
from ..db.models import Course, Schedule
from ..errors import ForbiddenError, InvalidInputError, NotFoundError
from .courses import ScheduleData, check_slot, get_course, get_course_by_code

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class SchedulePatch:
    day_of_week: int | None = None
    start_time: str | None = None
    end_time: str | None = None
    room: str | None = None

    def field_changes(self) -> dict[str, object]:
        values = {
            "day_of_week": self.day_of_week,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "room": self.room,
        }
        return {key: value for key, value in values.items() if value is not None}


@dataclass(slots=True)
class CourseSchedules:
    course: Course
    schedules: Sequence[Schedule]


def list_schedules(session: Session, course_id: str) -> Sequence[Schedule]:
    """Weekly calendar order: day of week, then start time."""

    stmt = (
        select(Schedule)
        .where(Schedule.course_id == course_id)
        .order_by(Schedule.day_of_week.asc(), Schedule.start_time.asc())
    )
    return session.scalars(stmt).all()


def _flush(session: Session) -> None:
    try:
        session.flush()
    except IntegrityError as exc:
        raise InvalidInputError("Invalid schedule entry") from exc


class ScheduleService:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def _owned_schedule(self, session: Session, teacher_id: str, schedule_id: str, action: str) -> Schedule:
        schedule = session.scalar(
            select(Schedule).options(selectinload(Schedule.course)).where(Schedule.id == schedule_id)
        )
        if schedule is None:
            raise NotFoundError(f"Schedule with id {schedule_id} not found")
        if schedule.course.teacher_id != teacher_id:
            raise ForbiddenError(f"You do not have permission to {action} this schedule")
        return schedule

    def create_schedule(self, teacher_id: str, course_id: str, data: ScheduleData) -> Schedule:
        with session_scope(self._session_factory) as session:
            course = get_course(session, course_id)
            if course is None:
                raise NotFoundError(f"Course with id {course_id} not found")
            if course.teacher_id != teacher_id:
                raise ForbiddenError("You do not have permission to add schedules to this course")
            check_slot(data.day_of_week, data.start_time, data.end_time)

            schedule = Schedule(
                course_id=course_id,
                day_of_week=data.day_of_week,
                start_time=data.start_time,
                end_time=data.end_time,
                room=data.room,
            )
            session.add(schedule)
            _flush(session)

        LOGGER.info("Teacher %s added schedule %s to course %s", teacher_id, schedule.id, course_id)
        return schedule

    def update_schedule(self, teacher_id: str, schedule_id: str, patch: SchedulePatch) -> Schedule:
        with session_scope(self._session_factory) as session:
            schedule = self._owned_schedule(session, teacher_id, schedule_id, "update")
            for key, value in patch.field_changes().items():
                setattr(schedule, key, value)
            # Partial patches are checked against the stored half of the slot.
            check_slot(schedule.day_of_week, schedule.start_time, schedule.end_time)
            _flush(session)

        LOGGER.info("Teacher %s updated schedule %s", teacher_id, schedule_id)
        return schedule

    def delete_schedule(self, teacher_id: str, schedule_id: str) -> Schedule:
        with session_scope(self._session_factory) as session:
            schedule = self._owned_schedule(session, teacher_id, schedule_id, "delete")
            session.delete(schedule)
            session.flush()

        LOGGER.info("Teacher %s deleted schedule %s", teacher_id, schedule_id)
        return schedule

    def get_schedule_by_id(self, schedule_id: str) -> Schedule:
        with session_scope(self._session_factory) as session:
            schedule = session.get(Schedule, schedule_id)
            if schedule is None:
                raise NotFoundError(f"Schedule with id {schedule_id} not found")
            return schedule

    def get_schedules_by_course(self, course_id: str) -> Sequence[Schedule]:
        with session_scope(self._session_factory) as session:
            if get_course(session, course_id) is None:
                raise NotFoundError(f"Course with id {course_id} not found")
            return list_schedules(session, course_id)

    def get_courses_schedules_by_code(self, code: str) -> CourseSchedules:
        with session_scope(self._session_factory) as session:
            course = get_course_by_code(session, code)
            if course is None:
                raise NotFoundError(f"Course with code {code} not found")
            return CourseSchedules(course=course, schedules=list_schedules(session, course.id))


__all__ = ["CourseSchedules", "SchedulePatch", "ScheduleService", "list_schedules"]
