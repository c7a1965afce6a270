"""Development fixture helpers."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.orm import Session, sessionmaker

from registrar.db import session_scope
from registrar.services.courses import CourseData, CourseService, ScheduleData, get_course_by_code
from registrar.services.users import UserService, get_user_by_email

DEMO_TEACHER_EMAIL = "demo.teacher@example.com"
DEMO_STUDENT_EMAIL = "demo.student@example.com"
DEMO_COURSE_CODE = "TS101"


def seed_dev_data(session_factory: sessionmaker[Session]) -> None:
    """Populate the database with a demo teacher, student and course."""
    users = UserService(session_factory)
    with session_scope(session_factory) as session:
        teacher_user = get_user_by_email(session, DEMO_TEACHER_EMAIL)
        student_user = get_user_by_email(session, DEMO_STUDENT_EMAIL)
        course = get_course_by_code(session, DEMO_COURSE_CODE)

    if teacher_user is None:
        teacher_user = users.register(
            DEMO_TEACHER_EMAIL, "Demo", "Teacher", teacher=True, student=False
        )
    if student_user is None:
        users.register(DEMO_STUDENT_EMAIL, "Demo", "Student")

    if course is None:
        teacher_id = users.get_user(teacher_user.id).teacher.id
        CourseService(session_factory).create_course(
            teacher_id,
            CourseData(
                code=DEMO_COURSE_CODE,
                title="Introduction to TypeScript",
                description="Learn the basics of TypeScript",
                room="Room 101",
                start_date=datetime(2025, 9, 1, 9, 0, tzinfo=timezone.utc),
                end_date=datetime(2025, 12, 15, 17, 0, tzinfo=timezone.utc),
                schedule=[
                    ScheduleData(day_of_week=1, start_time="10:00", end_time="12:00"),
                    ScheduleData(day_of_week=3, start_time="10:00", end_time="12:00", room="A2.1"),
                ],
            ),
        )
