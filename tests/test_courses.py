from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from registrar.db import session_scope
from registrar.db.models import Course, Enrollment, Grade, Schedule
from registrar.errors import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from registrar.services import (
    CoursePatch,
    CourseService,
    EnrollmentService,
    GradeService,
    PageRequest,
    ScheduleData,
)

from conftest import count_rows, course_data, race


@pytest.fixture()
def courses(session_factory) -> CourseService:
    return CourseService(session_factory)


def _schedule_keys(course) -> list[tuple[int, str]]:
    return [(item.day_of_week, item.start_time) for item in course.schedules]


def test_create_course_with_schedule(courses, session_factory, teacher_a) -> None:
    course = courses.create_course(teacher_a.teacher_id, course_data())

    assert course.code == "CS101"
    assert course.teacher_id == teacher_a.teacher_id
    assert _schedule_keys(course) == [(1, "10:00"), (3, "14:00")]
    assert count_rows(session_factory, Course) == 1
    assert count_rows(session_factory, Schedule, Schedule.course_id == course.id) == 2


def test_duplicate_code_conflicts(courses, teacher_a, teacher_b) -> None:
    courses.create_course(teacher_a.teacher_id, course_data())

    with pytest.raises(ConflictError, match="already exists"):
        courses.create_course(teacher_b.teacher_id, course_data(title="Copy"))


def test_unique_index_backs_up_the_code_precheck(
    courses, session_factory, teacher_a, teacher_b, monkeypatch
) -> None:
    courses.create_course(teacher_a.teacher_id, course_data())
    # Simulate a concurrent creator that passed the pre-check before the first commit.
    monkeypatch.setattr(CourseService, "_code_taken", lambda self, code: False)

    with pytest.raises(ConflictError):
        courses.create_course(teacher_b.teacher_id, course_data(title="Racer"))

    assert count_rows(session_factory, Course) == 1
    assert count_rows(session_factory, Schedule) == 2


def test_create_is_atomic_when_schedule_rows_are_rejected(courses, session_factory, teacher_a) -> None:
    data = course_data(
        schedule=[
            ScheduleData(day_of_week=2, start_time="09:00", end_time="10:00"),
            ScheduleData(day_of_week=7, start_time="09:00", end_time="10:00"),
        ]
    )

    with pytest.raises(InvalidInputError):
        courses.create_course(teacher_a.teacher_id, data)

    assert count_rows(session_factory, Course) == 0
    assert count_rows(session_factory, Schedule) == 0


def test_update_by_non_owner_reports_not_found(courses, teacher_a, teacher_b) -> None:
    courses.create_course(teacher_a.teacher_id, course_data())

    with pytest.raises(NotFoundError):
        courses.update_course(teacher_b.teacher_id, "CS101", CoursePatch(title="Hijacked"))
    with pytest.raises(NotFoundError):
        courses.update_course(teacher_a.teacher_id, "NOPE", CoursePatch(title="Missing"))

    assert courses.get_course_by_code("CS101").title == "Computer Science"


def test_update_replaces_schedule_set(courses, session_factory, teacher_a) -> None:
    created = courses.create_course(teacher_a.teacher_id, course_data())

    updated = courses.update_course(
        teacher_a.teacher_id,
        "CS101",
        CoursePatch(
            title="Computer Science I",
            schedule=[
                ScheduleData(day_of_week=5, start_time="08:00", end_time="09:00"),
                ScheduleData(day_of_week=0, start_time="18:00", end_time="19:00"),
                ScheduleData(day_of_week=5, start_time="07:30", end_time="08:00"),
            ],
        ),
    )

    assert updated.title == "Computer Science I"
    assert updated.description == created.description
    assert _schedule_keys(updated) == [(0, "18:00"), (5, "07:30"), (5, "08:00")]
    assert count_rows(session_factory, Schedule) == 3


def test_update_without_schedule_keeps_it_and_empty_list_clears_it(
    courses, session_factory, teacher_a
) -> None:
    courses.create_course(teacher_a.teacher_id, course_data())

    kept = courses.update_course(teacher_a.teacher_id, "CS101", CoursePatch(room="B1"))
    assert kept.room == "B1"
    assert len(kept.schedules) == 2

    cleared = courses.update_course(teacher_a.teacher_id, "CS101", CoursePatch(schedule=[]))
    assert cleared.schedules == []
    assert count_rows(session_factory, Schedule) == 0


def test_invalid_schedule_replacement_leaves_original_untouched(courses, teacher_a) -> None:
    original = courses.create_course(teacher_a.teacher_id, course_data())
    original_ids = sorted(item.id for item in original.schedules)

    with pytest.raises(InvalidInputError):
        courses.update_course(
            teacher_a.teacher_id,
            "CS101",
            CoursePatch(
                title="Should not stick",
                schedule=[
                    ScheduleData(day_of_week=4, start_time="10:00", end_time="11:00"),
                    ScheduleData(day_of_week=9, start_time="10:00", end_time="11:00"),
                ],
            ),
        )

    current = courses.get_course_by_code("CS101")
    assert current.title == "Computer Science"
    assert sorted(item.id for item in current.schedules) == original_ids


def test_remove_course_checks_existence_and_ownership(courses, teacher_a, teacher_b) -> None:
    courses.create_course(teacher_a.teacher_id, course_data())

    with pytest.raises(NotFoundError):
        courses.remove_course(teacher_a.teacher_id, "NOPE")
    with pytest.raises(ForbiddenError):
        courses.remove_course(teacher_b.teacher_id, "CS101")


def test_remove_course_cleans_up_dependents(courses, session_factory, teacher_a, student) -> None:
    course = courses.create_course(teacher_a.teacher_id, course_data())
    EnrollmentService(session_factory).create(student.student_id, course.id)
    GradeService(session_factory).assign_grade(
        teacher_a.teacher_id, student.student_id, course.id, 4.5
    )

    removed = courses.remove_course(teacher_a.teacher_id, "CS101")

    assert removed.id == course.id
    assert count_rows(session_factory, Course) == 0
    assert count_rows(session_factory, Schedule) == 0
    assert count_rows(session_factory, Enrollment) == 0
    assert count_rows(session_factory, Grade) == 0
    with pytest.raises(NotFoundError):
        courses.get_course_by_code("CS101")


def test_list_courses_paginates_and_searches(courses, teacher_a, teacher_b) -> None:
    courses.create_course(teacher_a.teacher_id, course_data("CS101", "Algorithms", schedule=[]))
    courses.create_course(
        teacher_a.teacher_id,
        course_data("CS102", "Databases", description="Relational ALGORITHMS", schedule=[]),
    )
    courses.create_course(teacher_b.teacher_id, course_data("MA101", "Calculus", schedule=[]))

    first = courses.list_courses(PageRequest(page=1, limit=2))
    second = courses.list_courses(PageRequest(page=2, limit=2))
    assert first.total == second.total == 3
    assert [item.code for item in first.data] == ["CS101", "CS102"]
    assert [item.code for item in second.data] == ["MA101"]

    found = courses.list_courses(PageRequest(search="algorithms"))
    assert found.total == 2
    assert {item.code for item in found.data} == {"CS101", "CS102"}

    mine = courses.get_my_courses(teacher_b.teacher_id, PageRequest())
    assert [item.code for item in mine.data] == ["MA101"]

    none = courses.list_courses(PageRequest(search="100%"))
    assert none.total == 0
    assert none.data == []


@pytest.mark.parametrize("page, limit", [(0, 10), (1, 0), (1, 101)])
def test_page_request_bounds(page, limit) -> None:
    with pytest.raises(InvalidInputError):
        PageRequest(page=page, limit=limit)


def test_enrolled_students_are_ordered_by_enrollment_time(
    courses, session_factory, teacher_a, teacher_b, register
) -> None:
    course = courses.create_course(teacher_a.teacher_id, course_data())
    enrollments = EnrollmentService(session_factory)
    roster = [register(f"student{index}@example.com") for index in range(3)]
    for member in reversed(roster):
        enrollments.create(member.student_id, course.id)

    result = courses.get_enrolled_students(course.id)

    assert result.course_title == "Computer Science"
    assert result.total_enrolled == 3
    assert [item.student_id for item in result.students] == [
        member.student_id for member in reversed(roster)
    ]
    assert result.students[0].user.email == "student2@example.com"

    owned = courses.get_enrollments_by_course(teacher_a.teacher_id, course.id)
    assert owned.total_enrolled == 3
    with pytest.raises(ForbiddenError):
        courses.get_enrollments_by_course(teacher_b.teacher_id, course.id)
    with pytest.raises(NotFoundError):
        courses.get_enrolled_students("missing")


def test_teacher_profile_counts_courses(courses, teacher_a) -> None:
    courses.create_course(teacher_a.teacher_id, course_data("CS101"))
    courses.create_course(teacher_a.teacher_id, course_data("CS102", schedule=[]))

    profile = courses.get_teacher_profile(teacher_a.teacher_id)

    assert profile.total_courses == 2
    assert profile.user.email == "alice@example.com"


def test_teacher_id_is_not_patchable(courses, session_factory, teacher_a) -> None:
    courses.create_course(teacher_a.teacher_id, course_data())
    courses.update_course(teacher_a.teacher_id, "CS101", CoursePatch(title="Renamed"))

    with session_scope(session_factory) as session:
        stored = session.query(Course).one()
        assert stored.teacher_id == teacher_a.teacher_id
        assert stored.title == "Renamed"


def test_concurrent_creates_with_one_code_yield_a_single_course(
    courses, session_factory, teacher_a
) -> None:
    outcomes = race(
        8,
        lambda index: courses.create_course(
            teacher_a.teacher_id, course_data(title=f"Attempt {index}")
        ),
    )

    assert outcomes == ["conflict"] * 7 + ["ok"]
    assert count_rows(session_factory, Course) == 1
    assert count_rows(session_factory, Schedule) == 2


def test_create_rejects_inverted_date_range(courses, session_factory, teacher_a) -> None:
    data = course_data(end_date=datetime(2025, 8, 1, tzinfo=timezone.utc))

    with pytest.raises(InvalidInputError):
        courses.create_course(teacher_a.teacher_id, data)

    assert count_rows(session_factory, Course) == 0


def test_partial_date_patch_is_checked_against_stored_range(courses, teacher_a) -> None:
    courses.create_course(teacher_a.teacher_id, course_data())

    with pytest.raises(InvalidInputError):
        courses.update_course(
            teacher_a.teacher_id,
            "CS101",
            CoursePatch(end_date=datetime(2025, 8, 1, tzinfo=timezone.utc)),
        )
    with pytest.raises(InvalidInputError):
        courses.update_course(
            teacher_a.teacher_id,
            "CS101",
            CoursePatch(start_date=datetime(2026, 1, 10, tzinfo=timezone.utc)),
        )

    stored = courses.get_course_by_code("CS101")
    assert stored.start_date == datetime(2025, 9, 1, 9, 0, tzinfo=timezone.utc)
    assert stored.end_date == datetime(2025, 12, 15, 17, 0, tzinfo=timezone.utc)


def test_unpadded_slot_times_are_rejected(courses, session_factory, teacher_a) -> None:
    data = course_data(
        schedule=[
            ScheduleData(day_of_week=1, start_time="10:00", end_time="11:00"),
            ScheduleData(day_of_week=1, start_time="9:00", end_time="09:30"),
        ]
    )

    with pytest.raises(InvalidInputError):
        courses.create_course(teacher_a.teacher_id, data)

    assert count_rows(session_factory, Course) == 0
    assert count_rows(session_factory, Schedule) == 0


def test_stored_timestamps_are_utc_aware(courses, teacher_a) -> None:
    courses.create_course(
        teacher_a.teacher_id,
        course_data(start_date=datetime(2025, 9, 1, 9, 0), end_date=datetime(2025, 12, 15, 17, 0)),
    )

    stored = courses.get_course_by_code("CS101")

    for value in (stored.start_date, stored.end_date, stored.created_at, stored.updated_at):
        assert value.utcoffset() is not None
        assert value.utcoffset().total_seconds() == 0
    assert stored.start_date == datetime(2025, 9, 1, 9, 0, tzinfo=timezone.utc)


def test_non_duplicate_integrity_errors_are_not_reported_as_conflicts(
    courses, session_factory
) -> None:
    with pytest.raises(IntegrityError):
        courses.create_course("no-such-teacher", course_data())

    assert count_rows(session_factory, Course) == 0
