from __future__ import annotations

import pytest

from registrar.db.models import Enrollment, Grade
from registrar.errors import ConflictError, ForbiddenError, NotFoundError
from registrar.services import CourseService, EnrollmentService, GradeService, PageRequest

from conftest import count_rows, course_data, race


@pytest.fixture()
def enrollments(session_factory) -> EnrollmentService:
    return EnrollmentService(session_factory)


@pytest.fixture()
def catalog(session_factory, teacher_a):
    courses = CourseService(session_factory)
    return {
        "CS101": courses.create_course(teacher_a.teacher_id, course_data("CS101", "Algorithms")),
        "MA101": courses.create_course(
            teacher_a.teacher_id,
            course_data("MA101", "Calculus", description="Limits and derivatives", schedule=[]),
        ),
    }


def test_enroll_once_per_course(enrollments, catalog, student) -> None:
    enrollment = enrollments.create(student.student_id, catalog["CS101"].id)

    assert enrollment.student_id == student.student_id
    assert enrollment.course_id == catalog["CS101"].id

    with pytest.raises(ConflictError, match="already enrolled"):
        enrollments.create(student.student_id, catalog["CS101"].id)


def test_enroll_in_missing_course(enrollments, student) -> None:
    with pytest.raises(NotFoundError):
        enrollments.create(student.student_id, "missing")


def test_unique_constraint_backs_up_the_duplicate_precheck(
    enrollments, session_factory, catalog, student, monkeypatch
) -> None:
    enrollments.create(student.student_id, catalog["CS101"].id)
    # A concurrent request that read before the first insert committed.
    monkeypatch.setattr(EnrollmentService, "_precheck", lambda self, student_id, course_id: None)

    with pytest.raises(ConflictError):
        enrollments.create(student.student_id, catalog["CS101"].id)

    assert count_rows(session_factory, Enrollment) == 1


def test_my_enrollments_embed_course_and_search(enrollments, catalog, student, register) -> None:
    other = register("olga@example.com")
    for course in catalog.values():
        enrollments.create(student.student_id, course.id)
    enrollments.create(other.student_id, catalog["CS101"].id)

    everything = enrollments.get_my_enrollments(student.student_id, PageRequest())
    assert everything.total == 2
    assert [item.course.code for item in everything.data] == ["CS101", "MA101"]

    by_code = enrollments.get_my_enrollments(student.student_id, PageRequest(search="ma1"))
    assert [item.course.code for item in by_code.data] == ["MA101"]

    by_description = enrollments.get_my_enrollments(
        student.student_id, PageRequest(search="DERIVATIVES")
    )
    assert by_description.total == 1

    paged = enrollments.get_my_enrollments(student.student_id, PageRequest(page=2, limit=1))
    assert paged.total == 2
    assert [item.course.code for item in paged.data] == ["MA101"]


def test_enrollment_access_is_owner_only(enrollments, catalog, student, register) -> None:
    other = register("olga@example.com")
    enrollment = enrollments.create(student.student_id, catalog["CS101"].id)

    fetched = enrollments.get_enrollment_by_id(enrollment.id, student.student_id)
    assert fetched.course.code == "CS101"

    with pytest.raises(ForbiddenError):
        enrollments.get_enrollment_by_id(enrollment.id, other.student_id)
    with pytest.raises(ForbiddenError):
        enrollments.withdraw_enrollment(enrollment.id, other.student_id)
    with pytest.raises(NotFoundError):
        enrollments.get_enrollment_by_id("missing", student.student_id)
    with pytest.raises(NotFoundError):
        enrollments.withdraw_enrollment("missing", student.student_id)


def test_withdraw_removes_grades_for_that_course_only(
    enrollments, session_factory, catalog, student, teacher_a
) -> None:
    grades = GradeService(session_factory)
    first = enrollments.create(student.student_id, catalog["CS101"].id)
    enrollments.create(student.student_id, catalog["MA101"].id)
    grades.assign_grade(teacher_a.teacher_id, student.student_id, catalog["CS101"].id, 88)
    kept = grades.assign_grade(teacher_a.teacher_id, student.student_id, catalog["MA101"].id, 72)

    withdrawn = enrollments.withdraw_enrollment(first.id, student.student_id)

    assert withdrawn.id == first.id
    assert count_rows(session_factory, Enrollment) == 1
    assert count_rows(session_factory, Grade) == 1
    assert [grade.id for grade in grades.get_my_grades(student.student_id)] == [kept.id]

    # Re-enrolling after withdrawal is allowed.
    enrollments.create(student.student_id, catalog["CS101"].id)


def test_concurrent_duplicate_enrollments_yield_one_row(
    enrollments, session_factory, catalog, student
) -> None:
    outcomes = race(8, lambda _: enrollments.create(student.student_id, catalog["CS101"].id))

    assert outcomes == ["conflict"] * 7 + ["ok"]
    assert count_rows(session_factory, Enrollment) == 1
