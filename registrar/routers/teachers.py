"""Teacher-facing endpoints: profile, own courses, enrollments and grades."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..db.models import Teacher, User
from ..dependencies import (
    get_course_service,
    get_grade_service,
    get_identity,
    get_user_service,
    require_teacher,
)
from ..errors import UnauthorizedError
from ..schemas import (
    CourseListResponse,
    CourseStatisticsResponse,
    EnrolledStudentsResponse,
    GradeCreate,
    GradeRead,
    GradeUpdate,
    GradeWithCourse,
    GradeWithStudent,
    TeacherProfileResponse,
    UpdateUserRoleRequest,
    UserRoleResponse,
    UserRoles,
)
from ..services import CourseService, GradeService, Identity, PageRequest, UserService

router = APIRouter(prefix="/teachers", tags=["teachers"])


def _user_roles(user: User) -> UserRoles:
    return UserRoles(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        is_teacher=user.teacher is not None,
        is_student=user.student is not None,
    )


@router.patch("/users/role", response_model=UserRoleResponse)
def update_user_role(
    payload: UpdateUserRoleRequest,
    identity: Identity = Depends(get_identity),
    users: UserService = Depends(get_user_service),
) -> UserRoleResponse:
    if not identity.subject_id:
        raise UnauthorizedError()
    user = users.update_role(identity.subject_id, payload.user_id, payload.is_teacher)
    verb = "is now a teacher" if payload.is_teacher else "is no longer a teacher"
    return UserRoleResponse(
        message=f"{user.first_name} {user.last_name} {verb}",
        user=_user_roles(user),
    )


@router.get("/me", response_model=TeacherProfileResponse)
def get_my_profile(
    teacher: Teacher = Depends(require_teacher),
    courses: CourseService = Depends(get_course_service),
) -> TeacherProfileResponse:
    return TeacherProfileResponse.model_validate(courses.get_teacher_profile(teacher.id))


@router.get("/my-courses", response_model=CourseListResponse)
def get_my_courses(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    search: Optional[str] = Query(default=None),
    teacher: Teacher = Depends(require_teacher),
    courses: CourseService = Depends(get_course_service),
) -> CourseListResponse:
    result = courses.get_my_courses(teacher.id, PageRequest(page=page, limit=limit, search=search))
    return CourseListResponse.model_validate(result)


@router.get("/courses/{course_id}/enrollments", response_model=EnrolledStudentsResponse)
def get_enrollments_by_course(
    course_id: str,
    teacher: Teacher = Depends(require_teacher),
    courses: CourseService = Depends(get_course_service),
) -> EnrolledStudentsResponse:
    return EnrolledStudentsResponse.model_validate(
        courses.get_enrollments_by_course(teacher.id, course_id)
    )


@router.post("/grades", response_model=GradeWithCourse, status_code=status.HTTP_201_CREATED)
def assign_grade(
    payload: GradeCreate,
    teacher: Teacher = Depends(require_teacher),
    grades: GradeService = Depends(get_grade_service),
) -> GradeWithCourse:
    grade = grades.assign_grade(teacher.id, payload.student_id, payload.course_id, payload.grade)
    return GradeWithCourse.model_validate(grade)


@router.get("/grades/{grade_id}", response_model=GradeWithCourse)
def get_grade_by_id(
    grade_id: str,
    teacher: Teacher = Depends(require_teacher),
    grades: GradeService = Depends(get_grade_service),
) -> GradeWithCourse:
    return GradeWithCourse.model_validate(grades.get_grade_by_id(teacher.id, grade_id))


@router.patch("/grades/{grade_id}", response_model=GradeWithCourse)
def update_grade(
    grade_id: str,
    payload: GradeUpdate,
    teacher: Teacher = Depends(require_teacher),
    grades: GradeService = Depends(get_grade_service),
) -> GradeWithCourse:
    return GradeWithCourse.model_validate(grades.update_grade(teacher.id, grade_id, payload.grade))


@router.delete("/grades/{grade_id}", response_model=GradeRead)
def delete_grade(
    grade_id: str,
    teacher: Teacher = Depends(require_teacher),
    grades: GradeService = Depends(get_grade_service),
) -> GradeRead:
    return GradeRead.model_validate(grades.delete_grade(teacher.id, grade_id))


@router.get("/courses/{course_id}/grades", response_model=list[GradeWithStudent])
def get_grades_by_course(
    course_id: str,
    teacher: Teacher = Depends(require_teacher),
    grades: GradeService = Depends(get_grade_service),
) -> list[GradeWithStudent]:
    return [
        GradeWithStudent.model_validate(item)
        for item in grades.get_grades_by_course(teacher.id, course_id)
    ]


@router.get("/courses/{course_id}/statistics", response_model=CourseStatisticsResponse)
def get_course_statistics(
    course_id: str,
    _: Teacher = Depends(require_teacher),
    grades: GradeService = Depends(get_grade_service),
) -> CourseStatisticsResponse:
    return CourseStatisticsResponse.model_validate(grades.calculate_course_statistics(course_id))


__all__ = ["router"]
