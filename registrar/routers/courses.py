"""Course catalog endpoints."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..db.models import Teacher
from ..dependencies import get_course_service, require_teacher
from ..schemas import (
    CourseCreate,
    CourseDetail,
    CourseListResponse,
    CourseRead,
    CourseUpdate,
    EnrolledStudentsResponse,
)
from ..services import CourseService, PageRequest

router = APIRouter(prefix="/courses", tags=["courses"])


@router.post("", response_model=CourseDetail, status_code=status.HTTP_201_CREATED)
def create_course(
    payload: CourseCreate,
    teacher: Teacher = Depends(require_teacher),
    courses: CourseService = Depends(get_course_service),
) -> CourseDetail:
    course = courses.create_course(teacher.id, payload.to_data())
    return CourseDetail.model_validate(course)


@router.get("", response_model=CourseListResponse)
def list_courses(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    search: Optional[str] = Query(default=None, description="Matches title or description"),
    teacher_id: Optional[str] = Query(default=None),
    courses: CourseService = Depends(get_course_service),
) -> CourseListResponse:
    result = courses.list_courses(PageRequest(page=page, limit=limit, search=search), teacher_id)
    return CourseListResponse.model_validate(result)


@router.get("/id/{course_id}/students", response_model=EnrolledStudentsResponse)
def get_enrolled_students(
    course_id: str,
    courses: CourseService = Depends(get_course_service),
) -> EnrolledStudentsResponse:
    return EnrolledStudentsResponse.model_validate(courses.get_enrolled_students(course_id))


@router.get("/{code}", response_model=CourseDetail)
def get_course_by_code(
    code: str,
    courses: CourseService = Depends(get_course_service),
) -> CourseDetail:
    return CourseDetail.model_validate(courses.get_course_by_code(code))


@router.patch("/{code}", response_model=CourseDetail)
def update_course(
    code: str,
    payload: CourseUpdate,
    teacher: Teacher = Depends(require_teacher),
    courses: CourseService = Depends(get_course_service),
) -> CourseDetail:
    try:
        payload.ensure_any_field()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    course = courses.update_course(teacher.id, code, payload.to_patch())
    return CourseDetail.model_validate(course)


@router.delete("/{code}", response_model=CourseRead)
def remove_course(
    code: str,
    teacher: Teacher = Depends(require_teacher),
    courses: CourseService = Depends(get_course_service),
) -> CourseRead:
    return CourseRead.model_validate(courses.remove_course(teacher.id, code))


__all__ = ["router"]
