"""Student enrollment endpoints."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..db.models import Student
from ..dependencies import get_enrollment_service, require_student
from ..schemas import EnrollmentCreate, EnrollmentDetail, EnrollmentListResponse, EnrollmentRead
from ..services import EnrollmentService, PageRequest

router = APIRouter(prefix="/enrollments", tags=["enrollments"])


@router.post("", response_model=EnrollmentRead, status_code=status.HTTP_201_CREATED)
def create_enrollment(
    payload: EnrollmentCreate,
    student: Student = Depends(require_student),
    enrollments: EnrollmentService = Depends(get_enrollment_service),
) -> EnrollmentRead:
    return EnrollmentRead.model_validate(enrollments.create(student.id, payload.course_id))


@router.get("/my", response_model=EnrollmentListResponse)
def get_my_enrollments(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    search: Optional[str] = Query(default=None, description="Matches course title, code or description"),
    student: Student = Depends(require_student),
    enrollments: EnrollmentService = Depends(get_enrollment_service),
) -> EnrollmentListResponse:
    result = enrollments.get_my_enrollments(
        student.id, PageRequest(page=page, limit=limit, search=search)
    )
    return EnrollmentListResponse.model_validate(result)


@router.get("/{enrollment_id}", response_model=EnrollmentDetail)
def get_enrollment_by_id(
    enrollment_id: str,
    student: Student = Depends(require_student),
    enrollments: EnrollmentService = Depends(get_enrollment_service),
) -> EnrollmentDetail:
    return EnrollmentDetail.model_validate(
        enrollments.get_enrollment_by_id(enrollment_id, student.id)
    )


@router.delete("/{enrollment_id}", response_model=EnrollmentRead)
def withdraw_enrollment(
    enrollment_id: str,
    student: Student = Depends(require_student),
    enrollments: EnrollmentService = Depends(get_enrollment_service),
) -> EnrollmentRead:
    return EnrollmentRead.model_validate(
        enrollments.withdraw_enrollment(enrollment_id, student.id)
    )


__all__ = ["router"]
