"""Student-facing grade endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from ..db.models import Student
from ..dependencies import get_grade_service, require_student
from ..schemas import GradeStatisticsResponse, GradeWithCourse
from ..services import GradeService

router = APIRouter(prefix="/students", tags=["students"])


@router.get("/grades", response_model=list[GradeWithCourse])
def get_my_grades(
    student: Student = Depends(require_student),
    grades: GradeService = Depends(get_grade_service),
) -> list[GradeWithCourse]:
    return [GradeWithCourse.model_validate(item) for item in grades.get_my_grades(student.id)]


@router.get("/grades/statistics", response_model=GradeStatisticsResponse)
def get_my_grade_statistics(
    student: Student = Depends(require_student),
    grades: GradeService = Depends(get_grade_service),
) -> GradeStatisticsResponse:
    return GradeStatisticsResponse.model_validate(grades.get_my_grade_statistics(student.id))


@router.get("/grades/course/{course_id}", response_model=list[GradeWithCourse])
def get_my_grades_by_course(
    course_id: str,
    student: Student = Depends(require_student),
    grades: GradeService = Depends(get_grade_service),
) -> list[GradeWithCourse]:
    return [
        GradeWithCourse.model_validate(item)
        for item in grades.get_my_grades_by_course(student.id, course_id)
    ]


__all__ = ["router"]
