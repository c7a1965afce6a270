"""Course schedule endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ..db.models import Teacher
from ..dependencies import get_schedule_service, require_teacher
from ..schemas import CourseSchedulesResponse, ScheduleRead, ScheduleSlot, ScheduleUpdate
from ..services import ScheduleService

router = APIRouter(prefix="/schedules", tags=["schedules"])


@router.post(
    "/course/{course_id}",
    response_model=ScheduleRead,
    status_code=status.HTTP_201_CREATED,
)
def create_schedule(
    course_id: str,
    payload: ScheduleSlot,
    teacher: Teacher = Depends(require_teacher),
    schedules: ScheduleService = Depends(get_schedule_service),
) -> ScheduleRead:
    schedule = schedules.create_schedule(teacher.id, course_id, payload.to_data())
    return ScheduleRead.model_validate(schedule)


@router.get("/course/{course_id}", response_model=list[ScheduleRead])
def get_schedules_by_course(
    course_id: str,
    schedules: ScheduleService = Depends(get_schedule_service),
) -> list[ScheduleRead]:
    return [ScheduleRead.model_validate(item) for item in schedules.get_schedules_by_course(course_id)]


@router.get("/course-code/{course_code}", response_model=CourseSchedulesResponse)
def get_courses_schedules_by_code(
    course_code: str,
    schedules: ScheduleService = Depends(get_schedule_service),
) -> CourseSchedulesResponse:
    return CourseSchedulesResponse.model_validate(
        schedules.get_courses_schedules_by_code(course_code)
    )


@router.get("/{schedule_id}", response_model=ScheduleRead)
def get_schedule_by_id(
    schedule_id: str,
    schedules: ScheduleService = Depends(get_schedule_service),
) -> ScheduleRead:
    return ScheduleRead.model_validate(schedules.get_schedule_by_id(schedule_id))


@router.put("/{schedule_id}", response_model=ScheduleRead)
def update_schedule(
    schedule_id: str,
    payload: ScheduleUpdate,
    teacher: Teacher = Depends(require_teacher),
    schedules: ScheduleService = Depends(get_schedule_service),
) -> ScheduleRead:
    try:
        payload.ensure_any_field()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    schedule = schedules.update_schedule(teacher.id, schedule_id, payload.to_patch())
    return ScheduleRead.model_validate(schedule)


@router.delete("/{schedule_id}", response_model=ScheduleRead)
def delete_schedule(
    schedule_id: str,
    teacher: Teacher = Depends(require_teacher),
    schedules: ScheduleService = Depends(get_schedule_service),
) -> ScheduleRead:
    return ScheduleRead.model_validate(schedules.delete_schedule(teacher.id, schedule_id))


__all__ = ["router"]
