"""Pydantic schemas shared across the HTTP layer."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .services import CourseData, CoursePatch, ScheduleData, SchedulePatch
from .services.courses import TIME_PATTERN as SLOT_TIME

TIME_PATTERN = rf"^{SLOT_TIME}$"


# ---------------------------------------------------------------------------
# Scheduling primitives
# ---------------------------------------------------------------------------


class ScheduleSlot(BaseModel):
    day_of_week: int = Field(..., ge=0, le=6, description="0 is Sunday")
    start_time: str = Field(..., pattern=TIME_PATTERN, examples=["10:00"])
    end_time: str = Field(..., pattern=TIME_PATTERN, examples=["12:00"])
    room: Optional[str] = None

    @field_validator("end_time")
    @classmethod
    def validate_end_time(cls, value: str, info: ValidationInfo) -> str:
        start = info.data.get("start_time")
        if isinstance(start, str) and value <= start:
            raise ValueError("end_time must be later than start_time")
        return value

    def to_data(self) -> ScheduleData:
        return ScheduleData(
            day_of_week=self.day_of_week,
            start_time=self.start_time,
            end_time=self.end_time,
            room=self.room,
        )


class ScheduleUpdate(BaseModel):
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    start_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    room: Optional[str] = None

    @field_validator("end_time")
    @classmethod
    def validate_patch_end_time(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        start = info.data.get("start_time")
        if value is not None and isinstance(start, str) and value <= start:
            raise ValueError("end_time must be later than start_time")
        return value

    def ensure_any_field(self) -> None:
        if not self.model_dump(exclude_none=True):
            raise ValueError("At least one field must be provided for update")

    def to_patch(self) -> SchedulePatch:
        return SchedulePatch(**self.model_dump(exclude_none=True))


class ScheduleRead(BaseModel):
    id: str
    course_id: str
    day_of_week: int
    start_time: str
    end_time: str
    room: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Courses
# ---------------------------------------------------------------------------


class CourseCreate(BaseModel):
    title: str = Field(..., min_length=1, examples=["Introduction to TypeScript"])
    description: Optional[str] = None
    code: str = Field(..., min_length=1, max_length=64, examples=["TS101"])
    start_date: datetime
    end_date: datetime
    room: Optional[str] = None
    schedule: List[ScheduleSlot] = Field(default_factory=list)

    @field_validator("end_date")
    @classmethod
    def validate_date_range(cls, end_date: datetime, info: ValidationInfo) -> datetime:
        start = info.data.get("start_date")
        if isinstance(start, datetime) and end_date < start:
            raise ValueError("end_date must be on or after start_date")
        return end_date

    def to_data(self) -> CourseData:
        return CourseData(
            code=self.code,
            title=self.title,
            description=self.description,
            room=self.room,
            start_date=self.start_date,
            end_date=self.end_date,
            schedule=[slot.to_data() for slot in self.schedule],
        )


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    room: Optional[str] = None
    schedule: Optional[List[ScheduleSlot]] = Field(
        default=None, description="Replaces the existing schedule when present"
    )

    def ensure_any_field(self) -> None:
        if not self.model_dump(exclude_none=True):
            raise ValueError("At least one field must be provided for update")

    def to_patch(self) -> CoursePatch:
        return CoursePatch(
            title=self.title,
            description=self.description,
            room=self.room,
            start_date=self.start_date,
            end_date=self.end_date,
            schedule=None if self.schedule is None else [slot.to_data() for slot in self.schedule],
        )


class CourseSummary(BaseModel):
    id: str
    code: str
    title: str
    description: Optional[str] = None
    room: Optional[str] = None
    start_date: datetime
    end_date: datetime

    model_config = ConfigDict(from_attributes=True)


class CourseRead(CourseSummary):
    teacher_id: str
    created_at: datetime
    updated_at: datetime


class CourseDetail(CourseRead):
    schedules: List[ScheduleRead] = Field(default_factory=list)


class CourseListResponse(BaseModel):
    data: List[CourseRead]
    total: int
    page: int
    limit: int

    model_config = ConfigDict(from_attributes=True)


class CourseSchedulesResponse(BaseModel):
    course: CourseSummary
    schedules: List[ScheduleRead]

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# People
# ---------------------------------------------------------------------------


class UserPublic(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str

    model_config = ConfigDict(from_attributes=True)


class UserRoles(UserPublic):
    is_teacher: bool
    is_student: bool


class StudentRead(BaseModel):
    id: str
    user: UserPublic

    model_config = ConfigDict(from_attributes=True)


class TeacherProfileResponse(BaseModel):
    teacher_id: str
    user: UserPublic
    total_courses: int

    model_config = ConfigDict(from_attributes=True)


class UpdateUserRoleRequest(BaseModel):
    user_id: str
    is_teacher: bool


class UserRoleResponse(BaseModel):
    message: str
    user: UserRoles


# ---------------------------------------------------------------------------
# Enrollments
# ---------------------------------------------------------------------------


class EnrollmentCreate(BaseModel):
    course_id: str = Field(..., min_length=1)


class EnrollmentRead(BaseModel):
    id: str
    student_id: str
    course_id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EnrollmentDetail(EnrollmentRead):
    course: CourseRead


class EnrollmentListResponse(BaseModel):
    data: List[EnrollmentDetail]
    total: int
    page: int
    limit: int

    model_config = ConfigDict(from_attributes=True)


class EnrolledStudentRead(BaseModel):
    enrollment_id: str
    student_id: str
    user: UserPublic
    enrolled_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EnrolledStudentsResponse(BaseModel):
    course_id: str
    course_title: str
    total_enrolled: int
    students: List[EnrolledStudentRead]

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Grades
# ---------------------------------------------------------------------------


class GradeCreate(BaseModel):
    student_id: str = Field(..., min_length=1)
    course_id: str = Field(..., min_length=1)
    grade: float = Field(..., ge=0, le=100)


class GradeUpdate(BaseModel):
    grade: float = Field(..., ge=0, le=100)


class GradeRead(BaseModel):
    id: str
    student_id: str
    course_id: str
    teacher_id: str
    grade: float
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GradeWithCourse(GradeRead):
    course: CourseRead


class GradeWithStudent(GradeRead):
    student: StudentRead


class CourseStatisticsResponse(BaseModel):
    course_id: str
    course_title: str
    total_grades: int
    average_grade: float
    highest_grade: float
    lowest_grade: float

    model_config = ConfigDict(from_attributes=True)


class GradeStatisticsResponse(BaseModel):
    total_courses: int
    average_grade: float
    highest_grade: float
    lowest_grade: float

    model_config = ConfigDict(from_attributes=True)
