"""Convenient re-exports for the service layer."""
from __future__ import annotations

from .common import Identity, Page, PageRequest
from .courses import (
    CourseData,
    CoursePatch,
    CourseService,
    EnrolledStudent,
    EnrolledStudents,
    ScheduleData,
    TeacherProfile,
)
from .enrollments import EnrollmentService
from .grades import CourseStatistics, GradeService, GradeStatistics
from .roles import RoleGuard
from .schedules import CourseSchedules, SchedulePatch, ScheduleService
from .users import UserService

__all__ = [
    "CourseData",
    "CoursePatch",
    "CourseSchedules",
    "CourseService",
    "CourseStatistics",
    "EnrolledStudent",
    "EnrolledStudents",
    "EnrollmentService",
    "GradeService",
    "GradeStatistics",
    "Identity",
    "Page",
    "PageRequest",
    "RoleGuard",
    "ScheduleData",
    "SchedulePatch",
    "ScheduleService",
    "TeacherProfile",
    "UserService",
]
