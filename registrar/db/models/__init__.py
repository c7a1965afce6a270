"""SQLAlchemy model package."""
from registrar.db.models.course import Course
from registrar.db.models.enrollment import Enrollment
from registrar.db.models.grade import Grade
from registrar.db.models.schedule import Schedule
from registrar.db.models.student import Student
from registrar.db.models.teacher import Teacher
from registrar.db.models.user import User

__all__ = [
    "Course",
    "Enrollment",
    "Grade",
    "Schedule",
    "Student",
    "Teacher",
    "User",
]
