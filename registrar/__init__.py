"""Academic records service: courses, schedules, enrollments and grades."""
