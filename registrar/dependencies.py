"""FastAPI dependencies for the store handle, identity and role gates."""
from __future__ import annotations

import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt
from jose.exceptions import JWTError
from sqlalchemy.orm import Session, sessionmaker

from .config import JWT_ALGORITHM, JWT_SECRET
from .db.models import Student, Teacher
from .errors import UnauthorizedError
from .services import (
    CourseService,
    EnrollmentService,
    GradeService,
    Identity,
    RoleGuard,
    ScheduleService,
    UserService,
)

LOGGER = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_session_factory(request: Request) -> sessionmaker[Session]:
    return request.app.state.session_factory


def decode_subject(token: str) -> str | None:
    """Return the ``sub`` claim of a bearer token signed by the identity provider."""

    try:
        claims = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError as exc:
        LOGGER.warning("Rejected bearer token: %s", exc)
        raise UnauthorizedError("Invalid token") from exc
    subject = claims.get("sub")
    return str(subject) if subject else None


def get_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Identity:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError()
    return Identity(subject_id=decode_subject(credentials.credentials))


def get_role_guard(factory: sessionmaker[Session] = Depends(get_session_factory)) -> RoleGuard:
    return RoleGuard(factory)


def require_teacher(
    identity: Identity = Depends(get_identity),
    guard: RoleGuard = Depends(get_role_guard),
) -> Teacher:
    return guard.require_teacher(identity)


def require_student(
    identity: Identity = Depends(get_identity),
    guard: RoleGuard = Depends(get_role_guard),
) -> Student:
    return guard.require_student(identity)


def get_course_service(factory: sessionmaker[Session] = Depends(get_session_factory)) -> CourseService:
    return CourseService(factory)


def get_schedule_service(
    factory: sessionmaker[Session] = Depends(get_session_factory),
) -> ScheduleService:
    return ScheduleService(factory)


def get_enrollment_service(
    factory: sessionmaker[Session] = Depends(get_session_factory),
) -> EnrollmentService:
    return EnrollmentService(factory)


def get_grade_service(factory: sessionmaker[Session] = Depends(get_session_factory)) -> GradeService:
    return GradeService(factory)


def get_user_service(factory: sessionmaker[Session] = Depends(get_session_factory)) -> UserService:
    return UserService(factory)
