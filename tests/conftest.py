from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterator

import pytest
import sqlalchemy as sa
from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from registrar.db import Base, create_session_factory, init_db, session_scope
from registrar.errors import ConflictError
from registrar.services import CourseData, ScheduleData, UserService


@dataclass
class Actor:
    user_id: str
    teacher_id: str | None = None
    student_id: str | None = None


@pytest.fixture()
def session_factory(tmp_path) -> Iterator[sessionmaker[Session]]:
    factory = create_session_factory(f"sqlite:///{(tmp_path / 'test.db').as_posix()}")
    engine = factory.kw["bind"]
    init_db(engine)
    try:
        yield factory
    finally:
        engine.dispose()


def _register(factory: sessionmaker[Session], email: str, *, teacher: bool, student: bool) -> Actor:
    user = UserService(factory).register(
        email, email.split("@")[0].title(), "Tester", teacher=teacher, student=student
    )
    return Actor(
        user_id=user.id,
        teacher_id=user.teacher.id if user.teacher else None,
        student_id=user.student.id if user.student else None,
    )


@pytest.fixture()
def register(session_factory):
    def _factory(email: str, *, teacher: bool = False, student: bool = True) -> Actor:
        return _register(session_factory, email, teacher=teacher, student=student)

    return _factory


@pytest.fixture()
def teacher_a(register) -> Actor:
    return register("alice@example.com", teacher=True, student=False)


@pytest.fixture()
def teacher_b(register) -> Actor:
    return register("bob@example.com", teacher=True, student=False)


@pytest.fixture()
def student(register) -> Actor:
    return register("sam@example.com")


def course_data(code: str = "CS101", title: str = "Computer Science", **overrides) -> CourseData:
    values = {
        "code": code,
        "title": title,
        "description": "Foundations of computing",
        "start_date": datetime(2025, 9, 1, 9, 0, tzinfo=timezone.utc),
        "end_date": datetime(2025, 12, 15, 17, 0, tzinfo=timezone.utc),
        "schedule": [
            ScheduleData(day_of_week=3, start_time="14:00", end_time="16:00"),
            ScheduleData(day_of_week=1, start_time="10:00", end_time="12:00", room="A2.1"),
        ],
    }
    values.update(overrides)
    return CourseData(**values)


def count_rows(factory: sessionmaker[Session], model: type[Base], *criteria) -> int:
    with session_scope(factory) as session:
        stmt = select(sa.func.count()).select_from(model)
        if criteria:
            stmt = stmt.where(*criteria)
        return session.scalar(stmt) or 0


def race(workers: int, attempt: Callable[[int], object]) -> list[str]:
    """Start ``workers`` threads on ``attempt`` at once; report each outcome."""
    barrier = threading.Barrier(workers)
    outcomes: list[str] = []
    lock = threading.Lock()

    def worker(index: int) -> None:
        barrier.wait(timeout=5)
        try:
            attempt(index)
        except ConflictError:
            outcome = "conflict"
        except Exception as exc:  # pragma: no cover - diagnostic path
            outcome = f"error: {exc!r}"
        else:
            outcome = "ok"
        with lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=worker, args=(index,)) for index in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return sorted(outcomes)
