import os

# Settings are read at import time, so the test environment must be in place first.
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["RATE_LIMIT_ENABLED"] = "false"

from dataclasses import dataclass

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.auth.auth_service import create_token_for_user
from src.common.database.database import enable_sqlite_foreign_keys
from src.models.models import Base, Subject, SubjectStudent, SubjectTeacher, User, UserRole
from src.modules.subjects.subject_registry import SqlSubjectRegistry


@dataclass
class School:
    subject: Subject
    admin: User
    teacher: User
    other_teacher: User
    student: User
    classmate: User
    outsider: User


def make_user(username: str, role: UserRole) -> User:
    return User(
        username=username,
        email=f"{username}@school.test",
        first_name=username.title(),
        last_name="Tester",
        role=role,
    )


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_token_for_user(user)}"}


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = enable_sqlite_foreign_keys(create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'discussions.db'}"))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def registry(db):
    return SqlSubjectRegistry(db)


@pytest_asyncio.fixture
async def school(db) -> School:
    """
    One subject with an assigned teacher and two enrolled students, plus
    users who have no relationship with it.
    """
    users = {
        "admin": make_user("admin", UserRole.ADMIN),
        "teacher": make_user("teacher", UserRole.TEACHER),
        "other_teacher": make_user("other_teacher", UserRole.TEACHER),
        "student": make_user("student", UserRole.STUDENT),
        "classmate": make_user("classmate", UserRole.STUDENT),
        "outsider": make_user("outsider", UserRole.STUDENT),
    }
    db.add_all(users.values())
    await db.flush()

    subject = Subject(subject_name="Science 7", grade_level="Grade 7", section="Rizal")
    subject.teacher_assignments.append(SubjectTeacher(teacher_id=users["teacher"].id, quarter="Q1"))
    subject.enrollments.append(SubjectStudent(student_id=users["student"].id))
    subject.enrollments.append(SubjectStudent(student_id=users["classmate"].id))
    db.add(subject)
    await db.commit()

    return School(subject=subject, **users)


@pytest_asyncio.fixture
async def client(session_factory):
    from src.common.database.database import get_db_session
    from src.main import app

    async def override_get_db_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
