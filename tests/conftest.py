import os
from functools import lru_cache
from itertools import count

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# ------------------------------------------------------------------
# TEST SETTINGS
# Must be set BEFORE importing crms.main: Settings() is read at import.
# ------------------------------------------------------------------
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["ENV"] = "dev"
os.environ["LOGIN_RATE_LIMIT"] = "1000/minute"
for var in ("REDIS_URL", "SUPER_ADMIN_EMAIL", "SUPER_ADMIN_PASSWORD"):
    os.environ.pop(var, None)

from crms.main import app
from crms.api.deps import get_db_session
from crms.core.database import build_engine, init_db
from crms.core.security import create_access_token, hash_password
from crms.models.user import User, UserRole
from crms.services import department_service
from crms.services.semester_service import list_semesters

STUDENT_SESSION = "2021-2022"


@lru_cache(maxsize=None)
def hashed(password: str) -> str:
    # bcrypt is slow, hash each test password once
    return hash_password(password)


# ------------------------------------------------------------------
# DATABASE: fresh in-memory SQLite per test
# ------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite://")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """Every request gets its own session on the test database."""
    async def override_get_db_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


# ------------------------------------------------------------------
# USERS AND TOKENS
# ------------------------------------------------------------------
@pytest.fixture
def make_user(db_session):
    numbers = count(1)

    async def _make(
        role: UserRole = UserRole.teacher,
        department_id=None,
        name=None,
        email=None,
        user_session=None,
        accesses=None,
        password="password123",
    ) -> User:
        n = next(numbers)
        user = User(
            name=name or f"{role.value.replace('_', ' ').title()} {n}",
            email=email or f"{role.value}{n}@example.com",
            password_hash=hashed(password),
            role=role,
            department_id=department_id,
            session=user_session,
            accesses=accesses or [],
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        token = create_access_token(subject=user.id, data={"role": user.role.value, "email": user.email})
        return {"Authorization": f"Bearer {token}"}

    return _headers


# ------------------------------------------------------------------
# COMMON DATA
# ------------------------------------------------------------------
@pytest_asyncio.fixture
async def department(db_session):
    return await department_service.create_department(db_session, "Computer Science and Engineering", "CSE")


@pytest_asyncio.fixture
async def other_department(db_session):
    return await department_service.create_department(db_session, "Electrical and Electronic Engineering", "EEE")


@pytest_asyncio.fixture
async def semesters(db_session, department):
    return await list_semesters(db_session, department.id)


@pytest_asyncio.fixture
async def super_admin(make_user):
    return await make_user(UserRole.super_admin, name="Root Admin", email="root@example.com")


@pytest_asyncio.fixture
async def dept_admin(make_user, department):
    return await make_user(UserRole.department_admin, department_id=department.id, name="CSE Admin")


@pytest_asyncio.fixture
async def teacher(make_user, department):
    return await make_user(UserRole.teacher, department_id=department.id, name="Alice Rahman")


@pytest_asyncio.fixture
async def student(make_user, department):
    return await make_user(
        UserRole.student, department_id=department.id, name="Sami Student", user_session=STUDENT_SESSION
    )


@pytest.fixture
def super_headers(auth_headers, super_admin):
    return auth_headers(super_admin)


@pytest.fixture
def admin_headers(auth_headers, dept_admin):
    return auth_headers(dept_admin)


@pytest.fixture
def teacher_headers(auth_headers, teacher):
    return auth_headers(teacher)


@pytest.fixture
def student_headers(auth_headers, student):
    return auth_headers(student)
