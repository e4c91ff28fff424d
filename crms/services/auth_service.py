# crms/services/auth_service.py

from typing import Optional

from loguru import logger
from sqlmodel import select
from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from crms.core.config import settings
from crms.core.exceptions import ConflictError
from crms.core.security import (
    hash_password,
    verify_password,
    create_access_token,
)
from crms.core.validators import is_non_empty, is_valid_email, is_valid_session, MIN_PASSWORD_LENGTH
from crms.models.academic import Course, Semester, SemesterCourseTeacher
from crms.models.department import Department
from crms.models.routine import RoutineEntry
from crms.models.user import User, UserRole
from crms.schemas.auth import SignupRequest, TokenWithUser
from crms.schemas.user import UserProfile, UserRead


# ============================================================================
# ROLE NORMALISATION
# ============================================================================
def normalize_role(role) -> str:
    if isinstance(role, UserRole):
        return role.value.strip().lower()
    return str(role).strip().lower()


def parse_role(role: str) -> UserRole:
    try:
        return UserRole(normalize_role(role))
    except ValueError:
        raise ValueError(f"Invalid role '{role}'.")


# ============================================================================
# FETCH USER BY EMAIL
# ============================================================================
async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


# ============================================================================
# FETCH USER BY ID
# ============================================================================
async def get_user_by_id(session: AsyncSession, user_id: int) -> User | None:
    return await session.get(User, user_id)


async def get_department_name(session: AsyncSession, department_id: Optional[int]) -> str | None:
    if not department_id:
        return None
    result = await session.execute(
        select(Department.name).where(Department.id == department_id)
    )
    return result.scalar_one_or_none()


async def to_user_read(session: AsyncSession, user: User) -> UserRead:
    department_name = await get_department_name(session, user.department_id)
    return UserRead.model_validate(user).model_copy(update={"department_name": department_name})


async def get_user_profile(session: AsyncSession, email: str) -> UserProfile:
    """Department flattened to name/acronym; blanks read "N/A"."""
    user = await get_user_by_email(session, email.strip().lower())
    if not user:
        raise LookupError("User not found")

    department = await session.get(Department, user.department_id) if user.department_id else None

    semester_name = None
    if user.role == UserRole.student and user.session and user.department_id:
        result = await session.execute(
            select(Semester.name)
            .where(Semester.department_id == user.department_id, Semester.session == user.session)
            .order_by(Semester.id)
        )
        semester_name = result.scalars().first()

    return UserProfile(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        department=department.name if department else "N/A",
        department_id=department.id if department else "N/A",
        department_acronym=(department.acronym if department else None) or "N/A",
        reg_no=user.reg_no or "N/A",
        mobile=user.mobile or "N/A",
        session=user.session or "N/A",
        semester=semester_name or "N/A",
        accesses=user.accesses or [],
    )


# ============================================================================
# SIGNUP VALIDATION
# ============================================================================
def validate_signup(data: SignupRequest) -> UserRole:
    """Returns the parsed role; raises ValueError with a readable message."""
    for field_name in ("name", "email", "password", "role"):
        if not is_non_empty(getattr(data, field_name)):
            raise ValueError("Name, email, password and role are required.")

    role = parse_role(data.role)

    if role != UserRole.super_admin and data.department is None:
        raise ValueError("Department is required for this role.")

    if role == UserRole.student and not is_non_empty(data.session):
        raise ValueError("Session is required for students.")

    if data.session and not is_valid_session(data.session):
        raise ValueError("Session must look like 2021-2022.")

    if not is_valid_email(data.email):
        raise ValueError("Invalid email format.")

    if len(data.password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")

    return role


# ============================================================================
# CREATE USER
# ============================================================================
async def create_user(
    session: AsyncSession,
    name: str,
    email: str,
    password: str,
    role: UserRole,
    department_id: int | None = None,
    user_session: str | None = None,
    reg_no: str | None = None,
    mobile: str | None = None,
) -> User:

    if role != UserRole.super_admin:
        if department_id is None:
            raise ValueError("Department is required for this role.")
        if not await session.get(Department, department_id):
            raise LookupError("Department not found.")

    email = email.strip().lower()
    if await get_user_by_email(session, email):
        raise ConflictError("Email already registered.")

    user = User(
        name=name.strip(),
        email=email,
        password_hash=hash_password(password),
        role=role,
        department_id=department_id if role != UserRole.super_admin else None,
        session=user_session,
        reg_no=reg_no,
        mobile=mobile,
    )

    session.add(user)

    try:
        await session.commit()
        await session.refresh(user)
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Email already registered.")

    logger.info(f"Registered {role.value} {user.email} (id={user.id})")
    return user


async def register(session: AsyncSession, data: SignupRequest) -> User:
    role = validate_signup(data)
    return await create_user(
        session,
        name=data.name,
        email=data.email,
        password=data.password,
        role=role,
        department_id=data.department,
        user_session=data.session,
        reg_no=data.reg_no,
        mobile=data.mobile,
    )


# ============================================================================
# AUTHENTICATE
# ============================================================================
async def authenticate_user(session: AsyncSession, email: str, password: str) -> User | None:
    user = await get_user_by_email(session, email.strip().lower())
    if not user:
        return None

    if not verify_password(password, user.password_hash):
        return None

    return user


# ============================================================================
# CREATE LOGIN RESPONSE
# ============================================================================
async def create_login_response(user: User, session: AsyncSession) -> TokenWithUser:
    role_str = normalize_role(user.role)
    user_read = await to_user_read(session, user)

    token = create_access_token(
        subject=str(user.id),
        data={
            "role": role_str,
            "email": user.email,
            "department_id": user.department_id,
        },
    )

    return TokenWithUser(
        access_token=token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        role=role_str,
        email=user.email,
        user=user_read,
    )


# ============================================================================
# LIST USERS
# ============================================================================
async def list_users(session: AsyncSession, department_id: int | None = None) -> list[User]:
    query = select(User).order_by(User.id)
    if department_id is not None:
        query = query.where(User.department_id == department_id)
    result = await session.execute(query)
    return result.scalars().all()


async def list_users_with_department(session: AsyncSession, department_id: int | None = None) -> list[UserRead]:
    users = await list_users(session, department_id)
    departments = {d.id: d.name for d in (await session.execute(select(Department))).scalars().all()}
    return [
        UserRead.model_validate(u).model_copy(update={"department_name": departments.get(u.department_id)})
        for u in users
    ]


async def list_teachers(session: AsyncSession, department_id: int | None = None) -> list[User]:
    query = select(User).where(User.role == UserRole.teacher).order_by(User.name)
    if department_id is not None:
        query = query.where(User.department_id == department_id)
    result = await session.execute(query)
    return result.scalars().all()


# ============================================================================
# DELETE USER
# ============================================================================
async def delete_user_by_id(session: AsyncSession, user_id: int) -> User:
    user = await get_user_by_id(session, user_id)

    if not user:
        raise LookupError("User not found.")

    if user.role == UserRole.super_admin:
        raise PermissionError("Super admin accounts cannot be deleted.")

    await session.execute(update(Course).where(Course.teacher_id == user_id).values(teacher_id=None))
    await session.execute(update(RoutineEntry).where(RoutineEntry.teacher_id == user_id).values(teacher_id=None))
    await session.execute(delete(SemesterCourseTeacher).where(SemesterCourseTeacher.teacher_id == user_id))

    await session.delete(user)
    await session.commit()
    logger.info(f"Deleted user {user.email} (id={user_id})")
    return user


# ============================================================================
# SEED SUPER ADMIN
# ============================================================================
async def ensure_super_admin(session: AsyncSession) -> User | None:
    email = settings.SUPER_ADMIN_EMAIL
    password = settings.SUPER_ADMIN_PASSWORD
    if not email or not password:
        logger.warning("SUPER_ADMIN_EMAIL / SUPER_ADMIN_PASSWORD not set, skipping seeding")
        return None

    existing = await get_user_by_email(session, email.strip().lower())
    if existing:
        return existing

    user = await create_user(
        session,
        name=settings.SUPER_ADMIN_NAME or "Super Admin",
        email=email,
        password=password,
        role=UserRole.super_admin,
    )
    logger.success(f"Seeded super admin {user.email}")
    return user
