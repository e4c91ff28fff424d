# crms/api/endpoints/courses.py

from typing import List

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from crms.api.deps import (
    SERVICE_ERRORS,
    get_db_session,
    require_admins,
    require_dept_staff,
    require_student,
    role_required,
    to_http,
)
from crms.models.user import User, UserRole
from crms.schemas.academic import (
    AssignTeacherRequest,
    CourseCreate,
    CourseCsvImportResult,
    CourseIdRequest,
    CourseRead,
    StudentCourses,
)
from crms.services import course_service
from crms.services.audit_service import log_activity

router = APIRouter(prefix="/api", tags=["Courses"])

require_course_viewers = role_required(UserRole.teacher, UserRole.super_admin, UserRole.department_admin)


def is_csv_upload(upload: UploadFile) -> bool:
    return upload.content_type == "text/csv" or (upload.filename or "").lower().endswith(".csv")


# -------------------------------------------------------------------
# CREATE
# -------------------------------------------------------------------
async def _create(payload: CourseCreate, session: AsyncSession) -> CourseRead:
    try:
        course = await course_service.create_course(session, payload)
    except SERVICE_ERRORS as e:
        raise to_http(e)
    return CourseRead.model_validate(course)


@router.post("/add-course", response_model=CourseRead, status_code=status.HTTP_201_CREATED)
async def add_course(
    payload: CourseCreate,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admins),
):
    return await _create(payload, session)


@router.post(
    "/dashboard/department-admin/course",
    response_model=CourseRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_course_dept_admin(
    payload: CourseCreate,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admins),
):
    return await _create(payload, session)


@router.post("/add-courses-from-csv", response_model=CourseCsvImportResult)
async def add_courses_from_csv(
    csv_file: UploadFile = File(..., alias="csvFile"),
    department_id: int = Form(..., alias="departmentId"),
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admins),
):
    if not is_csv_upload(csv_file):
        raise HTTPException(400, detail="Only .csv files are allowed!")

    content = await csv_file.read()
    try:
        result = await course_service.import_courses_csv(session, content, department_id)
    except UnicodeDecodeError:
        raise HTTPException(400, detail="CSV file must be UTF-8 encoded.")
    except SERVICE_ERRORS as e:
        raise to_http(e)

    await log_activity(
        session, "COURSES_IMPORTED", current_user,
        details={"department_id": department_id, "created": result.created, "rejected": len(result.errors)},
    )
    return result


# -------------------------------------------------------------------
# LIST
# -------------------------------------------------------------------
@router.get("/get-courses", response_model=List[CourseRead])
async def get_courses(
    department_id: int = Query(..., alias="departmentId"),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admins),
):
    return await course_service.list_courses(session, department_id)


@router.get("/dashboard/department-admin/courses", response_model=List[CourseRead])
async def get_courses_dept_admin(
    department_id: int = Query(..., alias="departmentId"),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admins),
):
    return await course_service.list_courses(session, department_id)


@router.get(
    "/dashboard/department-admin/semester/{semester_id}/courses",
    response_model=List[CourseRead],
)
async def semester_courses(
    semester_id: int,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admins),
):
    try:
        return await course_service.courses_of_semester(session, semester_id)
    except SERVICE_ERRORS as e:
        raise to_http(e)


# -------------------------------------------------------------------
# DELETE
# -------------------------------------------------------------------
async def _delete(payload: CourseIdRequest, session: AsyncSession, current_user: User) -> dict:
    try:
        await course_service.delete_course(session, payload.course_id)
    except SERVICE_ERRORS as e:
        raise to_http(e)

    await log_activity(session, "COURSE_DELETED", current_user, details={"course_id": payload.course_id})
    return {"message": "Course deleted successfully."}


@router.delete("/delete-course")
async def delete_course(
    payload: CourseIdRequest,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admins),
):
    return await _delete(payload, session, current_user)


@router.delete("/dashboard/department-admin/course")
async def delete_course_dept_admin(
    payload: CourseIdRequest,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admins),
):
    return await _delete(payload, session, current_user)


@router.delete("/delete-all-courses")
async def delete_all_courses(
    department_id: int = Query(..., alias="departmentId"),
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admins),
):
    count = await course_service.delete_all_courses(session, department_id)
    await log_activity(session, "COURSES_DELETED", current_user, details={"department_id": department_id, "count": count})
    return {"message": "All courses deleted successfully.", "count": count}


# -------------------------------------------------------------------
# ARCHIVE
# -------------------------------------------------------------------
@router.patch("/archive-course", response_model=CourseRead)
async def archive_course(
    payload: CourseIdRequest,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_dept_staff),
):
    try:
        return await course_service.set_archived(session, payload.course_id, True)
    except SERVICE_ERRORS as e:
        raise to_http(e)


@router.patch("/unarchive-course", response_model=CourseRead)
async def unarchive_course(
    payload: CourseIdRequest,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_dept_staff),
):
    try:
        return await course_service.set_archived(session, payload.course_id, False)
    except SERVICE_ERRORS as e:
        raise to_http(e)


# -------------------------------------------------------------------
# DEFAULT TEACHER
# -------------------------------------------------------------------
@router.post("/dashboard/department-admin/assign-teacher", response_model=CourseRead)
async def assign_teacher(
    payload: AssignTeacherRequest,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admins),
):
    try:
        return await course_service.assign_teacher(session, payload.course_id, payload.teacher_id)
    except SERVICE_ERRORS as e:
        raise to_http(e)


# -------------------------------------------------------------------
# TEACHER / STUDENT COURSE LISTS
# -------------------------------------------------------------------
@router.get("/teacher/{teacher_id}/courses", response_model=List[CourseRead])
async def teacher_courses(
    teacher_id: int,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_course_viewers),
):
    try:
        return await course_service.courses_of_teacher(session, teacher_id)
    except SERVICE_ERRORS as e:
        raise to_http(e)


@router.get("/student/{student_id}/courses", response_model=StudentCourses)
async def student_courses(
    student_id: int,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_student),
):
    try:
        return StudentCourses(courses=await course_service.courses_of_student(session, student_id))
    except SERVICE_ERRORS as e:
        raise to_http(e)
