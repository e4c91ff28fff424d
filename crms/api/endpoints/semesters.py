# crms/api/endpoints/semesters.py

from typing import List

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from crms.api.deps import SERVICE_ERRORS, get_db_session, require_admins, require_dept_staff, to_http
from crms.models.academic import Semester
from crms.models.user import User
from crms.schemas.academic import (
    AssignmentResponse,
    SemesterCourseTeacherCreate,
    SemesterCourseTeacherRead,
    SemesterCourseWithTeacher,
    SemesterCoursesAdd,
    SemesterCreate,
    SemesterCsvImportResult,
    SemesterRead,
    SemesterWithCourses,
    SetSessionRequest,
)
from crms.services import semester_service
from crms.services.audit_service import log_activity

router = APIRouter(prefix="/api", tags=["Semesters"])

MAX_CSV_BYTES = 5 * 1024 * 1024


# -------------------------------------------------------------------
# CREATE / LIST
# -------------------------------------------------------------------
async def _create(payload: SemesterCreate, session: AsyncSession, current_user: User) -> Semester:
    try:
        return await semester_service.create_semester(session, payload, current_user)
    except SERVICE_ERRORS as e:
        raise to_http(e)


@router.post("/add-semester", response_model=SemesterRead, status_code=status.HTTP_201_CREATED)
async def add_semester(
    payload: SemesterCreate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_dept_staff),
):
    return await _create(payload, session, current_user)


@router.post(
    "/dashboard/department-admin/semester",
    response_model=SemesterRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_semester_dept_admin(
    payload: SemesterCreate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admins),
):
    return await _create(payload, session, current_user)


@router.get("/dashboard/department-admin/semesters", response_model=List[SemesterRead])
async def list_semesters(
    department_id: int = Query(..., alias="departmentId"),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admins),
):
    return await semester_service.list_semesters(session, department_id)


# -------------------------------------------------------------------
# DELETE / ARCHIVE
# -------------------------------------------------------------------
@router.delete("/delete-semester/{semester_id}")
async def delete_semester(
    semester_id: int,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_dept_staff),
):
    try:
        await semester_service.delete_semester(session, semester_id)
    except LookupError:
        raise HTTPException(404, detail="Semester not found. It may have already been deleted.")

    await log_activity(session, "SEMESTER_DELETED", current_user, details={"semester_id": semester_id})
    return {"message": "Semester and all related data deleted successfully."}


@router.post("/archive-semester/{semester_id}", response_model=SemesterRead)
async def archive_semester(
    semester_id: int,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_dept_staff),
):
    try:
        return await semester_service.set_archived(session, semester_id, True)
    except SERVICE_ERRORS as e:
        raise to_http(e)


@router.post("/unarchive-semester/{semester_id}", response_model=SemesterRead)
async def unarchive_semester(
    semester_id: int,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_dept_staff),
):
    try:
        return await semester_service.set_archived(session, semester_id, False)
    except SERVICE_ERRORS as e:
        raise to_http(e)


# -------------------------------------------------------------------
# SESSION
# -------------------------------------------------------------------
async def _set_session(payload: SetSessionRequest, session: AsyncSession):
    try:
        return await semester_service.set_session(session, payload.semester_id, payload.session)
    except SERVICE_ERRORS as e:
        raise to_http(e)


@router.post("/semester/set-session", response_model=SemesterRead)
async def set_session(
    payload: SetSessionRequest,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admins),
):
    return await _set_session(payload, session)


@router.post("/dashboard/department-admin/semester/set-session", response_model=SemesterRead)
async def set_session_dept_admin(
    payload: SetSessionRequest,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admins),
):
    return await _set_session(payload, session)


# -------------------------------------------------------------------
# COURSES OF A SEMESTER
# -------------------------------------------------------------------
@router.post("/dashboard/department-admin/semester/course", response_model=SemesterWithCourses)
async def add_courses(
    payload: SemesterCoursesAdd,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admins),
):
    course_ids = list(payload.course_ids)
    if not course_ids and payload.course_id is not None:
        course_ids = [payload.course_id]

    try:
        return await semester_service.add_courses(session, payload.semester_id, course_ids)
    except SERVICE_ERRORS as e:
        raise to_http(e)


@router.post(
    "/dashboard/department-admin/semester/course/upload-csv",
    response_model=SemesterCsvImportResult,
)
async def add_courses_from_csv(
    file: UploadFile = File(...),
    semester_id: int = Form(..., alias="semesterId"),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admins),
):
    content = await file.read()
    if len(content) > MAX_CSV_BYTES:
        raise HTTPException(413, detail="File too large (max 5 MB).")

    try:
        return await semester_service.add_courses_from_csv(session, semester_id, content)
    except UnicodeDecodeError:
        raise HTTPException(400, detail="CSV file must be UTF-8 encoded.")
    except SERVICE_ERRORS as e:
        raise to_http(e)


async def _remove_course(semester_id: int, course_id: int, session: AsyncSession) -> dict:
    try:
        await semester_service.remove_course(session, semester_id, course_id)
    except SERVICE_ERRORS as e:
        raise to_http(e)
    return {"message": "Course removed from semester successfully."}


@router.delete("/semester/{semester_id}/course/{course_id}")
async def remove_course(
    semester_id: int,
    course_id: int,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admins),
):
    return await _remove_course(semester_id, course_id, session)


@router.delete("/dashboard/department-admin/semester/{semester_id}/course/{course_id}")
async def remove_course_dept_admin(
    semester_id: int,
    course_id: int,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admins),
):
    return await _remove_course(semester_id, course_id, session)


# -------------------------------------------------------------------
# TEACHER PER SEMESTER COURSE
# -------------------------------------------------------------------
@router.post(
    "/add-semesterCourseTeacher",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def assign_semester_teacher(
    payload: SemesterCourseTeacherCreate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_dept_staff),
):
    try:
        assignment = await semester_service.assign_semester_teacher(
            session, payload.semester_id, payload.course_id, payload.teacher_id
        )
    except SERVICE_ERRORS as e:
        raise to_http(e)

    result = AssignmentResponse(assignment=SemesterCourseTeacherRead.model_validate(assignment))
    await log_activity(
        session, "SEMESTER_TEACHER_ASSIGNED", current_user,
        details={"semester_id": payload.semester_id, "course_id": payload.course_id, "teacher_id": payload.teacher_id},
    )
    return result


@router.get("/get-semester-courses/{semester_id}", response_model=List[SemesterCourseWithTeacher])
async def semester_courses_with_teachers(
    semester_id: int,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_dept_staff),
):
    return await semester_service.semester_courses_with_teachers(session, semester_id)
