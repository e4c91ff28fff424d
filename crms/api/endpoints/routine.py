# crms/api/endpoints/routine.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from crms.api.deps import SERVICE_ERRORS, get_current_user, get_db_session, require_admins, to_http
from crms.models.routine import RoutineEntry
from crms.models.user import User
from crms.schemas.routine import (
    FinalRoutine,
    PreviewRequest,
    RoutineEntryCreate,
    RoutineEntryDetail,
    RoutineEntryRead,
    RoutineGrid,
    RoutinePreview,
    SaveRoutineRequest,
    StudentRoutine,
    TeacherRoutine,
)
from crms.services import routine_service
from crms.services.audit_service import log_activity
from crms.services.routine_grid import RoutineFilter, build_grid

router = APIRouter(prefix="/api", tags=["Routine"])


def routine_filter(
    room: Optional[int] = None,
    semester: Optional[int] = None,
    course: Optional[int] = None,
    teacher: Optional[int] = None,
    lab: Optional[int] = None,
) -> RoutineFilter:
    return RoutineFilter(room=room, semester=semester, course=course, teacher=teacher, lab=lab)


# -------------------------------------------------------------------
# BY DIMENSION
# -------------------------------------------------------------------
@router.get("/routine/room/{room_id}", response_model=List[RoutineEntryDetail])
async def by_room(
    room_id: int,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(get_current_user),
):
    return await routine_service.list_by(session, "room", room_id)


@router.get("/routine/semester/{semester_id}", response_model=List[RoutineEntryDetail])
async def by_semester(
    semester_id: int,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(get_current_user),
):
    return await routine_service.list_by(session, "semester", semester_id)


@router.get("/routine/course/{course_id}", response_model=List[RoutineEntryDetail])
async def by_course(
    course_id: int,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(get_current_user),
):
    return await routine_service.list_by(session, "course", course_id)


@router.get("/routine/teacher/{teacher_id}", response_model=TeacherRoutine)
async def by_teacher(
    teacher_id: int,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(get_current_user),
):
    try:
        return await routine_service.teacher_routine(session, teacher_id)
    except SERVICE_ERRORS as e:
        raise to_http(e)


# -------------------------------------------------------------------
# DEPARTMENT ROUTINE
# -------------------------------------------------------------------
@router.get("/routine/final", response_model=FinalRoutine)
async def final_routine(
    department_id: int = Query(..., alias="departmentId"),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(get_current_user),
):
    return FinalRoutine(routine=await routine_service.final_routine(session, department_id))


@router.get("/dashboard/department-admin/weekly-schedules", response_model=List[RoutineEntryDetail])
async def weekly_schedules(
    department_id: int = Query(..., alias="departmentId"),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admins),
):
    return await routine_service.final_routine(session, department_id)


@router.get("/routine/student/{student_id}", response_model=StudentRoutine)
async def student_routine(
    student_id: int,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(get_current_user),
):
    try:
        return await routine_service.student_routine(session, student_id)
    except SERVICE_ERRORS as e:
        raise to_http(e)


# -------------------------------------------------------------------
# GRID
# -------------------------------------------------------------------
@router.get("/routine/grid", response_model=RoutineGrid)
async def department_grid(
    department_id: int = Query(..., alias="departmentId"),
    filters: RoutineFilter = Depends(routine_filter),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(get_current_user),
):
    entries = await routine_service.load_entries(session, RoutineEntry.department_id == department_id)
    return build_grid(entries, filters)


@router.get("/routine/my-grid", response_model=RoutineGrid)
async def my_grid(
    department_id: Optional[int] = Query(default=None, alias="departmentId"),
    filters: RoutineFilter = Depends(routine_filter),
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    """What the caller's dashboard shows, by role."""
    try:
        entries = await routine_service.entries_for_user(session, current_user, department_id)
    except SERVICE_ERRORS as e:
        raise to_http(e)
    return build_grid(entries, filters)


# -------------------------------------------------------------------
# MANUAL ENTRIES
# -------------------------------------------------------------------
async def _add_entry(payload: RoutineEntryCreate, session: AsyncSession, current_user: User) -> RoutineEntryRead:
    try:
        entry = await routine_service.add_entry(session, payload)
    except SERVICE_ERRORS as e:
        raise to_http(e)

    result = RoutineEntryRead.model_validate(entry)
    await log_activity(session, "ROUTINE_ENTRY_ADDED", current_user, details=result.model_dump(mode="json"))
    return result


@router.post("/routine/entry", response_model=RoutineEntryRead, status_code=status.HTTP_201_CREATED)
async def add_entry(
    payload: RoutineEntryCreate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admins),
):
    return await _add_entry(payload, session, current_user)


@router.post(
    "/dashboard/department-admin/weekly-schedule",
    response_model=RoutineEntryRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_weekly_schedule(
    payload: RoutineEntryCreate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admins),
):
    return await _add_entry(payload, session, current_user)


@router.patch("/routine/entry/{entry_id}/cancel", response_model=RoutineEntryRead)
async def cancel_entry(
    entry_id: int,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admins),
):
    try:
        entry = await routine_service.set_canceled(session, entry_id, True)
    except SERVICE_ERRORS as e:
        raise to_http(e)

    result = RoutineEntryRead.model_validate(entry)
    await log_activity(session, "ROUTINE_ENTRY_CANCELED", current_user, details={"entry_id": entry_id})
    return result


@router.patch("/routine/entry/{entry_id}/uncancel", response_model=RoutineEntryRead)
async def uncancel_entry(
    entry_id: int,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admins),
):
    try:
        entry = await routine_service.set_canceled(session, entry_id, False)
    except SERVICE_ERRORS as e:
        raise to_http(e)

    result = RoutineEntryRead.model_validate(entry)
    await log_activity(session, "ROUTINE_ENTRY_UNCANCELED", current_user, details={"entry_id": entry_id})
    return result


@router.delete("/routine/entry/{entry_id}")
async def delete_entry(
    entry_id: int,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admins),
):
    try:
        await routine_service.delete_entry(session, entry_id)
    except LookupError:
        raise to_http(LookupError("Entry not found."))

    await log_activity(session, "ROUTINE_ENTRY_DELETED", current_user, details={"entry_id": entry_id})
    return {"message": "Entry deleted successfully."}


@router.delete("/routine/department/{department_id}")
async def delete_department_routine(
    department_id: int,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admins),
):
    count = await routine_service.delete_department_entries(session, department_id)
    await log_activity(session, "ROUTINE_CLEARED", current_user, details={"department_id": department_id, "count": count})
    return {"message": "All entries deleted successfully.", "count": count}


# -------------------------------------------------------------------
# GENERATOR
# -------------------------------------------------------------------
@router.post("/routine/preview", response_model=RoutinePreview)
async def preview(
    payload: PreviewRequest,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admins),
):
    """Greedy placement of the semesters' major courses. Nothing is saved."""
    try:
        return await routine_service.preview_routine(session, payload)
    except SERVICE_ERRORS as e:
        raise to_http(e)


@router.post("/routine/generate", status_code=status.HTTP_201_CREATED)
async def save_generated(
    payload: SaveRoutineRequest,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admins),
):
    try:
        count = await routine_service.save_routine(session, payload)
    except SERVICE_ERRORS as e:
        raise to_http(e)

    await log_activity(
        session, "ROUTINE_SAVED", current_user,
        details={"department_id": payload.department_id, "semester_ids": payload.semester_ids, "entries": count},
    )
    return {"message": "Routine saved successfully for the selected semesters.", "count": count}
