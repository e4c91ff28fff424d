import pytest
import pytest_asyncio

from crms.models.user import UserRole
from crms.schemas.academic import CourseCreate
from crms.schemas.resource import LabCreate, RoomCreate
from crms.services import course_service, resource_service, semester_service

STUDENT_SESSION = "2021-2022"


@pytest_asyncio.fixture
async def routine_data(db_session, department, semesters, teacher, make_user):
    """Two semesters, two courses, two teachers, two rooms and a lab."""
    data_structures = await course_service.create_course(db_session, CourseCreate(
        name="Data Structures", code="CSE201", department_id=department.id, for_dept=department.id, is_major=True,
    ))
    networks = await course_service.create_course(db_session, CourseCreate(
        name="Networks", code="CSE301", department_id=department.id, for_dept=department.id, is_major=True,
    ))
    room_a = await resource_service.create_room(db_session, RoomCreate(room_number="301", department_id=department.id))
    room_b = await resource_service.create_room(db_session, RoomCreate(room_number="302", department_id=department.id))
    lab = await resource_service.create_lab(db_session, LabCreate(lab_number="L-1", department_id=department.id))
    other_teacher = await make_user(UserRole.teacher, department_id=department.id, name="Bashir Ahmed")

    return {
        "department": department,
        "sem_a": semesters[2],
        "sem_b": semesters[4],
        "course_a": data_structures,
        "course_b": networks,
        "teacher_a": teacher,
        "teacher_b": other_teacher,
        "room_a": room_a,
        "room_b": room_b,
        "lab": lab,
    }


def entry_payload(routine_data, day="SUNDAY", start="08:00", end="09:00", semester="sem_a",
                  course="course_a", teacher="teacher_a", room="room_a", lab=None):
    payload = {
        "departmentId": routine_data["department"].id,
        "semesterId": routine_data[semester].id,
        "dayOfWeek": day,
        "startTime": start,
        "endTime": end,
        "courseId": routine_data[course].id,
        "teacherId": routine_data[teacher].id if teacher else None,
        "roomId": routine_data[room].id if room else None,
        "labId": routine_data[lab].id if lab else None,
    }
    return payload


async def add(client, headers, payload):
    return await client.post("/api/routine/entry", json=payload, headers=headers)


# ------------------------------------------------------------------
# MANUAL ENTRIES
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_add_entry(client, routine_data, admin_headers):
    res = await add(client, admin_headers, entry_payload(routine_data))
    assert res.status_code == 201

    data = res.json()
    assert data["dayOfWeek"] == "SUNDAY"
    assert data["startTime"] == "08:00"
    assert data["isCanceled"] is False
    assert data["isBreak"] is False


@pytest.mark.asyncio
async def test_dashboard_route_adds_entry(client, routine_data, super_headers):
    res = await client.post("/api/dashboard/department-admin/weekly-schedule", json=entry_payload(routine_data), headers=super_headers)
    assert res.status_code == 201


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "clash, source",
    [
        # same semester, everything else different
        ({"course": "course_b", "teacher": "teacher_b", "room": "room_b"}, "semester"),
        # same teacher in another semester
        ({"semester": "sem_b", "course": "course_b", "room": "room_b"}, "teacher"),
        # same room in another semester
        ({"semester": "sem_b", "course": "course_b", "teacher": "teacher_b"}, "room"),
    ],
)
async def test_conflicts_name_the_busy_resource(client, routine_data, admin_headers, clash, source):
    assert (await add(client, admin_headers, entry_payload(routine_data))).status_code == 201

    res = await add(client, admin_headers, entry_payload(routine_data, **clash))
    assert res.status_code == 409
    assert res.json()["detail"] == f"Conflict found. The selected {source} is already busy at this time."


@pytest.mark.asyncio
async def test_lab_conflict_wins_over_teacher(client, routine_data, admin_headers):
    first = entry_payload(routine_data, room=None, lab="lab")
    assert (await add(client, admin_headers, first)).status_code == 201

    res = await add(client, admin_headers, entry_payload(routine_data, semester="sem_b", room=None, lab="lab"))
    assert res.status_code == 409
    assert "selected lab" in res.json()["detail"]


@pytest.mark.asyncio
async def test_no_conflict_at_other_time(client, routine_data, admin_headers):
    assert (await add(client, admin_headers, entry_payload(routine_data))).status_code == 201
    res = await add(client, admin_headers, entry_payload(routine_data, start="09:00", end="10:00"))
    assert res.status_code == 201


@pytest.mark.asyncio
async def test_entry_time_validation(client, routine_data, admin_headers):
    backwards = await add(client, admin_headers, entry_payload(routine_data, start="10:00", end="09:00"))
    assert backwards.status_code == 400

    malformed = await add(client, admin_headers, entry_payload(routine_data, start="8am"))
    assert malformed.status_code == 422


@pytest.mark.asyncio
async def test_entry_needs_existing_semester(client, routine_data, admin_headers):
    payload = entry_payload(routine_data)
    payload["semesterId"] = 9999
    assert (await add(client, admin_headers, payload)).status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "field, label",
    [("courseId", "Course"), ("teacherId", "Teacher"), ("roomId", "Room"), ("labId", "Lab")],
)
async def test_entry_needs_existing_references(client, routine_data, admin_headers, field, label):
    payload = entry_payload(routine_data)
    payload[field] = 9999
    res = await add(client, admin_headers, payload)
    assert res.status_code == 404
    assert res.json()["detail"] == f"{label} not found."


@pytest.mark.asyncio
async def test_entry_semester_must_match_department(client, db_session, routine_data, other_department, admin_headers):
    [foreign_semester, *_] = await semester_service.list_semesters(db_session, other_department.id)
    payload = entry_payload(routine_data)
    payload["semesterId"] = foreign_semester.id

    res = await add(client, admin_headers, payload)
    assert res.status_code == 400
    assert res.json()["detail"] == "Semester does not belong to this department."


@pytest.mark.asyncio
async def test_teachers_cannot_write_routine(client, routine_data, teacher_headers):
    assert (await add(client, teacher_headers, entry_payload(routine_data))).status_code == 403


@pytest.mark.asyncio
async def test_cancelled_entry_keeps_its_slot(client, routine_data, admin_headers):
    entry_id = (await add(client, admin_headers, entry_payload(routine_data))).json()["id"]

    res = await client.patch(f"/api/routine/entry/{entry_id}/cancel", headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["isCanceled"] is True

    clash = await add(client, admin_headers, entry_payload(routine_data, course="course_b", teacher="teacher_b", room="room_b"))
    assert clash.status_code == 409

    res = await client.patch(f"/api/routine/entry/{entry_id}/uncancel", headers=admin_headers)
    assert res.json()["isCanceled"] is False


@pytest.mark.asyncio
async def test_delete_entry(client, routine_data, admin_headers):
    entry_id = (await add(client, admin_headers, entry_payload(routine_data))).json()["id"]

    assert (await client.delete(f"/api/routine/entry/{entry_id}", headers=admin_headers)).status_code == 200

    again = await client.delete(f"/api/routine/entry/{entry_id}", headers=admin_headers)
    assert again.status_code == 404
    assert again.json()["detail"] == "Entry not found."


@pytest.mark.asyncio
async def test_delete_department_routine(client, routine_data, admin_headers):
    await add(client, admin_headers, entry_payload(routine_data))
    await add(client, admin_headers, entry_payload(routine_data, day="MONDAY"))

    res = await client.delete(f"/api/routine/department/{routine_data['department'].id}", headers=admin_headers)
    assert res.json()["count"] == 2

    final = await client.get("/api/routine/final", params={"departmentId": routine_data["department"].id}, headers=admin_headers)
    assert final.json()["routine"] == []


# ------------------------------------------------------------------
# READS
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_final_routine_in_week_order(client, routine_data, admin_headers, teacher_headers):
    await add(client, admin_headers, entry_payload(routine_data, day="MONDAY", start="09:00", end="10:00"))
    await add(client, admin_headers, entry_payload(routine_data, day="SUNDAY", start="10:00", end="11:00"))
    await add(client, admin_headers, entry_payload(routine_data, day="SUNDAY", start="08:00", end="09:00"))

    res = await client.get("/api/routine/final", params={"departmentId": routine_data["department"].id}, headers=teacher_headers)
    assert res.status_code == 200

    routine = res.json()["routine"]
    assert [(e["dayOfWeek"], e["startTime"]) for e in routine] == [
        ("SUNDAY", "08:00"), ("SUNDAY", "10:00"), ("MONDAY", "09:00"),
    ]
    first = routine[0]
    assert first["course"] == {"code": "CSE201", "name": "Data Structures"}
    assert first["teacher"] == {"name": "Alice Rahman"}
    assert first["room"] == {"roomNumber": "301"}
    assert first["semester"] == {"shortname": "2-1"}
    assert first["lab"] is None


@pytest.mark.asyncio
async def test_routine_by_dimension(client, routine_data, admin_headers, teacher_headers):
    await add(client, admin_headers, entry_payload(routine_data))
    await add(client, admin_headers, entry_payload(routine_data, semester="sem_b", course="course_b", teacher="teacher_b", room="room_b"))

    by_room = await client.get(f"/api/routine/room/{routine_data['room_b'].id}", headers=teacher_headers)
    assert [e["courseId"] for e in by_room.json()] == [routine_data["course_b"].id]

    by_semester = await client.get(f"/api/routine/semester/{routine_data['sem_a'].id}", headers=teacher_headers)
    assert [e["courseId"] for e in by_semester.json()] == [routine_data["course_a"].id]

    by_course = await client.get(f"/api/routine/course/{routine_data['course_b'].id}", headers=teacher_headers)
    assert len(by_course.json()) == 1

    by_teacher = await client.get(f"/api/routine/teacher/{routine_data['teacher_b'].id}", headers=teacher_headers)
    assert by_teacher.json()["teacher"] == {"name": "Bashir Ahmed", "department": "Computer Science and Engineering"}
    assert len(by_teacher.json()["routine"]) == 1

    assert (await client.get("/api/routine/teacher/9999", headers=teacher_headers)).status_code == 404


@pytest.mark.asyncio
async def test_routine_reads_need_login(client, routine_data):
    assert (await client.get(f"/api/routine/semester/{routine_data['sem_a'].id}")).status_code == 401


@pytest.mark.asyncio
async def test_weekly_schedules_for_admins(client, routine_data, admin_headers, teacher_headers):
    await add(client, admin_headers, entry_payload(routine_data))
    params = {"departmentId": routine_data["department"].id}

    res = await client.get("/api/dashboard/department-admin/weekly-schedules", params=params, headers=admin_headers)
    assert len(res.json()) == 1
    assert (await client.get("/api/dashboard/department-admin/weekly-schedules", params=params, headers=teacher_headers)).status_code == 403


# ------------------------------------------------------------------
# STUDENTS
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_student_routine_follows_session(client, db_session, routine_data, admin_headers, student, student_headers):
    semester = routine_data["sem_a"]
    semester.session = STUDENT_SESSION
    db_session.add(semester)
    await db_session.commit()

    await add(client, admin_headers, entry_payload(routine_data))
    await add(client, admin_headers, entry_payload(routine_data, semester="sem_b", course="course_b", teacher="teacher_b", room="room_b"))

    res = await client.get(f"/api/routine/student/{student.id}", headers=student_headers)
    assert res.status_code == 200

    data = res.json()
    assert data["semester"]["id"] == semester.id
    assert data["student"]["session"] == STUDENT_SESSION
    assert [e["courseId"] for e in data["routine"]] == [routine_data["course_a"].id]
    assert data["message"] is None


@pytest.mark.asyncio
async def test_student_without_semester_gets_message(client, routine_data, student, student_headers):
    res = await client.get(f"/api/routine/student/{student.id}", headers=student_headers)
    assert res.status_code == 200
    assert res.json()["routine"] == []
    assert res.json()["semester"] is None
    assert res.json()["message"] == "Could not determine your current semester schedule."


@pytest.mark.asyncio
async def test_student_routine_of_non_student(client, routine_data, teacher, teacher_headers):
    res = await client.get(f"/api/routine/student/{teacher.id}", headers=teacher_headers)
    assert res.status_code == 404


# ------------------------------------------------------------------
# SAVE
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_save_routine_replaces_selected_semesters(client, routine_data, admin_headers):
    await add(client, admin_headers, entry_payload(routine_data))
    kept = await add(client, admin_headers, entry_payload(
        routine_data, day="WEDNESDAY", semester="sem_b", course="course_b", teacher="teacher_b", room="room_b",
    ))

    body = {
        "departmentId": routine_data["department"].id,
        "semesterIds": [routine_data["sem_a"].id],
        "routine": [
            entry_payload(routine_data, day="MONDAY", start="10:00", end="11:00"),
            entry_payload(routine_data, day="TUESDAY", start="08:00", end="09:00"),
        ],
    }
    res = await client.post("/api/routine/generate", json=body, headers=admin_headers)
    assert res.status_code == 201
    assert res.json() == {"message": "Routine saved successfully for the selected semesters.", "count": 2}

    final = await client.get("/api/routine/final", params={"departmentId": routine_data["department"].id}, headers=admin_headers)
    slots = [(e["dayOfWeek"], e["startTime"], e["semesterId"]) for e in final.json()["routine"]]
    assert slots == [
        ("MONDAY", "10:00", routine_data["sem_a"].id),
        ("TUESDAY", "08:00", routine_data["sem_a"].id),
        ("WEDNESDAY", "08:00", routine_data["sem_b"].id),
    ]
    assert kept.json()["id"] in [e["id"] for e in final.json()["routine"]]


@pytest.mark.asyncio
async def test_save_routine_rejects_foreign_entries(client, routine_data, admin_headers):
    body = {
        "departmentId": routine_data["department"].id,
        "semesterIds": [routine_data["sem_a"].id],
        "routine": [entry_payload(routine_data, semester="sem_b")],
    }
    res = await client.post("/api/routine/generate", json=body, headers=admin_headers)
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_save_routine_rejects_unknown_room(client, routine_data, admin_headers):
    entry = entry_payload(routine_data)
    entry["roomId"] = 9999
    body = {
        "departmentId": routine_data["department"].id,
        "semesterIds": [routine_data["sem_a"].id],
        "routine": [entry],
    }
    res = await client.post("/api/routine/generate", json=body, headers=admin_headers)
    assert res.status_code == 404
    assert res.json()["detail"] == "Room not found."


@pytest.mark.asyncio
async def test_save_routine_rejects_semester_of_other_department(client, db_session, routine_data, other_department, admin_headers):
    [foreign_semester, *_] = await semester_service.list_semesters(db_session, other_department.id)
    body = {
        "departmentId": routine_data["department"].id,
        "semesterIds": [foreign_semester.id],
        "routine": [],
    }
    res = await client.post("/api/routine/generate", json=body, headers=admin_headers)
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_save_routine_needs_semesters(client, routine_data, admin_headers):
    body = {"departmentId": routine_data["department"].id, "semesterIds": [], "routine": []}
    assert (await client.post("/api/routine/generate", json=body, headers=admin_headers)).status_code == 422


# ------------------------------------------------------------------
# GRID
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_department_grid_with_filter(client, routine_data, admin_headers, teacher_headers):
    await add(client, admin_headers, entry_payload(routine_data))
    await add(client, admin_headers, entry_payload(routine_data, semester="sem_b", course="course_b", teacher="teacher_b", room="room_b"))

    res = await client.get("/api/routine/grid", params={"departmentId": routine_data["department"].id}, headers=teacher_headers)
    assert res.status_code == 200

    grid = res.json()
    assert grid["totalEntries"] == 2
    assert grid["headers"][0] == "08:00 - 09:00"
    sunday_first = grid["rows"][0]["cells"][0]
    assert len(sunday_first["entries"]) == 2
    assert "Data Structures (CSE201), T: Alice Rahman, R: 301, S: 2-1" in sunday_first["display"]

    res = await client.get(
        "/api/routine/grid",
        params={"departmentId": routine_data["department"].id, "room": routine_data["room_b"].id},
        headers=teacher_headers,
    )
    assert res.json()["totalEntries"] == 1
    assert res.json()["filters"] == {"room": routine_data["room_b"].id}


@pytest.mark.asyncio
async def test_my_grid_by_role(client, db_session, routine_data, admin_headers, teacher_headers, super_headers, student_headers):
    semester = routine_data["sem_b"]
    semester.session = STUDENT_SESSION
    db_session.add(semester)
    await db_session.commit()

    await add(client, admin_headers, entry_payload(routine_data))
    await add(client, admin_headers, entry_payload(routine_data, semester="sem_b", course="course_b", teacher="teacher_b", room="room_b"))

    teacher_grid = await client.get("/api/routine/my-grid", headers=teacher_headers)
    assert teacher_grid.json()["totalEntries"] == 1

    admin_grid = await client.get("/api/routine/my-grid", headers=admin_headers)
    assert admin_grid.json()["totalEntries"] == 2

    student_grid = await client.get("/api/routine/my-grid", headers=student_headers)
    assert student_grid.json()["totalEntries"] == 1
    assert "Networks" in student_grid.json()["rows"][0]["cells"][0]["display"]

    assert (await client.get("/api/routine/my-grid", headers=super_headers)).status_code == 400
    super_grid = await client.get("/api/routine/my-grid", params={"departmentId": routine_data["department"].id}, headers=super_headers)
    assert super_grid.json()["totalEntries"] == 2


# ------------------------------------------------------------------
# DEPARTMENT REMOVAL
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_deleting_department_frees_rooms_booked_by_others(client, db_session, routine_data, other_department, make_user, auth_headers, super_headers):
    circuits = await course_service.create_course(db_session, CourseCreate(
        name="Circuits", code="EEE101", department_id=other_department.id, for_dept=other_department.id, is_major=True,
    ))
    [eee_semester, *_] = await semester_service.list_semesters(db_session, other_department.id)
    eee_admin = await make_user(UserRole.department_admin, department_id=other_department.id)

    borrowed = {
        "departmentId": other_department.id,
        "semesterId": eee_semester.id,
        "dayOfWeek": "MONDAY",
        "startTime": "11:00",
        "endTime": "12:00",
        "courseId": circuits.id,
        "roomId": routine_data["room_a"].id,
    }
    assert (await add(client, auth_headers(eee_admin), borrowed)).status_code == 201

    res = await client.delete(f"/api/dashboard/super-admin/department/{routine_data['department'].id}", headers=super_headers)
    assert res.status_code == 200

    final = await client.get("/api/routine/final", params={"departmentId": other_department.id}, headers=super_headers)
    [entry] = final.json()["routine"]
    assert entry["courseId"] == circuits.id
    assert entry["roomId"] is None
    assert entry["room"] is None
