import pytest
import pytest_asyncio

from crms.models.academic import SemesterCourse, SemesterCourseTeacher
from crms.models.user import UserRole
from crms.schemas.academic import CourseCreate
from crms.services import course_service


def course_payload(department_id, **overrides):
    payload = {
        "name": "Data Structures",
        "code": "CSE201",
        "credits": 3,
        "departmentId": department_id,
        "forDept": department_id,
        "isMajor": True,
        "type": "THEORY",
    }
    payload.update(overrides)
    return payload


@pytest_asyncio.fixture
async def course(db_session, department):
    return await course_service.create_course(db_session, CourseCreate(
        name="Algorithms", code="CSE203", department_id=department.id, for_dept=department.id, is_major=True,
    ))


# ------------------------------------------------------------------
# CREATE
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_add_course(client, department, admin_headers):
    res = await client.post("/api/add-course", json=course_payload(department.id), headers=admin_headers)
    assert res.status_code == 201

    data = res.json()
    assert data["code"] == "CSE201"
    assert data["credits"] == 3.0
    assert data["isMajor"] is True
    assert data["forDept"] == department.id
    assert data["teacherName"] is None
    assert data["isArchived"] is False


@pytest.mark.asyncio
async def test_add_course_via_dashboard_route(client, department, super_headers):
    res = await client.post(
        "/api/dashboard/department-admin/course",
        json=course_payload(department.id, type="LAB", credits=1.5),
        headers=super_headers,
    )
    assert res.status_code == 201
    assert res.json()["type"] == "LAB"


@pytest.mark.asyncio
async def test_add_course_unknown_department(client, department, admin_headers):
    res = await client.post("/api/add-course", json=course_payload(department.id, forDept=9999), headers=admin_headers)
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_teachers_cannot_add_courses(client, department, teacher_headers):
    res = await client.post("/api/add-course", json=course_payload(department.id), headers=teacher_headers)
    assert res.status_code == 403


@pytest.mark.asyncio
async def test_non_positive_credits_rejected(client, department, admin_headers):
    res = await client.post("/api/add-course", json=course_payload(department.id, credits=0), headers=admin_headers)
    assert res.status_code == 422


# ------------------------------------------------------------------
# CSV IMPORT
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_import_courses_from_csv(client, department, other_department, admin_headers):
    content = (
        "name,code,credits,type,isMajor,forDept\n"
        "Data Structures,CSE201,3,THEORY,true,\n"
        f"Data Structures Lab,CSE202,1.5,LAB,yes,{department.id}\n"
        "Broken,CSE999,abc,THEORY,true,\n"
        "Physics,PHY101,3,THEORY,maybe,\n"
        f"Circuits,EEE101,3,THEORY,false,{other_department.id}\n"
        "Ghost,GHO101,3,THEORY,true,9999\n"
    ).encode()

    res = await client.post(
        "/api/add-courses-from-csv",
        files={"csvFile": ("courses.csv", content, "text/csv")},
        data={"departmentId": str(department.id)},
        headers=admin_headers,
    )
    assert res.status_code == 200

    data = res.json()
    assert data["created"] == 3
    assert [e["row"] for e in data["errors"]] == [3, 4, 6]

    listed = (await client.get("/api/get-courses", params={"departmentId": department.id}, headers=admin_headers)).json()
    assert [c["code"] for c in listed] == ["CSE201", "CSE202", "EEE101"]
    assert {c["code"]: c["isMajor"] for c in listed}["EEE101"] is False


@pytest.mark.asyncio
async def test_import_rejects_non_csv_file(client, department, admin_headers):
    res = await client.post(
        "/api/add-courses-from-csv",
        files={"csvFile": ("courses.txt", b"hello", "text/plain")},
        data={"departmentId": str(department.id)},
        headers=admin_headers,
    )
    assert res.status_code == 400
    assert res.json()["detail"] == "Only .csv files are allowed!"


# ------------------------------------------------------------------
# LIST / DELETE / ARCHIVE
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_list_courses_includes_offered_and_taken(client, db_session, department, other_department, admin_headers):
    await course_service.create_course(db_session, CourseCreate(
        name="Circuits for CSE", code="EEE151", department_id=other_department.id, for_dept=department.id, is_major=False,
    ))
    await course_service.create_course(db_session, CourseCreate(
        name="Compilers", code="CSE401", department_id=department.id, for_dept=department.id, is_major=True,
    ))

    res = await client.get("/api/dashboard/department-admin/courses", params={"departmentId": department.id}, headers=admin_headers)
    assert [c["code"] for c in res.json()] == ["CSE401", "EEE151"]


@pytest.mark.asyncio
async def test_delete_course(client, course, admin_headers):
    res = await client.request("DELETE", "/api/delete-course", json={"courseId": course.id}, headers=admin_headers)
    assert res.status_code == 200

    again = await client.request("DELETE", "/api/dashboard/department-admin/course", json={"courseId": course.id}, headers=admin_headers)
    assert again.status_code == 404


@pytest.mark.asyncio
async def test_delete_all_courses(client, course, department, admin_headers):
    await client.post("/api/add-course", json=course_payload(department.id), headers=admin_headers)

    res = await client.delete("/api/delete-all-courses", params={"departmentId": department.id}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["count"] == 2

    listed = await client.get("/api/get-courses", params={"departmentId": department.id}, headers=admin_headers)
    assert listed.json() == []


@pytest.mark.asyncio
async def test_archive_and_unarchive(client, course, teacher_headers, admin_headers):
    res = await client.patch("/api/archive-course", json={"courseId": course.id}, headers=teacher_headers)
    assert res.status_code == 200
    assert res.json()["isArchived"] is True

    res = await client.patch("/api/unarchive-course", json={"courseId": course.id}, headers=admin_headers)
    assert res.json()["isArchived"] is False


# ------------------------------------------------------------------
# TEACHERS
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_assign_default_teacher(client, course, teacher, admin_headers):
    res = await client.post(
        "/api/dashboard/department-admin/assign-teacher",
        json={"courseId": course.id, "teacherId": teacher.id},
        headers=admin_headers,
    )
    assert res.status_code == 200
    assert res.json()["teacherId"] == teacher.id
    assert res.json()["teacherName"] == teacher.name


@pytest.mark.asyncio
async def test_assign_default_teacher_requires_teacher_role(client, course, student, admin_headers):
    res = await client.post(
        "/api/dashboard/department-admin/assign-teacher",
        json={"courseId": course.id, "teacherId": student.id},
        headers=admin_headers,
    )
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_courses_of_teacher(client, db_session, department, course, teacher, semesters, teacher_headers):
    other = await course_service.create_course(db_session, CourseCreate(
        name="Databases", code="CSE301", department_id=department.id, for_dept=department.id, is_major=True,
    ))
    await course_service.assign_teacher(db_session, course.id, teacher.id)
    db_session.add(SemesterCourseTeacher(semester_id=semesters[0].id, course_id=other.id, teacher_id=teacher.id))
    await db_session.commit()

    res = await client.get(f"/api/teacher/{teacher.id}/courses", headers=teacher_headers)
    assert res.status_code == 200
    assert [c["code"] for c in res.json()] == ["CSE203", "CSE301"]


@pytest.mark.asyncio
async def test_courses_of_student(client, db_session, course, student, semesters, student_headers):
    semester = semesters[0]
    semester.session = student.session
    db_session.add(semester)
    db_session.add(SemesterCourse(semester_id=semester.id, course_id=course.id))
    await db_session.commit()

    res = await client.get(f"/api/student/{student.id}/courses", headers=student_headers)
    assert res.status_code == 200
    assert [c["code"] for c in res.json()["courses"]] == ["CSE203"]


@pytest.mark.asyncio
async def test_courses_of_student_without_semester(client, student, student_headers, department):
    res = await client.get(f"/api/student/{student.id}/courses", headers=student_headers)
    assert res.status_code == 404
    assert res.json()["detail"] == "Semester not found for this session and department"


@pytest.mark.asyncio
async def test_courses_of_teacher_forbidden_for_students(client, teacher, make_user, auth_headers, department):
    student = await make_user(UserRole.student, department_id=department.id, user_session="2021-2022")
    res = await client.get(f"/api/teacher/{teacher.id}/courses", headers=auth_headers(student))
    assert res.status_code == 403
