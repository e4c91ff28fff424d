import pytest
import pytest_asyncio

from crms.models.enums import ResourceStatus
from crms.schemas.resource import LabCreate, RoomCreate
from crms.services import resource_service


@pytest_asyncio.fixture
async def room(db_session, department):
    return await resource_service.create_room(db_session, RoomCreate(room_number="301", capacity=40, department_id=department.id))


@pytest_asyncio.fixture
async def lab(db_session, department):
    return await resource_service.create_lab(db_session, LabCreate(lab_number="L-1", department_id=department.id))


@pytest.mark.asyncio
async def test_room_status_and_capacity(client, room, teacher_headers):
    res = await client.post(f"/api/room/{room.id}/status", json={"status": "UNAVAILABLE"}, headers=teacher_headers)
    assert res.status_code == 200
    assert res.json()["status"] == "UNAVAILABLE"

    res = await client.post(f"/api/room/{room.id}/capacity", json={"capacity": 75}, headers=teacher_headers)
    assert res.status_code == 200
    assert res.json()["capacity"] == 75


@pytest.mark.asyncio
async def test_lab_status_and_capacity(client, lab, admin_headers):
    res = await client.post(f"/api/lab/{lab.id}/status", json={"status": "UNAVAILABLE"}, headers=admin_headers)
    assert res.json()["status"] == "UNAVAILABLE"

    res = await client.post(f"/api/lab/{lab.id}/capacity", json={"capacity": 30}, headers=admin_headers)
    assert res.json()["capacity"] == 30


@pytest.mark.asyncio
async def test_invalid_updates(client, room, teacher_headers):
    bad_capacity = await client.post(f"/api/room/{room.id}/capacity", json={"capacity": 0}, headers=teacher_headers)
    assert bad_capacity.status_code == 422

    bad_status = await client.post(f"/api/room/{room.id}/status", json={"status": "BROKEN"}, headers=teacher_headers)
    assert bad_status.status_code == 422

    missing = await client.post("/api/room/9999/status", json={"status": "AVAILABLE"}, headers=teacher_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_students_cannot_update_rooms(client, room, student_headers):
    res = await client.post(f"/api/room/{room.id}/status", json={"status": "UNAVAILABLE"}, headers=student_headers)
    assert res.status_code == 403


@pytest.mark.asyncio
async def test_room_listings(client, room, department, other_department, db_session, admin_headers):
    await resource_service.create_room(db_session, RoomCreate(room_number="105", department_id=other_department.id))

    public = (await client.get("/api/rooms")).json()
    assert [r["roomNumber"] for r in public] == ["105", "301"]

    mine = await client.get("/api/dashboard/department-admin/rooms", params={"departmentId": department.id}, headers=admin_headers)
    assert [r["roomNumber"] for r in mine.json()] == ["301"]
    assert mine.json()[0]["departmentAcronym"] == "CSE"


@pytest.mark.asyncio
async def test_available_pools_skip_unavailable(db_session, department, room, lab):
    spare = await resource_service.create_room(db_session, RoomCreate(room_number="302", department_id=department.id))
    await resource_service.set_room_status(db_session, room.id, ResourceStatus.UNAVAILABLE)

    room_ids, lab_ids = await resource_service.available_pools(db_session, department.id)
    assert room_ids == [spare.id]
    assert lab_ids == [lab.id]


@pytest.mark.asyncio
async def test_department_admin_teacher_list(client, department, teacher, admin_headers):
    res = await client.get("/api/dashboard/department-admin/teachers", params={"departmentId": department.id}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json() == [{"id": teacher.id, "name": teacher.name}]
