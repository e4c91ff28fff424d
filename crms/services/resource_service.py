# crms/services/resource_service.py

from loguru import logger
from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from crms.models.department import Department
from crms.models.enums import ResourceStatus
from crms.models.resource import Lab, Room
from crms.schemas.resource import LabCreate, LabRead, RoomCreate, RoomRead


async def _require_department(session: AsyncSession, department_id: int) -> Department:
    department = await session.get(Department, department_id)
    if not department:
        raise LookupError("Department not found.")
    return department


async def _acronyms(session: AsyncSession) -> dict:
    result = await session.execute(select(Department.id, Department.acronym))
    return {dept_id: acronym for dept_id, acronym in result.all()}


# ------------------------------------------------------------
# ROOMS
# ------------------------------------------------------------
async def create_room(session: AsyncSession, data: RoomCreate) -> Room:
    await _require_department(session, data.department_id)
    if not data.room_number.strip():
        raise ValueError("Room number is required.")

    room = Room(
        room_number=data.room_number.strip(),
        capacity=data.capacity,
        department_id=data.department_id,
    )
    session.add(room)
    await session.commit()
    await session.refresh(room)
    logger.info(f"Created room {room.room_number} in department {room.department_id}")
    return room


async def list_rooms(session: AsyncSession, department_id: int | None = None) -> list[RoomRead]:
    query = select(Room).order_by(Room.room_number)
    if department_id is not None:
        query = query.where(Room.department_id == department_id)
    rooms = (await session.execute(query)).scalars().all()

    acronyms = await _acronyms(session)
    return [
        RoomRead.model_validate(room).model_copy(update={"department_acronym": acronyms.get(room.department_id)})
        for room in rooms
    ]


async def get_room(session: AsyncSession, room_id: int) -> Room:
    room = await session.get(Room, room_id)
    if not room:
        raise LookupError("Room not found.")
    return room


async def set_room_status(session: AsyncSession, room_id: int, status: ResourceStatus) -> Room:
    room = await get_room(session, room_id)
    room.status = status
    session.add(room)
    await session.commit()
    await session.refresh(room)
    return room


async def set_room_capacity(session: AsyncSession, room_id: int, capacity: int) -> Room:
    if capacity <= 0:
        raise ValueError("Capacity must be a positive number.")
    room = await get_room(session, room_id)
    room.capacity = capacity
    session.add(room)
    await session.commit()
    await session.refresh(room)
    return room


# ------------------------------------------------------------
# LABS
# ------------------------------------------------------------
async def create_lab(session: AsyncSession, data: LabCreate) -> Lab:
    await _require_department(session, data.department_id)
    if not data.lab_number.strip():
        raise ValueError("Lab number is required.")

    lab = Lab(
        name=data.name,
        lab_number=data.lab_number.strip(),
        capacity=data.capacity,
        department_id=data.department_id,
        status=ResourceStatus.AVAILABLE,
    )
    session.add(lab)
    await session.commit()
    await session.refresh(lab)
    logger.info(f"Created lab {lab.lab_number} in department {lab.department_id}")
    return lab


async def list_labs(session: AsyncSession, department_id: int | None = None) -> list[LabRead]:
    query = select(Lab).order_by(Lab.lab_number)
    if department_id is not None:
        query = query.where(Lab.department_id == department_id)
    labs = (await session.execute(query)).scalars().all()

    acronyms = await _acronyms(session)
    return [
        LabRead.model_validate(lab).model_copy(update={"department_acronym": acronyms.get(lab.department_id)})
        for lab in labs
    ]


async def get_lab(session: AsyncSession, lab_id: int) -> Lab:
    lab = await session.get(Lab, lab_id)
    if not lab:
        raise LookupError("Lab not found.")
    return lab


async def set_lab_status(session: AsyncSession, lab_id: int, status: ResourceStatus) -> Lab:
    lab = await get_lab(session, lab_id)
    lab.status = status
    session.add(lab)
    await session.commit()
    await session.refresh(lab)
    return lab


async def set_lab_capacity(session: AsyncSession, lab_id: int, capacity: int) -> Lab:
    if capacity <= 0:
        raise ValueError("Capacity must be a positive number.")
    lab = await get_lab(session, lab_id)
    lab.capacity = capacity
    session.add(lab)
    await session.commit()
    await session.refresh(lab)
    return lab


async def available_pools(session: AsyncSession, department_id: int) -> tuple[list[int], list[int]]:
    """Ids of the department's AVAILABLE rooms and labs, in id order."""
    rooms = await session.execute(
        select(Room.id)
        .where(Room.department_id == department_id, Room.status == ResourceStatus.AVAILABLE)
        .order_by(Room.id)
    )
    labs = await session.execute(
        select(Lab.id)
        .where(Lab.department_id == department_id, Lab.status == ResourceStatus.AVAILABLE)
        .order_by(Lab.id)
    )
    return list(rooms.scalars().all()), list(labs.scalars().all())
