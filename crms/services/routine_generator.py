# crms/services/routine_generator.py

"""
Greedy weekly routine preview.

Every course a semester teaches is cut into class blocks (one block per
credit hour for theory, a single 2- or 3-hour block for labs). Blocks are
placed longest first; for each block every feasible (day, start) is scored
and the cheapest one wins. Cost prefers mornings and penalises back-to-back
classes and one-hour holes. Nothing is persisted.
"""

import math
import random
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from crms.core.constants import NON_MAJOR_COURSE_SLOTS, ROUTINE_DAYS, TIME_SLOTS
from crms.models.enums import CourseType, DayOfWeek

LATE_START_COST = 5
TEACHER_ADJACENT_COST = 1000
SEMESTER_ADJACENT_COST = 1500
TEACHER_GAP_COST = 200


@dataclass
class ClassBlock:
    course_id: int
    teacher_id: int
    semester_id: int
    department_id: int
    course_type: CourseType
    course_name: str
    course_code: str
    duration: int = 1


@dataclass
class Placement:
    day: DayOfWeek
    start_index: int
    room_id: Optional[int] = None
    lab_id: Optional[int] = None


@dataclass
class GeneratedRoutine:
    routine: List[dict] = field(default_factory=list)
    unassigned: List[dict] = field(default_factory=list)


def blocks_for_course(course, teacher_id: int, semester_id: int, department_id: int) -> List[ClassBlock]:
    """1.5-credit labs take 3 hours, 1-credit labs 2 hours, theory one hour per credit."""
    base = dict(
        course_id=course.id,
        teacher_id=teacher_id,
        semester_id=semester_id,
        department_id=department_id,
        course_type=course.type,
        course_name=course.name,
        course_code=course.code,
    )
    if course.type == CourseType.LAB and course.credits == 1.5:
        return [ClassBlock(**base, duration=3)]
    if course.type == CourseType.LAB and course.credits == 1.0:
        return [ClassBlock(**base, duration=2)]
    return [ClassBlock(**base, duration=1) for _ in range(math.ceil(course.credits))]


class BusyTracker:
    """owner id -> day -> set of booked slot times."""

    def __init__(self):
        self._busy: Dict[int, Dict[DayOfWeek, set]] = defaultdict(lambda: defaultdict(set))

    def is_busy(self, owner: int, day: DayOfWeek, time: Optional[str]) -> bool:
        if time is None:
            return False
        return time in self._busy[owner][day]

    def book(self, owner: int, day: DayOfWeek, time: str) -> None:
        self._busy[owner][day].add(time)


def end_time_for(time_slots: Sequence[str], start_index: int, duration: int) -> str:
    last = time_slots[start_index + duration - 1]
    return f"{int(last[:2]) + 1:02d}:00"


class RoutineGenerator:
    def __init__(
        self,
        room_ids: Sequence[int],
        lab_ids: Sequence[int],
        days: Sequence[DayOfWeek] = ROUTINE_DAYS,
        time_slots: Sequence[str] = TIME_SLOTS,
        reserved: Optional[Dict[DayOfWeek, List[str]]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.room_ids = list(room_ids)
        self.lab_ids = list(lab_ids)
        self.days = list(days)
        self.time_slots = list(time_slots)
        self.reserved = NON_MAJOR_COURSE_SLOTS if reserved is None else reserved
        self.rng = rng or random.Random()

        self.teacher_busy = BusyTracker()
        self.semester_busy = BusyTracker()
        self.room_busy = BusyTracker()
        self.lab_busy = BusyTracker()

    # ------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------
    def _slot(self, index: int) -> Optional[str]:
        if 0 <= index < len(self.time_slots):
            return self.time_slots[index]
        return None

    def _block_slots(self, start_index: int, duration: int) -> List[str]:
        return self.time_slots[start_index:start_index + duration]

    def _is_reserved(self, day: DayOfWeek, slots: List[str]) -> bool:
        reserved = self.reserved.get(day, [])
        return any(slot in reserved for slot in slots)

    def _free_resource(self, block: ClassBlock, day: DayOfWeek, slots: List[str]) -> Optional[int]:
        if block.course_type == CourseType.LAB:
            pool, busy = self.lab_ids, self.lab_busy
        else:
            pool, busy = self.room_ids, self.room_busy
        for resource_id in pool:
            if not any(busy.is_busy(resource_id, day, slot) for slot in slots):
                return resource_id
        return None

    def placement_cost(self, day: DayOfWeek, start_index: int, block: ClassBlock) -> int:
        cost = start_index * LATE_START_COST

        before = self._slot(start_index - 1)
        after = self._slot(start_index + block.duration)

        for neighbour in (before, after):
            if self.teacher_busy.is_busy(block.teacher_id, day, neighbour):
                cost += TEACHER_ADJACENT_COST
        for neighbour in (before, after):
            if self.semester_busy.is_busy(block.semester_id, day, neighbour):
                cost += SEMESTER_ADJACENT_COST

        # a free neighbour followed by a busy one leaves a one-hour hole
        two_before = self._slot(start_index - 2) if start_index > 1 else None
        two_after = self._slot(start_index + block.duration + 1)
        if (
            before
            and not self.teacher_busy.is_busy(block.teacher_id, day, before)
            and self.teacher_busy.is_busy(block.teacher_id, day, two_before)
        ):
            cost += TEACHER_GAP_COST
        if (
            after
            and not self.teacher_busy.is_busy(block.teacher_id, day, after)
            and self.teacher_busy.is_busy(block.teacher_id, day, two_after)
        ):
            cost += TEACHER_GAP_COST

        return cost

    def best_placement(self, block: ClassBlock) -> Optional[Placement]:
        best = None
        lowest = math.inf
        for day in self.days:
            for start_index in range(len(self.time_slots)):
                if start_index + block.duration > len(self.time_slots):
                    continue

                slots = self._block_slots(start_index, block.duration)
                if self._is_reserved(day, slots):
                    continue

                if any(
                    self.teacher_busy.is_busy(block.teacher_id, day, slot)
                    or self.semester_busy.is_busy(block.semester_id, day, slot)
                    for slot in slots
                ):
                    continue

                resource_id = self._free_resource(block, day, slots)
                if resource_id is None:
                    continue

                cost = self.placement_cost(day, start_index, block)
                if cost < lowest:
                    lowest = cost
                    if block.course_type == CourseType.LAB:
                        best = Placement(day, start_index, lab_id=resource_id)
                    else:
                        best = Placement(day, start_index, room_id=resource_id)
        return best

    def _book(self, block: ClassBlock, placement: Placement) -> None:
        for slot in self._block_slots(placement.start_index, block.duration):
            self.teacher_busy.book(block.teacher_id, placement.day, slot)
            self.semester_busy.book(block.semester_id, placement.day, slot)
            if placement.lab_id is not None:
                self.lab_busy.book(placement.lab_id, placement.day, slot)
            if placement.room_id is not None:
                self.room_busy.book(placement.room_id, placement.day, slot)

    # ------------------------------------------------------------
    # main loop
    # ------------------------------------------------------------
    def generate(self, blocks: Sequence[ClassBlock]) -> GeneratedRoutine:
        # longest blocks first, ties in random order
        ordered = sorted(blocks, key=lambda b: (-b.duration, self.rng.random()))

        result = GeneratedRoutine()
        unassigned: Dict[int, dict] = {}

        for block in ordered:
            placement = self.best_placement(block)
            if placement is None:
                unassigned[block.course_id] = {"name": block.course_name, "code": block.course_code}
                continue

            self._book(block, placement)
            result.routine.append({
                "semester_id": block.semester_id,
                "department_id": block.department_id,
                "day_of_week": placement.day,
                "start_time": self.time_slots[placement.start_index],
                "end_time": end_time_for(self.time_slots, placement.start_index, block.duration),
                "course_id": block.course_id,
                "teacher_id": block.teacher_id,
                "room_id": placement.room_id,
                "lab_id": placement.lab_id,
                "is_break": False,
            })

        result.unassigned = list(unassigned.values())
        return result
