from __future__ import annotations

import json
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any, Iterable

from studentbackup.core.events import EventChannel
from studentbackup.students.types import (
    Student,
    StudentAdded,
    StudentChanged,
    StudentRemovalFailed,
    StudentRemoved,
    StudentsReplaced,
)


class StudentNotFoundError(LookupError):
    pass


def default_students() -> list[Student]:
    return [
        Student(id="1", name="John Doe", age=20, group=2),
        Student(id="2", name="Jane Smith", age=23, group=3),
        Student(id="3", name="Mike Johnson", age=18, group=2),
    ]


class StudentRegistry:
    """In-memory student store; publishes mutations on ``events``."""

    def __init__(self, events: EventChannel | None = None, students: Iterable[Student] | None = None):
        self._events = events or EventChannel()
        self._students: list[Student] = list(students) if students is not None else []

    def _next_id(self) -> str:
        numeric_ids = [int(student.id) for student in self._students if student.id.isdigit()]
        return str(max(numeric_ids, default=0) + 1)

    def _find(self, student_id: str) -> Student | None:
        return next((student for student in self._students if student.id == student_id), None)

    def add_student(self, name: str, age: int, group: int | str) -> Student:
        student = Student(id=self._next_id(), name=name, age=age, group=group)
        self._students.append(student)
        self._events.emit(StudentAdded(student=student))
        return student

    def remove_student(self, student_id: str) -> Student:
        student = self._find(student_id)
        if student is None:
            error = StudentNotFoundError(f"Student with id {student_id} not found")
            self._events.emit(StudentRemovalFailed(student_id=student_id, error=error))
            raise error

        self._students = [item for item in self._students if item.id != student_id]
        self._events.emit(StudentRemoved(student=student))
        return student

    def change_student(
        self,
        student_id: str,
        *,
        name: str | None = None,
        age: int | None = None,
        group: int | str | None = None,
    ) -> Student:
        student = self._find(student_id)
        if student is None:
            raise StudentNotFoundError(f"Student with id {student_id} not found")

        changes: dict[str, Any] = {}
        if name is not None:
            changes["name"] = name
        if age is not None:
            changes["age"] = age
        if group is not None:
            changes["group"] = group
        updated = replace(student, **changes)

        self._students = [updated if item.id == student_id else item for item in self._students]
        self._events.emit(StudentChanged(student=updated))
        return updated

    def replace_students(self, records: Iterable[Student | dict[str, Any]]) -> list[Student]:
        self._students = [
            record if isinstance(record, Student) else Student.from_dict(record) for record in records
        ]
        self._events.emit(StudentsReplaced(count=len(self._students)))
        return self.get_all_students()

    def get_student_by_id(self, student_id: str) -> Student | None:
        return self._find(student_id)

    def get_students_by_group(self, group: int | str) -> list[Student]:
        return [student for student in self._students if str(student.group) == str(group)]

    def get_all_students(self) -> list[Student]:
        return list(self._students)

    def calculate_average_age(self) -> int:
        if not self._students:
            return 0
        return sum(student.age for student in self._students) // len(self._students)

    def save_to_json(self, path: Path | str) -> Path:
        target = Path(path)
        target.write_text(json.dumps([asdict(student) for student in self._students], indent=2), encoding="utf-8")
        return target

    def load_from_json(self, path: Path | str) -> list[Student] | None:
        source = Path(path)
        try:
            raw = source.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError(f"Student file must contain a JSON array: {source.as_posix()}")
        return self.replace_students(data)
