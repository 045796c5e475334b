from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from studentbackup.core.events import Event


@dataclass(slots=True)
class Student:
    id: str
    name: str
    age: int
    group: int | str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Student":
        return cls(id=str(data["id"]), name=data["name"], age=int(data["age"]), group=data["group"])


@dataclass(frozen=True, slots=True)
class StudentAdded(Event):
    kind: ClassVar[str] = "studentAdded"

    student: Student


@dataclass(frozen=True, slots=True)
class StudentRemoved(Event):
    kind: ClassVar[str] = "studentRemoved"

    student: Student


@dataclass(frozen=True, slots=True)
class StudentRemovalFailed(Event):
    kind: ClassVar[str] = "studentRemovalFailed"

    student_id: str
    error: BaseException


@dataclass(frozen=True, slots=True)
class StudentChanged(Event):
    kind: ClassVar[str] = "studentChanged"

    student: Student


@dataclass(frozen=True, slots=True)
class StudentsReplaced(Event):
    kind: ClassVar[str] = "studentsReplaced"

    count: int
