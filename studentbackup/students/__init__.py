from studentbackup.students.log_listener import attach_student_logging
from studentbackup.students.registry import StudentNotFoundError, StudentRegistry, default_students
from studentbackup.students.types import (
    Student,
    StudentAdded,
    StudentChanged,
    StudentRemovalFailed,
    StudentRemoved,
    StudentsReplaced,
)

__all__ = [
    "Student",
    "StudentAdded",
    "StudentChanged",
    "StudentNotFoundError",
    "StudentRegistry",
    "StudentRemovalFailed",
    "StudentRemoved",
    "StudentsReplaced",
    "attach_student_logging",
    "default_students",
]
