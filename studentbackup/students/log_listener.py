from __future__ import annotations

import logging
from typing import Callable

from studentbackup.core.events import EventChannel
from studentbackup.students.types import (
    StudentAdded,
    StudentChanged,
    StudentRemovalFailed,
    StudentRemoved,
    StudentsReplaced,
)


def attach_student_logging(events: EventChannel, logger: logging.Logger) -> Callable[[], None]:
    def on_added(event: StudentAdded) -> None:
        logger.info("Student added - %s (ID: %s)", event.student.name, event.student.id)

    def on_removed(event: StudentRemoved) -> None:
        logger.info("Student removed - %s (ID: %s)", event.student.name, event.student.id)

    def on_removal_failed(event: StudentRemovalFailed) -> None:
        logger.warning("Student removal failed - %s", event.error)

    def on_changed(event: StudentChanged) -> None:
        logger.info("Student changed - %s (ID: %s)", event.student.name, event.student.id)

    def on_replaced(event: StudentsReplaced) -> None:
        logger.info("Students replaced (count: %s)", event.count)

    unsubscribers = [
        events.subscribe(StudentAdded, on_added),
        events.subscribe(StudentRemoved, on_removed),
        events.subscribe(StudentRemovalFailed, on_removal_failed),
        events.subscribe(StudentChanged, on_changed),
        events.subscribe(StudentsReplaced, on_replaced),
    ]

    def detach() -> None:
        for unsubscribe in unsubscribers:
            unsubscribe()

    return detach
