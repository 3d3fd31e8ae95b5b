"""Linear lesson unlocking within a track."""
import logging
import sqlite3
from dataclasses import dataclass
from typing import Iterable, Optional

from code_tutor.errors import LoadFailure, StoreUnavailable
from code_tutor.models import Lesson

logger = logging.getLogger(__name__)


@dataclass
class LessonState:
    lesson: Lesson
    unlocked: bool
    completed: bool

    @property
    def status(self) -> str:
        if self.completed:
            return "completed"
        return "available" if self.unlocked else "locked"


def sort_lessons(lessons: Iterable[Lesson]) -> list[Lesson]:
    return sorted(lessons, key=lambda lesson: lesson.order)


def is_completed(lesson: Lesson, completed) -> bool:
    return lesson.id in completed


def is_unlocked(lessons: list[Lesson], index: int, completed) -> bool:
    """The first lesson is always open; every other one needs its predecessor done."""
    if not 0 <= index < len(lessons):
        raise IndexError(f"Lesson index {index} out of range")
    if index == 0:
        return True
    return lessons[index - 1].id in completed


def lesson_states(lessons: Iterable[Lesson], completed) -> list[LessonState]:
    ordered = sort_lessons(lessons)
    done = set(completed)
    return [
        LessonState(lesson=lesson, unlocked=is_unlocked(ordered, i, done), completed=lesson.id in done)
        for i, lesson in enumerate(ordered)
    ]


def next_available_lesson(lessons: Iterable[Lesson], completed) -> Optional[Lesson]:
    for state in lesson_states(lessons, completed):
        if state.unlocked and not state.completed:
            return state.lesson
    return None


def load_track(store, track: str) -> list[Lesson]:
    """Load a track's lessons, seeding the defaults when it has none yet.

    Any store error becomes a LoadFailure and no lessons are returned.
    """
    try:
        lessons = store.get_lessons(track)
        if not lessons:
            lessons = store.seed_default_lessons(track)
    except (StoreUnavailable, sqlite3.Error) as e:
        logger.error(f"Error loading lessons for {track!r}: {e}")
        raise LoadFailure(f"Could not load lessons for {track!r}") from e
    return sort_lessons(lessons)
