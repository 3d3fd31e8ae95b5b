"""Seed tracks with the bundled default lessons."""
import json
import logging
import sqlite3
from pathlib import Path

from code_tutor.db import get_connection
from code_tutor.errors import SeedRaceIgnorable
from code_tutor.lessons import count_lessons, get_lessons, insert_lesson
from code_tutor.models import Lesson, lesson_from_dict

logger = logging.getLogger(__name__)

CONTENT_DIR = Path(__file__).parent / "content"

TRACK_NAMES = {
    "javascript": "JavaScript",
    "python": "Python",
    "html": "HTML/CSS",
    "react": "React",
    "java": "Java",
    "csharp": "C#",
}


def get_track_name(track: str) -> str:
    return TRACK_NAMES.get(track, track)


def load_templates() -> dict[str, list[Lesson]]:
    """Read lessons.json and validate every template into a Lesson."""
    data = json.loads((CONTENT_DIR / "lessons.json").read_text(encoding="utf-8"))
    templates = {}
    for track, raw_lessons in data["tracks"].items():
        templates[track] = sorted(
            (lesson_from_dict({**raw, "track": track}) for raw in raw_lessons),
            key=lambda lesson: lesson.order,
        )
    return templates


def default_lessons(track: str) -> list[Lesson]:
    return load_templates().get(track, [])


def is_seeded(db_path: str, track: str) -> bool:
    """Check whether a track already has lessons stored."""
    return count_lessons(db_path, track) > 0


def _insert_defaults(db_path: str, lessons: list[Lesson]) -> None:
    conn = get_connection(db_path)
    try:
        with conn:
            for lesson in lessons:
                insert_lesson(conn, lesson)
    except sqlite3.IntegrityError as e:
        raise SeedRaceIgnorable(f"Lessons for {lessons[0].track!r} already exist: {e}") from e
    finally:
        conn.close()


def seed_track(db_path: str, track: str) -> list[Lesson]:
    """Insert the default lessons for a track unless it already has some.

    Safe to call repeatedly: the (track, order) uniqueness constraint rolls back
    a second insert, so exactly one set of defaults is ever stored.
    """
    if is_seeded(db_path, track):
        return get_lessons(db_path, track)
    templates = default_lessons(track)
    if not templates:
        logger.info(f"No default lessons for track {track!r}")
        return []
    try:
        _insert_defaults(db_path, templates)
        logger.info(f"Seeded {len(templates)} default lessons for {track!r}")
    except SeedRaceIgnorable as e:
        logger.debug(str(e))
    return get_lessons(db_path, track)


def seed_all(db_path: str) -> None:
    """Seed every bundled track; already seeded tracks are left alone."""
    for track in load_templates():
        seed_track(db_path, track)
