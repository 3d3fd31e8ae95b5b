"""Lesson storage: reading and inserting lessons with their questions."""
import json
import sqlite3

from code_tutor.db import get_connection
from code_tutor.models import Lesson, Question


def _questions_for(conn: sqlite3.Connection, lesson_id: str) -> list[Question]:
    rows = conn.execute(
        "SELECT * FROM questions WHERE lesson_id = ? ORDER BY position", (lesson_id,)
    ).fetchall()
    return [
        Question(
            prompt=row["prompt"],
            options=json.loads(row["options"]),
            correct_option_index=row["correct_option_index"],
            explanation=row["explanation"] or "",
        )
        for row in rows
    ]


def _lesson_from_row(conn: sqlite3.Connection, row: sqlite3.Row) -> Lesson:
    return Lesson(
        id=row["id"],
        track=row["track"],
        order=row["lesson_order"],
        title=row["title"],
        description=row["description"] or "",
        xp_reward=row["xp_reward"],
        questions=_questions_for(conn, row["id"]),
    )


def get_lessons(db_path: str, track: str) -> list[Lesson]:
    """All lessons of a track, ordered by lesson order."""
    conn = get_connection(db_path)
    try:
        rows = conn.execute(
            "SELECT * FROM lessons WHERE track = ? ORDER BY lesson_order ASC", (track,)
        ).fetchall()
        return [_lesson_from_row(conn, row) for row in rows]
    finally:
        conn.close()


def get_lesson(db_path: str, lesson_id: str) -> Lesson | None:
    conn = get_connection(db_path)
    try:
        row = conn.execute("SELECT * FROM lessons WHERE id = ?", (lesson_id,)).fetchone()
        return _lesson_from_row(conn, row) if row else None
    finally:
        conn.close()


def count_lessons(db_path: str, track: str) -> int:
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM lessons WHERE track = ?", (track,)).fetchone()[0]
    conn.close()
    return count


def list_tracks(db_path: str) -> list[str]:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT DISTINCT track FROM lessons ORDER BY track").fetchall()
    conn.close()
    return [row["track"] for row in rows]


def insert_lesson(conn: sqlite3.Connection, lesson: Lesson) -> None:
    """Insert a lesson and its questions. The caller owns the transaction.

    Raises sqlite3.IntegrityError if the id or (track, order) already exists.
    """
    conn.execute(
        """INSERT INTO lessons (id, track, lesson_order, title, description, xp_reward)
        VALUES (?, ?, ?, ?, ?, ?)""",
        (lesson.id, lesson.track, lesson.order, lesson.title, lesson.description, lesson.xp_reward),
    )
    for position, q in enumerate(lesson.questions):
        conn.execute(
            """INSERT INTO questions
            (lesson_id, position, prompt, options, correct_option_index, explanation)
            VALUES (?, ?, ?, ?, ?, ?)""",
            (lesson.id, position, q.prompt, json.dumps(q.options), q.correct_option_index, q.explanation),
        )
