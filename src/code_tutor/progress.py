"""User progress: applying finished quizzes and persisting the result."""
from dataclasses import dataclass
from datetime import datetime

from code_tutor.db import get_connection
from code_tutor.levels import level_for_xp
from code_tutor.models import TrackProgress, UserProgress


@dataclass
class CompletionOutcome:
    awarded_xp: int
    first_completion: bool
    level_before: int
    level_after: int

    @property
    def leveled_up(self) -> bool:
        return self.level_after > self.level_before


def apply_completion(progress: UserProgress, result, total_lessons: int,
                     replay_policy: str = "none") -> CompletionOutcome:
    """Merge a finished quiz result into ``progress`` in place.

    The completed set and the track's completed count only change the first
    time a lesson is finished. On a replay, XP is re-awarded in full under the
    "full" policy and not at all under "none".
    """
    if replay_policy not in ("none", "full"):
        raise ValueError(f"Unknown replay policy {replay_policy!r}")
    level_before = level_for_xp(progress.total_xp)
    first = result.lesson_id not in progress.completed_lesson_ids

    awarded = result.earned_xp if first or replay_policy == "full" else 0
    progress.total_xp += max(awarded, 0)

    track = progress.track_progress.setdefault(result.track, TrackProgress())
    if first:
        progress.completed_lesson_ids.append(result.lesson_id)
        track.completed_count += 1
    if total_lessons:
        track.total_count = total_lessons

    return CompletionOutcome(
        awarded_xp=awarded,
        first_completion=first,
        level_before=level_before,
        level_after=level_for_xp(progress.total_xp),
    )


def get_user_progress(db_path: str, user_id: str) -> UserProgress:
    """Load a user's progress, creating a zero record on first access."""
    conn = get_connection(db_path)
    try:
        row = conn.execute("SELECT * FROM user_progress WHERE user_id = ?", (user_id,)).fetchone()
        if row is None:
            now = datetime.now().isoformat()
            with conn:
                conn.execute(
                    "INSERT INTO user_progress (user_id, total_xp, created_at, updated_at) VALUES (?, 0, ?, ?)",
                    (user_id, now, now),
                )
            return UserProgress(user_id=user_id)

        completed = conn.execute(
            "SELECT lesson_id FROM completed_lessons WHERE user_id = ? ORDER BY completed_at, rowid",
            (user_id,),
        ).fetchall()
        tracks = conn.execute(
            "SELECT * FROM track_progress WHERE user_id = ?", (user_id,)
        ).fetchall()
        achievements = conn.execute(
            "SELECT name FROM achievements WHERE user_id = ? ORDER BY rowid", (user_id,)
        ).fetchall()
        return UserProgress(
            user_id=user_id,
            total_xp=row["total_xp"],
            completed_lesson_ids=[r["lesson_id"] for r in completed],
            track_progress={
                r["track"]: TrackProgress(r["completed_count"], r["total_count"]) for r in tracks
            },
            achievements=[r["name"] for r in achievements],
        )
    finally:
        conn.close()


def save_user_progress(db_path: str, progress: UserProgress) -> None:
    """Overwrite the whole stored progress document in one transaction."""
    now = datetime.now().isoformat()
    conn = get_connection(db_path)
    try:
        with conn:
            conn.execute(
                """INSERT INTO user_progress (user_id, total_xp, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET total_xp = excluded.total_xp,
                updated_at = excluded.updated_at""",
                (progress.user_id, progress.total_xp, now, now),
            )
            stored = {
                r["lesson_id"]
                for r in conn.execute(
                    "SELECT lesson_id FROM completed_lessons WHERE user_id = ?", (progress.user_id,)
                ).fetchall()
            }
            wanted = set(progress.completed_lesson_ids)
            for lesson_id in stored - wanted:
                conn.execute(
                    "DELETE FROM completed_lessons WHERE user_id = ? AND lesson_id = ?",
                    (progress.user_id, lesson_id),
                )
            for lesson_id in progress.completed_lesson_ids:
                if lesson_id not in stored:
                    conn.execute(
                        "INSERT INTO completed_lessons (user_id, lesson_id, completed_at) VALUES (?, ?, ?)",
                        (progress.user_id, lesson_id, now),
                    )
            conn.execute("DELETE FROM track_progress WHERE user_id = ?", (progress.user_id,))
            for track, tp in progress.track_progress.items():
                conn.execute(
                    """INSERT INTO track_progress (user_id, track, completed_count, total_count)
                    VALUES (?, ?, ?, ?)""",
                    (progress.user_id, track, tp.completed_count, tp.total_count),
                )
            conn.execute("DELETE FROM achievements WHERE user_id = ?", (progress.user_id,))
            for name in dict.fromkeys(progress.achievements):
                conn.execute(
                    "INSERT INTO achievements (user_id, name) VALUES (?, ?)", (progress.user_id, name)
                )
    finally:
        conn.close()


def record_attempt(db_path: str, user_id: str, result) -> None:
    """Keep a history row for every finished quiz, saved or not."""
    conn = get_connection(db_path)
    try:
        with conn:
            conn.execute(
                """INSERT INTO quiz_attempts
                (user_id, lesson_id, correct_count, total_questions, score, earned_xp, attempted_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (user_id, result.lesson_id, result.correct_count, result.total_questions,
                 result.cumulative_score, result.earned_xp, datetime.now().isoformat()),
            )
    finally:
        conn.close()
