"""Progress dashboard: level, XP and per-track completion."""
from code_tutor.db import get_connection
from code_tutor.levels import level_status
from code_tutor.progress import get_user_progress
from code_tutor.seed import get_track_name, load_templates


def get_level_color(fraction: float) -> str:
    if fraction >= 0.75:
        return "green"
    elif fraction >= 0.5:
        return "yellow"
    elif fraction >= 0.25:
        return "dark_orange"
    return "red"


def get_track_rows(db_path: str, user_id: str) -> list[dict]:
    """One row per known track; tracks never opened count their bundled lessons."""
    progress = get_user_progress(db_path, user_id)
    templates = load_templates()
    tracks = sorted(set(templates) | set(progress.track_progress))
    rows = []
    for track in tracks:
        tp = progress.track_progress.get(track)
        completed = tp.completed_count if tp else 0
        total = tp.total_count if tp and tp.total_count else len(templates.get(track, []))
        percent = min(completed / total * 100, 100.0) if total else 0.0
        rows.append({
            "track": track,
            "name": get_track_name(track),
            "completed": completed,
            "total": total,
            "percent": round(percent, 1),
        })
    return rows


def get_progress_summary(db_path: str, user_id: str) -> dict:
    progress = get_user_progress(db_path, user_id)
    status = level_status(progress.total_xp)
    return {
        "user_id": user_id,
        "level": status.level,
        "total_xp": status.total_xp,
        "xp_into_level": status.xp_into_level,
        "xp_for_next_level": status.xp_for_next_level,
        "progress_fraction": status.progress_fraction,
        "completed_lessons": len(progress.completed_lesson_ids),
        "achievements": list(progress.achievements),
        "tracks": get_track_rows(db_path, user_id),
    }


def get_attempt_stats(db_path: str, user_id: str) -> dict:
    conn = get_connection(db_path)
    row = conn.execute(
        """SELECT COUNT(*) as attempts, SUM(correct_count) as correct,
        SUM(total_questions) as questions, SUM(earned_xp) as xp
        FROM quiz_attempts WHERE user_id = ?""",
        (user_id,),
    ).fetchone()
    perfect = conn.execute(
        "SELECT COUNT(*) FROM quiz_attempts WHERE user_id = ? AND correct_count = total_questions",
        (user_id,),
    ).fetchone()[0]
    conn.close()
    accuracy = round(row["correct"] / row["questions"] * 100, 1) if row["questions"] else 0.0
    return {
        "quizzes_taken": row["attempts"],
        "perfect_quizzes": perfect,
        "accuracy": accuracy,
    }
