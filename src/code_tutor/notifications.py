"""Per-user notifications: achievements, level-ups and welcome messages."""
from datetime import datetime

from code_tutor.db import get_connection
from code_tutor.models import NOTIFICATION_ICONS, Notification

FILTERS = ("all", "unread", "system", "community")

WELCOME_NOTIFICATIONS = [
    ("system", "Welcome!", "Welcome to code-tutor. Pick a track and start your first lesson."),
    ("community", "Start learning", "Every lesson you finish unlocks the next one and earns XP."),
    ("system", "Set up your profile", "Your progress is saved under your user name."),
]


def _from_row(row) -> Notification:
    return Notification(
        id=row["id"],
        user_id=row["user_id"],
        type=row["type"],
        title=row["title"],
        message=row["message"],
        read=bool(row["read"]),
        created_at=row["created_at"],
        icon=row["icon"],
    )


def emit_notification(db_path: str, user_id: str, type: str, title: str, message: str) -> int:
    conn = get_connection(db_path)
    cursor = conn.execute(
        """INSERT INTO notifications (user_id, type, title, message, icon, read, created_at)
        VALUES (?, ?, ?, ?, ?, 0, ?)""",
        (user_id, type, title, message, NOTIFICATION_ICONS.get(type, "bell"), datetime.now().isoformat()),
    )
    conn.commit()
    conn.close()
    return cursor.lastrowid


def get_notifications(db_path: str, user_id: str, filter: str = "all") -> list[Notification]:
    """Newest first. The community filter also includes achievements."""
    if filter not in FILTERS:
        raise ValueError(f"Unknown notification filter {filter!r}")
    query = "SELECT * FROM notifications WHERE user_id = ?"
    if filter == "unread":
        query += " AND read = 0"
    elif filter == "system":
        query += " AND type = 'system'"
    elif filter == "community":
        query += " AND type IN ('community', 'achievement')"
    query += " ORDER BY created_at DESC, id DESC"
    conn = get_connection(db_path)
    rows = conn.execute(query, (user_id,)).fetchall()
    conn.close()
    return [_from_row(row) for row in rows]


def count_unread(db_path: str, user_id: str) -> int:
    conn = get_connection(db_path)
    count = conn.execute(
        "SELECT COUNT(*) FROM notifications WHERE user_id = ? AND read = 0", (user_id,)
    ).fetchone()[0]
    conn.close()
    return count


def mark_as_read(db_path: str, user_id: str, notification_id: int) -> bool:
    conn = get_connection(db_path)
    cursor = conn.execute(
        "UPDATE notifications SET read = 1 WHERE id = ? AND user_id = ?", (notification_id, user_id)
    )
    conn.commit()
    conn.close()
    return cursor.rowcount > 0


def mark_all_as_read(db_path: str, user_id: str) -> int:
    conn = get_connection(db_path)
    cursor = conn.execute(
        "UPDATE notifications SET read = 1 WHERE user_id = ? AND read = 0", (user_id,)
    )
    conn.commit()
    conn.close()
    return cursor.rowcount


def delete_notification(db_path: str, user_id: str, notification_id: int) -> bool:
    conn = get_connection(db_path)
    cursor = conn.execute(
        "DELETE FROM notifications WHERE id = ? AND user_id = ?", (notification_id, user_id)
    )
    conn.commit()
    conn.close()
    return cursor.rowcount > 0


def seed_welcome_notifications(db_path: str, user_id: str) -> int:
    """Give a brand-new user the welcome messages. Returns how many were added."""
    conn = get_connection(db_path)
    existing = conn.execute(
        "SELECT COUNT(*) FROM notifications WHERE user_id = ?", (user_id,)
    ).fetchone()[0]
    conn.close()
    if existing:
        return 0
    for type_, title, message in WELCOME_NOTIFICATIONS:
        emit_notification(db_path, user_id, type_, title, message)
    return len(WELCOME_NOTIFICATIONS)
