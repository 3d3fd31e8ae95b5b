"""Document store the progression engine reads from and writes to.

Wraps the SQLite-backed module functions and turns low-level sqlite3 errors
into the domain errors the engine understands.
"""
import logging
import sqlite3

from code_tutor import lessons, notifications, progress, seed
from code_tutor.db import init_db
from code_tutor.errors import SaveFailure, StoreUnavailable
from code_tutor.models import Lesson, UserProgress

logger = logging.getLogger(__name__)


class DocumentStore:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def initialize(self) -> None:
        init_db(self.db_path)

    def get_lessons(self, track: str) -> list[Lesson]:
        try:
            return lessons.get_lessons(self.db_path, track)
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Could not load lessons for {track!r}: {e}") from e

    def seed_default_lessons(self, track: str) -> list[Lesson]:
        try:
            return seed.seed_track(self.db_path, track)
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Could not seed lessons for {track!r}: {e}") from e

    def get_user_progress(self, user_id: str) -> UserProgress:
        try:
            return progress.get_user_progress(self.db_path, user_id)
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Could not load progress for {user_id!r}: {e}") from e

    def save_user_progress(self, user_id: str, user_progress: UserProgress) -> None:
        if user_progress.user_id != user_id:
            raise ValueError(f"Progress belongs to {user_progress.user_id!r}, not {user_id!r}")
        try:
            progress.save_user_progress(self.db_path, user_progress)
        except sqlite3.Error as e:
            raise SaveFailure(f"Could not save progress for {user_id!r}: {e}") from e

    def record_attempt(self, user_id: str, result) -> None:
        try:
            progress.record_attempt(self.db_path, user_id, result)
        except sqlite3.Error:
            logger.exception(f"Could not record quiz attempt for {user_id!r}")

    def emit_notification(self, user_id: str, type: str, title: str, message: str) -> None:
        """Fire-and-forget: failures are logged, never raised."""
        try:
            notifications.emit_notification(self.db_path, user_id, type, title, message)
        except sqlite3.Error:
            logger.exception(f"Could not send {type!r} notification to {user_id!r}")

    def count_lessons(self, track: str) -> int:
        try:
            return lessons.count_lessons(self.db_path, track)
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Could not count lessons for {track!r}: {e}") from e

    def unread_count(self, user_id: str) -> int:
        try:
            return notifications.count_unread(self.db_path, user_id)
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Could not count notifications for {user_id!r}: {e}") from e
