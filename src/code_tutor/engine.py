"""Progression engine: one signed-in learner's lessons, quizzes and XP.

An engine is created when a user signs in and closed when they sign out. It
owns the user's in-memory progress and the active quiz session.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from code_tutor.errors import (
    LessonLocked, LoadFailure, QuizStateError, SaveFailure, StoreUnavailable, UnknownLesson,
)
from code_tutor.levels import LevelStatus, level_for_xp, level_status
from code_tutor.models import Lesson, UserProgress
from code_tutor.progress import CompletionOutcome, apply_completion
from code_tutor.quiz import QuizResult, QuizSession, QuizState
from code_tutor.sequencer import LessonState, lesson_states, load_track

logger = logging.getLogger(__name__)

PERFECT_QUIZ_ACHIEVEMENT = "perfect-quiz"


@dataclass
class CommitReport:
    result: QuizResult
    saved: bool
    outcome: Optional[CompletionOutcome] = None
    error: Optional[SaveFailure] = None


class ProgressionEngine:
    def __init__(self, store, user_id: str, replay_policy: str = "none"):
        self.store = store
        self.user_id = user_id
        self.replay_policy = replay_policy
        try:
            self.progress: UserProgress = store.get_user_progress(user_id)
        except StoreUnavailable as e:
            raise LoadFailure(f"Could not load progress for {user_id!r}") from e
        self.track: Optional[str] = None
        self.lessons: list[Lesson] = []
        self.session: Optional[QuizSession] = None
        self._pending: list[tuple[QuizResult, int]] = []
        self._closed = False
        logger.info(f"Signed in {user_id!r} with {self.progress.total_xp} XP")

    def _check_open(self) -> None:
        if self._closed:
            raise QuizStateError("Engine is closed; sign in again")

    def close(self) -> None:
        """Sign out: drop the session and cached state."""
        self.session = None
        self.lessons = []
        self.track = None
        self._pending = []
        self._closed = True
        logger.info(f"Signed out {self.user_id!r}")

    @property
    def closed(self) -> bool:
        return self._closed

    def open_track(self, track: str) -> list[LessonState]:
        self._check_open()
        lessons = load_track(self.store, track)
        self.track = track
        self.lessons = lessons
        return self.track_states()

    def track_states(self) -> list[LessonState]:
        self._check_open()
        return lesson_states(self.lessons, self.progress.completed_lesson_ids)

    def start_lesson(self, lesson_id: str) -> QuizSession:
        self._check_open()
        for state in self.track_states():
            if state.lesson.id != lesson_id:
                continue
            if not state.unlocked:
                raise LessonLocked(f"Finish the previous lesson before {state.lesson.title!r}")
            self.session = QuizSession(state.lesson)
            return self.session
        raise UnknownLesson(f"No lesson {lesson_id!r} in track {self.track!r}")

    def restart_lesson(self) -> QuizSession:
        self._check_open()
        if self.session is None:
            raise QuizStateError("No lesson in progress")
        self.session.restart()
        return self.session

    def finish(self, session: Optional[QuizSession] = None) -> CommitReport:
        """Commit a finished session's result to the user's stored progress.

        The session rejects input while the save is running. On SaveFailure the
        in-memory progress is left untouched and the result waits for the next
        commit or ``retry_commit``. A session's result is committed once; restart
        the lesson to submit another attempt.
        """
        self._check_open()
        session = session or self.session
        if session is None or session.state != QuizState.FINISHED:
            raise QuizStateError("Quiz is not finished")
        if session.committed:
            raise QuizStateError("This attempt was already submitted; restart the lesson to try again")
        session.locked = True
        try:
            self.store.record_attempt(self.user_id, session.result)
            report = self._commit([(session.result, self._track_total(session.result.track))])
            session.committed = True
            return report
        finally:
            session.locked = False

    def retry_commit(self) -> CommitReport:
        self._check_open()
        if not self._pending:
            raise QuizStateError("Nothing waiting to be saved")
        return self._commit([])

    @property
    def has_pending_commit(self) -> bool:
        return bool(self._pending)

    def _track_total(self, track: str) -> int:
        if track == self.track and self.lessons:
            return len(self.lessons)
        try:
            return self.store.count_lessons(track)
        except StoreUnavailable as e:
            logger.warning(f"Lesson count for {track!r} unavailable: {e}")
            return 0

    def _commit(self, new: list[tuple[QuizResult, int]]) -> CommitReport:
        """Apply every unsaved result, oldest first, and save them together.

        The report describes the last result applied.
        """
        batch = self._pending + new
        updated = self.progress.copy()
        level_before = level_for_xp(updated.total_xp)
        outcomes = []
        for result, total in batch:
            outcomes.append(apply_completion(updated, result, total, self.replay_policy))
            if result.perfect and PERFECT_QUIZ_ACHIEVEMENT not in updated.achievements:
                updated.achievements.append(PERFECT_QUIZ_ACHIEVEMENT)
        last = batch[-1][0]
        try:
            self.store.save_user_progress(self.user_id, updated)
        except SaveFailure as e:
            logger.warning(f"Progress for {self.user_id!r} not saved ({len(batch)} pending): {e}")
            self._pending = batch
            return CommitReport(result=last, saved=False, error=e)

        self.progress = updated
        self._pending = []
        for (result, _), outcome in zip(batch, outcomes):
            logger.info(
                f"{self.user_id!r} finished {result.lesson_id!r}: "
                f"{result.correct_count}/{result.total_questions}, +{outcome.awarded_xp} XP"
            )
            if result.perfect:
                self.store.emit_notification(
                    self.user_id, "achievement", "Perfect Quiz!",
                    f"Congratulations! You got all {result.total_questions} questions "
                    f"right in \"{result.lesson_title}\".",
                )
        level_after = level_for_xp(updated.total_xp)
        if level_after > level_before:
            self.store.emit_notification(
                self.user_id, "system", "Level up!", f"You reached level {level_after}.",
            )
        return CommitReport(result=last, saved=True, outcome=outcomes[-1])

    def level_status(self) -> LevelStatus:
        return level_status(self.progress.total_xp)

    def unread_notifications(self) -> int:
        self._check_open()
        return self.store.unread_count(self.user_id)
