"""Quiz session state machine for one attempt at a lesson.

    PRESENTING --select--> ANSWER_SELECTED --submit--> FEEDBACK
        ^                    |  ^ (re-select)              |
        +--------------------+--+------advance-------------+--> FINISHED

Listeners registered with ``subscribe`` are called after every transition so
a front end can redraw without the session knowing how.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from code_tutor.errors import InvalidSelection, QuizStateError
from code_tutor.models import Lesson, Question

logger = logging.getLogger(__name__)

POINTS_PER_QUESTION = 10


class QuizState(str, Enum):
    PRESENTING = "presenting"
    ANSWER_SELECTED = "answer_selected"
    FEEDBACK = "feedback"
    FINISHED = "finished"


@dataclass
class Feedback:
    question_index: int
    selected_option_index: int
    correct_option_index: int
    is_correct: bool
    explanation: str

    @property
    def wrong_option_index(self) -> Optional[int]:
        return None if self.is_correct else self.selected_option_index


@dataclass
class QuizResult:
    lesson_id: str
    track: str
    lesson_title: str
    correct_count: int
    total_questions: int
    cumulative_score: int
    earned_xp: int

    @property
    def perfect(self) -> bool:
        return self.correct_count == self.total_questions


def calc_earned_xp(correct_count: int, total_questions: int, xp_reward: int) -> int:
    """Share of the lesson reward matching the share of correct answers, floored."""
    if total_questions <= 0:
        return 0
    return (correct_count * xp_reward) // total_questions


Listener = Callable[["QuizSession", str], None]


class QuizSession:
    def __init__(self, lesson: Lesson):
        self.lesson = lesson
        self._listeners: list[Listener] = []
        self.locked = False
        self.start()

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _emit(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(self, event)

    @property
    def total_questions(self) -> int:
        return len(self.lesson.questions)

    @property
    def current_question(self) -> Question:
        return self.lesson.questions[self.current_question_index]

    @property
    def is_last_question(self) -> bool:
        return self.current_question_index == self.total_questions - 1

    @property
    def can_submit(self) -> bool:
        return self.state == QuizState.ANSWER_SELECTED and not self.locked

    def start(self) -> None:
        self.state = QuizState.PRESENTING
        self.current_question_index = 0
        self.selected_option_index: Optional[int] = None
        self.correct_count = 0
        self.cumulative_score = 0
        self.feedback: Optional[Feedback] = None
        self.result: Optional[QuizResult] = None
        self.locked = False
        self.committed = False
        self._emit("started")

    def restart(self) -> None:
        """Throw away this attempt and begin again. Allowed from any state."""
        logger.debug(f"Restarting quiz for lesson {self.lesson.id!r}")
        self.start()

    def _require(self, *states: QuizState) -> None:
        if self.locked:
            raise QuizStateError("Quiz is waiting for its result to be saved")
        if self.state not in states:
            raise QuizStateError(f"Not allowed while quiz is {self.state.value}")

    def select_option(self, index: int) -> None:
        self._require(QuizState.PRESENTING, QuizState.ANSWER_SELECTED)
        if not 0 <= index < len(self.current_question.options):
            raise IndexError(f"Option {index} does not exist for this question")
        self.selected_option_index = index
        self.state = QuizState.ANSWER_SELECTED
        self._emit("selected")

    def submit_answer(self) -> Feedback:
        if self.state == QuizState.PRESENTING and self.selected_option_index is None and not self.locked:
            raise InvalidSelection("Select an option before submitting")
        self._require(QuizState.ANSWER_SELECTED)
        question = self.current_question
        is_correct = self.selected_option_index == question.correct_option_index
        if is_correct:
            self.correct_count += 1
            self.cumulative_score += POINTS_PER_QUESTION
        self.feedback = Feedback(
            question_index=self.current_question_index,
            selected_option_index=self.selected_option_index,
            correct_option_index=question.correct_option_index,
            is_correct=is_correct,
            explanation=question.explanation,
        )
        self.state = QuizState.FEEDBACK
        self._emit("answered")
        return self.feedback

    def advance(self) -> Optional[QuizResult]:
        """Move past the feedback. Returns the result once the quiz is over."""
        self._require(QuizState.FEEDBACK)
        self.feedback = None
        self.selected_option_index = None
        if self.is_last_question:
            self.state = QuizState.FINISHED
            self.result = QuizResult(
                lesson_id=self.lesson.id,
                track=self.lesson.track,
                lesson_title=self.lesson.title,
                correct_count=self.correct_count,
                total_questions=self.total_questions,
                cumulative_score=self.cumulative_score,
                earned_xp=calc_earned_xp(self.correct_count, self.total_questions, self.lesson.xp_reward),
            )
            self._emit("finished")
            return self.result
        self.current_question_index += 1
        self.state = QuizState.PRESENTING
        self._emit("advanced")
        return None
