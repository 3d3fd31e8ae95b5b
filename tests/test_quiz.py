# tests/test_quiz.py
import pytest

from code_tutor.errors import InvalidSelection, QuizStateError
from code_tutor.quiz import POINTS_PER_QUESTION, QuizSession, QuizState, calc_earned_xp


def answer(session, option):
    session.select_option(option)
    feedback = session.submit_answer()
    result = session.advance()
    return feedback, result


def test_start_state(make_lesson):
    session = QuizSession(make_lesson())
    assert session.state == QuizState.PRESENTING
    assert session.current_question_index == 0
    assert session.selected_option_index is None
    assert session.correct_count == 0
    assert session.cumulative_score == 0
    assert not session.can_submit


def test_all_correct_two_questions(make_lesson):
    session = QuizSession(make_lesson(xp_reward=50, questions=2))
    answer(session, 0)
    _, result = answer(session, 0)
    assert session.state == QuizState.FINISHED
    assert result.earned_xp == 50
    assert result.correct_count == 2
    assert result.cumulative_score == 20
    assert result.perfect


def test_one_of_three_correct(make_lesson):
    session = QuizSession(make_lesson(xp_reward=60, questions=3))
    answer(session, 0)
    answer(session, 1)
    _, result = answer(session, 2)
    assert result.earned_xp == 20
    assert result.correct_count == 1
    assert not result.perfect


def test_half_correct_floors(make_lesson):
    session = QuizSession(make_lesson(xp_reward=50, questions=2))
    answer(session, 1)
    _, result = answer(session, 0)
    assert result.earned_xp == 25


def test_calc_earned_xp():
    assert calc_earned_xp(1, 3, 60) == 20
    assert calc_earned_xp(2, 3, 50) == 33
    assert calc_earned_xp(0, 3, 50) == 0
    assert calc_earned_xp(0, 0, 50) == 0


def test_reselect_overwrites_until_submit(make_lesson):
    session = QuizSession(make_lesson())
    session.select_option(1)
    session.select_option(0)
    assert session.selected_option_index == 0
    assert session.state == QuizState.ANSWER_SELECTED
    feedback = session.submit_answer()
    assert feedback.is_correct
    assert session.cumulative_score == POINTS_PER_QUESTION


def test_submit_without_selection_is_rejected(make_lesson):
    session = QuizSession(make_lesson())
    with pytest.raises(InvalidSelection):
        session.submit_answer()
    assert session.state == QuizState.PRESENTING
    assert session.correct_count == 0
    assert session.current_question_index == 0


def test_wrong_answer_feedback(make_lesson):
    session = QuizSession(make_lesson())
    session.select_option(2)
    feedback = session.submit_answer()
    assert not feedback.is_correct
    assert feedback.correct_option_index == 0
    assert feedback.wrong_option_index == 2
    assert feedback.explanation == "Because 0."
    assert session.correct_count == 0


def test_correct_answer_has_no_wrong_option(make_lesson):
    session = QuizSession(make_lesson())
    session.select_option(0)
    assert session.submit_answer().wrong_option_index is None


def test_advance_clears_selection(make_lesson):
    session = QuizSession(make_lesson())
    answer(session, 0)
    assert session.state == QuizState.PRESENTING
    assert session.current_question_index == 1
    assert session.selected_option_index is None


def test_operations_in_wrong_state(make_lesson):
    session = QuizSession(make_lesson())
    with pytest.raises(QuizStateError):
        session.advance()
    session.select_option(0)
    session.submit_answer()
    with pytest.raises(QuizStateError):
        session.select_option(1)
    with pytest.raises(QuizStateError):
        session.submit_answer()


def test_select_option_out_of_range(make_lesson):
    session = QuizSession(make_lesson())
    with pytest.raises(IndexError):
        session.select_option(3)


def test_restart_from_finished(make_lesson):
    session = QuizSession(make_lesson(questions=2))
    answer(session, 0)
    answer(session, 0)
    assert session.state == QuizState.FINISHED
    session.restart()
    assert session.state == QuizState.PRESENTING
    assert session.correct_count == 0
    assert session.cumulative_score == 0
    assert session.current_question_index == 0
    assert session.result is None


def test_locked_session_rejects_input_but_can_restart(make_lesson):
    session = QuizSession(make_lesson())
    session.locked = True
    with pytest.raises(QuizStateError):
        session.select_option(0)
    assert not session.can_submit
    session.restart()
    assert not session.locked
    session.select_option(0)


def test_listeners_receive_events(make_lesson):
    session = QuizSession(make_lesson(questions=2))
    events = []
    session.subscribe(lambda s, event: events.append(event))
    answer(session, 0)
    answer(session, 1)
    session.restart()
    assert events == [
        "selected", "answered", "advanced",
        "selected", "answered", "finished",
        "started",
    ]
