import pytest
from unittest.mock import patch

from code_tutor.app import (
    SessionExitRequested, cmd_notifications, cmd_settings, play_lesson, run_quiz_session,
    session_int_prompt, session_prompt, sign_in, try_sign_in, xp_bar,
)
from code_tutor.engine import ProgressionEngine
from code_tutor.errors import StoreUnavailable
from code_tutor.notifications import count_unread, emit_notification
from code_tutor.seed import seed_all
from code_tutor.settings import get_last_user, get_replay_policy
from code_tutor.store import DocumentStore


@pytest.fixture
def engine(ready_db):
    seed_all(ready_db)
    engine = ProgressionEngine(DocumentStore(ready_db), "ana")
    engine.open_track("javascript")
    return engine


def test_session_prompt_raises_on_q():
    with patch("code_tutor.app.Prompt.ask", return_value="q"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_raises_on_menu():
    with patch("code_tutor.app.Prompt.ask", return_value="menu"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_returns_normal_input():
    with patch("code_tutor.app.Prompt.ask", return_value="hello"):
        assert session_prompt("test prompt") == "hello"


def test_session_prompt_accepts_exit_words_as_choices():
    with patch("code_tutor.app.Prompt.ask", return_value="2") as ask:
        session_prompt("pick", choices=["1", "2"])
    assert ask.call_args.kwargs["choices"] == ["1", "2", "q", "menu"]


def test_session_int_prompt_returns_int():
    with patch("code_tutor.app.Prompt.ask", return_value="3"):
        assert session_int_prompt("answer", choices=["1", "2", "3"]) == 3


def test_xp_bar_width():
    bar = xp_bar(0.5, width=10)
    assert bar.count("█") == 5
    assert bar.count("░") == 5


def test_run_quiz_session_perfect(engine):
    session = engine.start_lesson("javascript-1")
    # answer, Enter, answer, Enter
    with patch("code_tutor.app.Prompt.ask", side_effect=["1", "", "2", ""]):
        report = run_quiz_session(engine, session)
    assert report.saved
    assert report.result.perfect
    assert report.result.cumulative_score == 20
    assert engine.progress.total_xp == 50
    assert "javascript-1" in engine.progress.completed_lesson_ids


def test_run_quiz_session_exit_leaves_progress_alone(engine):
    session = engine.start_lesson("javascript-1")
    with patch("code_tutor.app.Prompt.ask", side_effect=["1", "q"]):
        with pytest.raises(SessionExitRequested):
            run_quiz_session(engine, session)
    assert engine.progress.total_xp == 0
    assert engine.progress.completed_lesson_ids == []


def test_play_lesson_back_after_finishing(engine):
    with patch("code_tutor.app.Prompt.ask", side_effect=["1", "", "2", "", "back"]):
        assert play_lesson(engine, "javascript-1") == "back"
    states = engine.track_states()
    assert states[1].unlocked


def test_play_lesson_again_replays(engine):
    answers = ["1", "", "2", ""]
    with patch("code_tutor.app.Prompt.ask", side_effect=answers + ["again"] + answers + ["next"]):
        assert play_lesson(engine, "javascript-1") == "next"
    # replay earns nothing under the default policy
    assert engine.progress.total_xp == 50


def test_play_lesson_abandoned(engine):
    with patch("code_tutor.app.Prompt.ask", side_effect=["menu"]):
        assert play_lesson(engine, "javascript-1") == "next"
    assert engine.progress.completed_lesson_ids == []


def test_cmd_settings_updates_engine(engine, ready_db):
    with patch("code_tutor.app.Prompt.ask", return_value="full"):
        cmd_settings(engine, ready_db)
    assert engine.replay_policy == "full"
    assert get_replay_policy(ready_db) == "full"


def test_cmd_notifications_mark_all(engine, ready_db):
    emit_notification(ready_db, "ana", "system", "Hello", "there")
    with patch("code_tutor.app.Prompt.ask", side_effect=["all", "all"]):
        cmd_notifications(engine, ready_db)
    assert count_unread(ready_db, "ana") == 0


def test_sign_in_remembers_user(ready_db):
    store = DocumentStore(ready_db)
    with patch("code_tutor.app.Prompt.ask", side_effect=["", "  bia "]):
        engine = sign_in(store, ready_db)
    assert engine.user_id == "bia"
    assert get_last_user(ready_db) == "bia"
    assert count_unread(ready_db, "bia") == 3


class OfflineStore(DocumentStore):
    """Progress loads fail until ``online`` is set."""

    def __init__(self, db_path):
        super().__init__(db_path)
        self.online = False

    def get_user_progress(self, user_id):
        if not self.online:
            self.online = True
            raise StoreUnavailable("offline")
        return super().get_user_progress(user_id)


def test_try_sign_in_gives_up_when_store_offline(ready_db):
    store = OfflineStore(ready_db)
    with patch("code_tutor.app.Prompt.ask", side_effect=["ana", "n"]):
        assert try_sign_in(store, ready_db) is None


def test_try_sign_in_retries_after_load_failure(ready_db):
    store = OfflineStore(ready_db)
    with patch("code_tutor.app.Prompt.ask", side_effect=["ana", "y", "ana"]):
        engine = try_sign_in(store, ready_db)
    assert engine.user_id == "ana"
