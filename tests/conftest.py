import pytest

from code_tutor.db import init_db
from code_tutor.models import Lesson, Question


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_tutor.db")
    return db_path


@pytest.fixture
def ready_db(tmp_db):
    """A temporary database with the schema created."""
    init_db(tmp_db)
    return tmp_db


@pytest.fixture
def make_lesson():
    """Factory for lessons whose every correct answer is option 0."""
    def _make(lesson_id="js-1", track="javascript", order=1, xp_reward=50, questions=2):
        return Lesson(
            id=lesson_id,
            track=track,
            order=order,
            title=f"Lesson {order}",
            xp_reward=xp_reward,
            questions=[
                Question(prompt=f"Q{i}?", options=["right", "wrong", "also wrong"],
                         correct_option_index=0, explanation=f"Because {i}.")
                for i in range(questions)
            ],
        )
    return _make
