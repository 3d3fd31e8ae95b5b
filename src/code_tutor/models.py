"""Data classes for the lesson and progress domain model."""
from dataclasses import dataclass, field
from typing import Optional

NOTIFICATION_ICONS = {
    "system": "bell",
    "community": "graduation-cap",
    "achievement": "trophy",
    "reminder": "clock",
}


@dataclass
class Question:
    prompt: str
    options: list[str]
    correct_option_index: int
    explanation: str = ""

    def __post_init__(self):
        if len(self.options) < 2:
            raise ValueError(f"Question {self.prompt!r} needs at least two options.")
        if not 0 <= self.correct_option_index < len(self.options):
            raise ValueError(
                f"Question {self.prompt!r} has correct_option_index {self.correct_option_index} "
                f"outside 0..{len(self.options) - 1}."
            )


@dataclass
class Lesson:
    id: str
    track: str
    order: int
    title: str
    xp_reward: int
    questions: list[Question]
    description: str = ""

    def __post_init__(self):
        if self.order < 1:
            raise ValueError(f"Lesson {self.id!r} has order {self.order}; orders start at 1.")
        if self.xp_reward < 0:
            raise ValueError(f"Lesson {self.id!r} has a negative xp_reward.")
        if not self.questions:
            raise ValueError(f"Lesson {self.id!r} has no questions.")


@dataclass
class TrackProgress:
    completed_count: int = 0
    total_count: int = 0

    @property
    def percent(self) -> float:
        if self.total_count <= 0:
            return 0.0
        return min(self.completed_count / self.total_count * 100, 100.0)


@dataclass
class UserProgress:
    user_id: str
    total_xp: int = 0
    completed_lesson_ids: list[str] = field(default_factory=list)
    track_progress: dict[str, TrackProgress] = field(default_factory=dict)
    achievements: list[str] = field(default_factory=list)

    def copy(self) -> "UserProgress":
        return UserProgress(
            user_id=self.user_id,
            total_xp=self.total_xp,
            completed_lesson_ids=list(self.completed_lesson_ids),
            track_progress={
                track: TrackProgress(tp.completed_count, tp.total_count)
                for track, tp in self.track_progress.items()
            },
            achievements=list(self.achievements),
        )


@dataclass
class Notification:
    id: int
    user_id: str
    type: str
    title: str
    message: str
    read: bool = False
    created_at: Optional[str] = None
    icon: Optional[str] = None

    def __post_init__(self):
        if self.icon is None:
            self.icon = NOTIFICATION_ICONS.get(self.type, "bell")


def question_from_dict(raw: dict) -> Question:
    """Build a validated Question from a template or stored dictionary."""
    return Question(
        prompt=str(raw["prompt"]),
        options=[str(option) for option in raw["options"]],
        correct_option_index=int(raw["correct_option_index"]),
        explanation=str(raw.get("explanation", "")),
    )


def lesson_from_dict(raw: dict, lesson_id: Optional[str] = None) -> Lesson:
    """Build a validated Lesson; the id defaults to ``{track}-{order}``."""
    track = str(raw["track"])
    order = int(raw["order"])
    return Lesson(
        id=lesson_id or str(raw.get("id") or f"{track}-{order}"),
        track=track,
        order=order,
        title=str(raw["title"]),
        description=str(raw.get("description", "")),
        xp_reward=int(raw.get("xp_reward", 0)),
        questions=[question_from_dict(q) for q in raw.get("questions", [])],
    )
