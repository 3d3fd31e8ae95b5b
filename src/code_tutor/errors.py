"""Error kinds raised by the progression engine and its store."""


class TutorError(Exception):
    """Base class for all code_tutor errors."""


class StoreUnavailable(TutorError):
    """The backing store could not be reached or queried."""


class LoadFailure(TutorError):
    """Lessons or progress could not be loaded. Nothing should be shown."""


class SaveFailure(TutorError):
    """A progress commit did not complete; the result is only local."""


class SeedRaceIgnorable(TutorError):
    """Default lessons for a track were already inserted by someone else."""


class InvalidSelection(TutorError):
    """An answer was submitted with no option selected."""


class QuizStateError(TutorError):
    """A quiz operation was called in a state that does not allow it."""


class LessonLocked(TutorError):
    """The requested lesson's predecessor has not been completed."""


class UnknownLesson(TutorError):
    """No lesson with the given id exists in the open track."""
