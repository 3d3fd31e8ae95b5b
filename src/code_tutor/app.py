"""Interactive CLI application."""
import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from code_tutor.dashboard import get_attempt_stats, get_level_color, get_progress_summary
from code_tutor.db import init_db, DEFAULT_DB_PATH
from code_tutor.engine import CommitReport, ProgressionEngine
from code_tutor.errors import LoadFailure, TutorError
from code_tutor.notifications import (
    get_notifications, mark_all_as_read, mark_as_read, seed_welcome_notifications,
)
from code_tutor.quiz import QuizSession, QuizState
from code_tutor.seed import get_track_name, load_templates, seed_all
from code_tutor.settings import (
    REPLAY_POLICIES, get_last_user, get_log_level, get_replay_policy,
    set_last_user, set_replay_policy,
)
from code_tutor.store import DocumentStore

console = Console()
logger = logging.getLogger(__name__)

EXIT_WORDS = ("q", "menu")
STATUS_MARKERS = {
    "completed": "[green]done[/green]",
    "available": "[cyan]open[/cyan]",
    "locked": "[dim]locked[/dim]",
}


class SessionExitRequested(Exception):
    """Raised when the user types q or menu inside a lesson."""


def session_prompt(prompt: str, choices: list[str] | None = None, **kwargs) -> str:
    if choices is not None:
        choices = list(choices) + list(EXIT_WORDS)
    answer = Prompt.ask(prompt, choices=choices, show_choices=False, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def session_int_prompt(prompt: str, choices: list[str]) -> int:
    return int(session_prompt(prompt, choices=choices))


def setup_logging(db_path: str | None = None) -> None:
    logging.basicConfig(
        level=get_log_level(db_path),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def show_welcome(engine: ProgressionEngine):
    status = engine.level_status()
    console.print(Panel(
        f"[bold]Welcome, {engine.user_id}![/bold]\n"
        f"[dim]Level {status.level} · {status.total_xp} XP[/dim]",
        title="code-tutor", border_style="magenta",
    ))


def show_menu(unread: int = 0):
    console.print("\n[bold]Commands:[/bold]")
    badge = f" [yellow]({unread} unread)[/yellow]" if unread else ""
    commands = [
        ("learn", "Pick a track and take a lesson"),
        ("progress", "Level, XP and track progress"),
        ("notifications", "Messages and achievements" + badge),
        ("settings", "Replay XP policy"),
        ("switch", "Sign in as someone else"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def xp_bar(fraction: float, width: int = 20) -> str:
    filled = int(fraction * width)
    color = get_level_color(fraction)
    return f"[{color}]{'█' * filled}{'░' * (width - filled)}[/{color}]"


def render_question(session: QuizSession) -> None:
    q = session.current_question
    console.print(
        f"\n[bold]Question {session.current_question_index + 1}/{session.total_questions}[/bold] "
        f"{q.prompt}\n"
    )
    for i, option in enumerate(q.options, 1):
        console.print(f"  [cyan]{i})[/cyan] {option}")


def render_feedback(session: QuizSession) -> None:
    fb = session.feedback
    options = session.current_question.options
    if fb.is_correct:
        console.print("[green]Correct![/green]")
    else:
        console.print(
            f"[red]Incorrect.[/red] You chose [red]{options[fb.wrong_option_index]}[/red]; "
            f"answer: [green]{options[fb.correct_option_index]}[/green]"
        )
    if fb.explanation:
        console.print(f"[dim]{fb.explanation}[/dim]")


def on_quiz_event(session: QuizSession, event: str) -> None:
    if event in ("started", "advanced"):
        render_question(session)
    elif event == "answered":
        render_feedback(session)


def run_quiz_session(engine: ProgressionEngine, session: QuizSession) -> CommitReport:
    """Drive one quiz to the end and commit its result."""
    while session.state != QuizState.FINISHED:
        choices = [str(i) for i in range(1, len(session.current_question.options) + 1)]
        choice = session_int_prompt("\nYour answer", choices=choices)
        session.select_option(choice - 1)
        session.submit_answer()
        label = "Finish quiz" if session.is_last_question else "Next question"
        session_prompt(f"[dim]Press Enter: {label}[/dim]")
        session.advance()
    report = engine.finish(session)
    show_results(report)
    return report


def show_results(report: CommitReport) -> None:
    r = report.result
    lines = [
        f"Correct answers: [bold]{r.correct_count}/{r.total_questions}[/bold]",
        f"Score: [bold]{r.cumulative_score}[/bold]",
        f"XP earned: [bold]{r.earned_xp}[/bold]",
    ]
    if report.saved and report.outcome is not None:
        if not report.outcome.first_completion:
            lines.append(f"[dim]Replay: {report.outcome.awarded_xp} XP added to your total[/dim]")
        if report.outcome.leveled_up:
            lines.append(f"[magenta]Level up! You are now level {report.outcome.level_after}.[/magenta]")
    console.print(Panel("\n".join(lines), title=r.lesson_title, border_style="green" if r.perfect else "blue"))
    if not report.saved:
        console.print(
            "[yellow]Your result could not be saved yet. It will be retried; "
            "this lesson is not recorded as complete until then.[/yellow]"
        )


def choose_track() -> str | None:
    templates = load_templates()
    tracks = sorted(templates)
    for i, track in enumerate(tracks, 1):
        console.print(f"  [cyan]{i})[/cyan] {get_track_name(track)}")
    choice = Prompt.ask("Track", choices=[str(i) for i in range(1, len(tracks) + 1)] + ["b"], default="b")
    if choice == "b":
        return None
    return tracks[int(choice) - 1]


def show_lessons(engine: ProgressionEngine) -> None:
    table = Table(title=get_track_name(engine.track))
    table.add_column("#", justify="right")
    table.add_column("Lesson")
    table.add_column("Questions", justify="right")
    table.add_column("XP", justify="right")
    table.add_column("Status")
    for state in engine.track_states():
        lesson = state.lesson
        table.add_row(
            str(lesson.order), lesson.title, str(len(lesson.questions)),
            f"+{lesson.xp_reward}", STATUS_MARKERS[state.status],
        )
    console.print(table)


def play_lesson(engine: ProgressionEngine, lesson_id: str) -> str:
    """Run a lesson until the user leaves it. Returns "next" or "back"."""
    session = engine.start_lesson(lesson_id)
    session.subscribe(on_quiz_event)
    render_question(session)
    while True:
        try:
            run_quiz_session(engine, session)
        except SessionExitRequested:
            console.print("[dim]Lesson abandoned.[/dim]")
            return "next"
        choice = Prompt.ask("again / next / back", choices=["again", "next", "back"], default="next")
        if choice != "again":
            return choice
        session.restart()


def cmd_learn(engine: ProgressionEngine):
    if engine.has_pending_commit:
        report = engine.retry_commit()
        if report.saved:
            console.print("[green]Your previous result has now been saved.[/green]")
    console.print("\n[bold]Choose a track[/bold]")
    track = choose_track()
    if track is None:
        return
    try:
        engine.open_track(track)
    except LoadFailure as e:
        console.print(f"[red]{e}. Please try again later.[/red]")
        return
    while True:
        states = engine.track_states()
        if not states:
            console.print("[yellow]No lessons in this track yet.[/yellow]")
            return
        show_lessons(engine)
        open_orders = [str(s.lesson.order) for s in states if s.unlocked]
        choice = Prompt.ask("Lesson number (b to go back)", choices=open_orders + ["b"], default=open_orders[-1])
        if choice == "b":
            return
        lesson = next(s.lesson for s in states if str(s.lesson.order) == choice)
        if play_lesson(engine, lesson.id) == "back":
            return


def cmd_progress(engine: ProgressionEngine, db_path: str):
    summary = get_progress_summary(db_path, engine.user_id)
    stats = get_attempt_stats(db_path, engine.user_id)
    console.print(Panel(
        f"[bold]Level {summary['level']}[/bold]  ·  {summary['total_xp']} XP total",
        title=f"{engine.user_id}'s progress", border_style="blue",
    ))
    console.print(
        f"\n  {summary['xp_into_level']}/{summary['xp_for_next_level']} XP "
        f"{xp_bar(summary['progress_fraction'])}\n"
    )
    table = Table(title="Tracks")
    table.add_column("Track", style="cyan")
    table.add_column("Lessons", justify="right")
    table.add_column("Progress", justify="right")
    for row in summary["tracks"]:
        table.add_row(row["name"], f"{row['completed']}/{row['total']}", f"{row['percent']:.0f}%")
    console.print(table)
    console.print(f"\n  Lessons completed: [bold]{summary['completed_lessons']}[/bold]  |  "
                  f"Quizzes: [bold]{stats['quizzes_taken']}[/bold]  |  "
                  f"Perfect: [bold]{stats['perfect_quizzes']}[/bold]  |  "
                  f"Accuracy: [bold]{stats['accuracy']}%[/bold]")


def cmd_notifications(engine: ProgressionEngine, db_path: str):
    view = Prompt.ask("Show", choices=["all", "unread", "system", "community"], default="all")
    items = get_notifications(db_path, engine.user_id, view)
    if not items:
        console.print("[dim]No notifications.[/dim]")
        return
    table = Table(title="Notifications")
    table.add_column("#", justify="right")
    table.add_column("Type")
    table.add_column("Title")
    table.add_column("Message")
    for n in items:
        style = "" if n.read else "bold"
        table.add_row(str(n.id), n.type, f"[{style}]{n.title}[/{style}]" if style else n.title, n.message)
    console.print(table)
    action = Prompt.ask("Mark read: id, 'all', or Enter to go back", default="")
    if action == "all":
        count = mark_all_as_read(db_path, engine.user_id)
        console.print(f"[green]{count} marked as read.[/green]")
    elif action.isdigit():
        if mark_as_read(db_path, engine.user_id, int(action)):
            console.print("[green]Marked as read.[/green]")
        else:
            console.print("[yellow]No such notification.[/yellow]")


def cmd_settings(engine: ProgressionEngine, db_path: str):
    current = get_replay_policy(db_path)
    console.print(
        "\nReplaying a finished lesson awards: "
        "[cyan]none[/cyan] = no extra XP, [cyan]full[/cyan] = the full earned XP again."
    )
    policy = Prompt.ask("Replay XP policy", choices=list(REPLAY_POLICIES), default=current)
    set_replay_policy(db_path, policy)
    engine.replay_policy = policy
    console.print(f"[green]Replay XP policy set to {policy}.[/green]")


def sign_in(store: DocumentStore, db_path: str) -> ProgressionEngine:
    while True:
        user_id = Prompt.ask("User name", default=get_last_user(db_path) or "").strip()
        if user_id:
            break
        console.print("[red]A user name is required.[/red]")
    engine = ProgressionEngine(store, user_id, replay_policy=get_replay_policy(db_path))
    set_last_user(db_path, user_id)
    seed_welcome_notifications(db_path, user_id)
    return engine


def try_sign_in(store: DocumentStore, db_path: str) -> ProgressionEngine | None:
    """Sign in, offering a retry while progress cannot be loaded. None means give up."""
    while True:
        try:
            return sign_in(store, db_path)
        except LoadFailure as e:
            logger.error(f"Sign-in failed: {e}")
            console.print(f"[red]{e}. Your progress is not available right now.[/red]")
            if Prompt.ask("Try again?", choices=["y", "n"], default="y") == "n":
                return None


def main():
    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    setup_logging(db_path)
    seed_all(db_path)
    store = DocumentStore(db_path)

    engine = try_sign_in(store, db_path)
    if engine is None:
        return
    show_welcome(engine)

    while True:
        try:
            show_menu(engine.unread_notifications())
            choice = Prompt.ask("\n[bold]>[/bold]", default="learn").strip().lower()
            if choice == "learn":
                cmd_learn(engine)
            elif choice == "progress":
                cmd_progress(engine, db_path)
            elif choice == "notifications":
                cmd_notifications(engine, db_path)
            elif choice == "settings":
                cmd_settings(engine, db_path)
            elif choice == "switch":
                engine.close()
                engine = try_sign_in(store, db_path)
                if engine is None:
                    break
                show_welcome(engine)
            elif choice in ("quit", "exit", "q"):
                engine.close()
                console.print("[dim]See you next lesson![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except TutorError as e:
            console.print(f"[yellow]{e}[/yellow]")
        except Exception as e:
            logger.exception("Unexpected error")
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
