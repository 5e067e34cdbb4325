"""
SAT Prep CLI - diagnostic, study plan and study timer from the terminal.

Usage:
    satprep diagnostic                    # Take the diagnostic test
    satprep plan                          # Show your study plan
    satprep task <id> -t daily -s completed
    satprep adapt                         # Re-plan from your performance
    satprep style kinesthetic             # Override your learning style
    satprep timer Math Algebra -d 25      # Time a study block
    satprep stats                         # Recorded performance
    satprep serve                         # Run the prep service
    satprep seed                          # Seed the question bank
"""

from __future__ import annotations

import asyncio
import sys
from typing import Annotated

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from satprep.core.errors import PrepError, SubmissionNetworkError
from satprep.core.models import (
    DiagnosticResult,
    LearningStyle,
    Subject,
    StudyPlan,
    StudyTask,
    TaskStatus,
    TaskType,
)
from satprep.core.modes import PrepCliConfig
from satprep.core.platform_client import PrepPlatformClient
from satprep.diagnostic.flow import DiagnosticFlow, FlowState
from satprep.study.study_timer import StudyTimer

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="satprep",
    help="SAT Prep CLI - diagnostic test, learning style and study plan",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

STATUS_STYLES = {
    TaskStatus.PENDING: "dim",
    TaskStatus.IN_PROGRESS: "yellow",
    TaskStatus.COMPLETED: "green",
}


@app.callback()
def configure(
    ctx: typer.Context,
    api_url: Annotated[
        str | None, typer.Option("--api-url", help="Prep service base URL")
    ] = None,
    token: Annotated[
        str | None, typer.Option("--token", help="Bearer token for the prep service")
    ] = None,
) -> None:
    """Load client configuration; options override SATPREP_* variables."""
    config = PrepCliConfig()
    if api_url:
        config.api.base_url = api_url
    if token:
        config.api.api_token = token
    ctx.obj = config


def get_config(ctx: typer.Context) -> PrepCliConfig:
    return ctx.obj if isinstance(ctx.obj, PrepCliConfig) else PrepCliConfig()


def render_error(error: PrepError) -> None:
    """Show a failure and what the learner can do about it."""
    body = f"[bold]{error.user_message}[/]"
    if error.detail:
        body += f"\n[dim]{error.detail}[/]"
    body += f"\n\n[cyan]{error.recovery_action}[/]"
    console.print(Panel(body, title="Error", border_style="red"))


def fail(error: PrepError) -> None:
    render_error(error)
    raise typer.Exit(code=1)


# =============================================================================
# Rendering
# =============================================================================


def _task_rows(table: Table, task_type: TaskType, tasks: list[StudyTask]) -> None:
    for task in tasks:
        table.add_row(
            task.id,
            task_type.value,
            task.task,
            f"[{STATUS_STYLES[task.status]}]{task.status.value}[/]",
            task.due_date.isoformat() if task.due_date else "-",
        )


def show_plan(plan: StudyPlan) -> None:
    style = plan.learning_style.display_name if plan.learning_style else "Not set"
    console.print(
        Panel(
            f"Learning style: [bold]{style}[/]\n"
            f"Progress: [bold]{plan.progress}%[/]\n"
            f"Weak areas: {', '.join(plan.weak_areas) or 'none'}",
            title="Study Plan",
            border_style="cyan",
        )
    )

    table = Table(show_header=True, header_style="bold")
    table.add_column("Id", style="dim", no_wrap=True)
    table.add_column("Type")
    table.add_column("Task")
    table.add_column("Status")
    table.add_column("Due")
    _task_rows(table, TaskType.DAILY, plan.daily_goals)
    _task_rows(table, TaskType.WEEKLY, plan.weekly_goals)
    console.print(table)

    for rec in plan.recommendations:
        console.print(
            f"[red]![/] [bold]{rec.subject}[/] ({rec.priority}): {', '.join(rec.resources)}"
        )
    if plan.learning_style_recommendations:
        console.print("\n[bold]Tips for your learning style[/]")
        for tip in plan.learning_style_recommendations:
            console.print(f"  - {tip}")


def show_result(result: DiagnosticResult) -> None:
    console.print(
        Panel(
            f"Score: [bold]{result.score}%[/]\n"
            f"Learning style: [bold magenta]{result.learning_style.display_name}[/]",
            title="Diagnostic Complete",
            border_style="green",
        )
    )

    table = Table(title="Scores by subject", show_header=True, header_style="bold")
    table.add_column("Subject")
    table.add_column("Correct", justify="right")
    table.add_column("Score", justify="right")
    for subject, score in result.subject_scores.items():
        colour = "red" if subject in result.weak_areas else "green"
        table.add_row(subject, f"{score.correct}/{score.total}", f"[{colour}]{score.score}%[/]")
    console.print(table)

    show_plan(result.study_plan)


# =============================================================================
# Diagnostic
# =============================================================================


@app.command()
def diagnostic(ctx: typer.Context) -> None:
    """
    Take the diagnostic test.

    Answers are graded by the prep service; your learning style is inferred
    from the question format you do best on, and a study plan is generated.
    """
    config = get_config(ctx)
    try:
        result = asyncio.run(_run_diagnostic(config))
    except KeyboardInterrupt:
        console.print("\n[yellow]Diagnostic abandoned.[/]")
        raise typer.Exit(1)
    except PrepError as e:
        fail(e)
    else:
        show_result(result)


async def _run_diagnostic(config: PrepCliConfig) -> DiagnosticResult:
    async with PrepPlatformClient(config.api) as client:
        flow = DiagnosticFlow(client)
        await flow.start()
        console.print(
            f"[bold cyan]Diagnostic test[/]: {flow.total_questions} questions. "
            "Choose the number of your answer.\n"
        )

        while flow.state == FlowState.IN_PROGRESS:
            question = flow.current_question
            answered, total = flow.progress
            lines = [f"[bold]{question.text}[/]"]
            if question.media_url:
                lines.append(f"[dim]{question.format.value}: {question.media_url}[/]")
            lines.extend(f"  {i}. {option}" for i, option in enumerate(question.options, 1))
            console.print(
                Panel(
                    "\n".join(lines),
                    title=f"{answered + 1}/{total} - {question.subject.value}",
                    border_style="blue",
                )
            )
            choice = Prompt.ask(
                "Answer",
                choices=[str(i) for i in range(1, len(question.options) + 1)],
                console=console,
            )
            flow.record_answer(question.options[int(choice) - 1])

        while True:
            try:
                with console.status("Submitting..."):
                    return await flow.submit()
            except SubmissionNetworkError as e:
                render_error(e)
                if not flow.can_retry or not Confirm.ask(
                    "Retry the submission?", default=True, console=console
                ):
                    raise


# =============================================================================
# Study Plan
# =============================================================================


@app.command()
def plan(ctx: typer.Context) -> None:
    """Show your current study plan."""
    config = get_config(ctx)
    try:
        study_plan = asyncio.run(_with_client(config, lambda c: c.get_study_plan()))
    except PrepError as e:
        fail(e)
    else:
        show_plan(study_plan)


@app.command()
def task(
    ctx: typer.Context,
    task_id: Annotated[str, typer.Argument(help="Task id from `satprep plan`")],
    task_type: Annotated[
        TaskType, typer.Option("--type", "-t", help="daily or weekly")
    ] = TaskType.DAILY,
    status: Annotated[
        TaskStatus, typer.Option("--status", "-s", help="New task status")
    ] = TaskStatus.COMPLETED,
) -> None:
    """Update the status of a study-plan task."""
    config = get_config(ctx)
    try:
        result = asyncio.run(
            _with_client(config, lambda c: c.update_task_status(task_id, task_type, status))
        )
    except PrepError as e:
        fail(e)
    else:
        for note in result.notifications:
            icon = "[green]✓[/]" if note.type == "taskCompleted" else "[magenta]★[/]"
            console.print(f"{icon} {note.message}")
        console.print(f"Progress: [bold]{result.study_plan.progress}%[/]")


@app.command()
def adapt(ctx: typer.Context) -> None:
    """Re-plan from your recorded performance."""
    config = get_config(ctx)
    try:
        result = asyncio.run(_with_client(config, lambda c: c.generate_adaptive_plan()))
    except PrepError as e:
        fail(e)
    else:
        if result.subject_averages:
            table = Table(title="Average score by subject", header_style="bold")
            table.add_column("Subject")
            table.add_column("Average", justify="right")
            for subject, average in result.subject_averages.items():
                table.add_row(subject, f"{average:.0f}%")
            console.print(table)
        else:
            console.print("[yellow]No performance recorded yet; planning from defaults.[/]")
        show_plan(result.study_plan)


@app.command()
def style(
    ctx: typer.Context,
    learning_style: Annotated[LearningStyle, typer.Argument(help="Learning style to use")],
) -> None:
    """Override your learning style (the only way to choose kinesthetic)."""
    config = get_config(ctx)
    try:
        new_style = asyncio.run(
            _with_client(config, lambda c: c.set_learning_style(learning_style))
        )
    except PrepError as e:
        fail(e)
    else:
        console.print(f"Learning style set to [bold]{new_style.display_name}[/]")


# =============================================================================
# Study Time
# =============================================================================


@app.command()
def timer(
    ctx: typer.Context,
    subject: Annotated[Subject, typer.Argument(help="Subject being studied")],
    subtopic: Annotated[str, typer.Argument(help="Subtopic being studied")],
    duration: Annotated[
        int | None, typer.Option("--duration", "-d", min=1, help="Stop after N minutes")
    ] = None,
    score: Annotated[
        int | None,
        typer.Option("--score", min=0, max=100, help="Score to record with the block"),
    ] = None,
) -> None:
    """
    Time a study block and record it.

    Runs until --duration elapses or Ctrl+C; the time is recorded either way.
    """
    config = get_config(ctx)
    try:
        minutes = asyncio.run(_run_timer(config, subject.value, subtopic, duration, score))
    except KeyboardInterrupt:
        console.print("\n[yellow]Timer stopped.[/]")
    except PrepError as e:
        fail(e)
    else:
        console.print(f"[green]Recorded {minutes} min of {subject.value} / {subtopic}[/]")


async def _run_timer(
    config: PrepCliConfig,
    subject: str,
    subtopic: str,
    duration: int | None,
    score: int | None,
) -> int:
    async with PrepPlatformClient(config.api) as client:
        study_timer = StudyTimer(subject, subtopic, sink=client)
        async with study_timer:
            console.print(f"[cyan]Studying {subject} / {subtopic}. Ctrl+C to stop.[/]")
            with console.status("00:00:00") as status:
                while duration is None or study_timer.elapsed_seconds < duration * 60:
                    status.update(study_timer.format_elapsed())
                    await asyncio.sleep(1)
            while True:
                try:
                    return await study_timer.stop(score)
                except PrepError as e:
                    render_error(e)
                    if not Confirm.ask(
                        "Retry recording the study time?", default=True, console=console
                    ):
                        raise


@app.command()
def stats(
    ctx: typer.Context,
    subject: Annotated[
        Subject | None, typer.Option("--subject", help="Only this subject")
    ] = None,
) -> None:
    """Show recorded scores and study time."""
    config = get_config(ctx)
    try:
        summary = asyncio.run(
            _with_client(
                config,
                lambda c: c.get_performance_summary(subject.value if subject else None),
            )
        )
    except PrepError as e:
        fail(e)
    else:
        table = Table(title="Performance", header_style="bold")
        table.add_column("Subject")
        table.add_column("Average", justify="right")
        table.add_column("Study time", justify="right")
        subjects = sorted(set(summary.subject_averages) | set(summary.study_time_by_subject))
        for name in subjects:
            average = summary.subject_averages.get(name)
            table.add_row(
                name,
                f"{average:.0f}%" if average is not None else "-",
                f"{summary.study_time_by_subject.get(name, 0)} min",
            )
        console.print(table)
        console.print(
            f"Overall average: [bold]{summary.overall_average:.0f}%[/]  "
            f"Total study time: [bold]{summary.total_study_time} min[/]"
        )


async def _with_client(config: PrepCliConfig, call):
    async with PrepPlatformClient(config.api) as client:
        return await call(client)


# =============================================================================
# Service
# =============================================================================


@app.command()
def serve(
    host: Annotated[str | None, typer.Option("--host", help="Bind host")] = None,
    port: Annotated[int | None, typer.Option("--port", help="Bind port")] = None,
    reload: Annotated[bool, typer.Option("--reload", help="Auto-reload on changes")] = False,
) -> None:
    """Run the prep service."""
    import uvicorn

    from config import get_settings

    settings = get_settings()
    uvicorn.run(
        "satprep.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command()
def seed() -> None:
    """Create tables and seed the question bank and demo learner."""
    from config import get_settings
    from satprep.db.database import init_db, session_scope
    from satprep.db.seed import seed_all

    settings = get_settings()
    init_db()
    with session_scope() as session:
        counts = seed_all(session, settings.demo_learner_name, settings.demo_learner_token)
    console.print(
        f"[green]Seeded {counts['questions']} questions.[/] "
        f"Demo token: [bold]{settings.demo_learner_token}[/]"
    )


def main() -> None:
    """CLI entry point."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=PrepCliConfig().log_level.upper(),
        format="<level>{message}</level>",
    )

    app()


if __name__ == "__main__":
    main()
