"""
Typer CLI for the Arivom learning engine.

Commands:
    arivom course create      - Create a course and its topic list
    arivom ingest             - Chunk, embed and attach a text document
    arivom ask                - Ask the learning agent a question
    arivom quiz generate      - Generate an adaptive quiz for a topic
    arivom quiz submit        - Submit answers for a quiz
    arivom mastery show       - Show topic mastery for a learner
    arivom mastery record     - Record an external quiz score
    arivom plan generate      - Generate a learning plan
    arivom plan show          - Show the learning plan
    arivom replan             - Inject remedial tasks for weak topics
    arivom copilot explain    - Explain a concept
    arivom copilot next       - Suggest the next topic
    arivom copilot tips       - Personalized study tips
    arivom db init            - Initialize database tables

Usage:
    arivom course create net101 --title "Networking" --topic Subnetting --topic Routing
    arivom ingest net101 notes.txt --pages 12
    arivom ask alice net101 "What is a subnet mask?"
    arivom quiz submit <quiz-id> --answer <question-id>=2 --minutes 8
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import NoReturn

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from arivom.container import Services, build_services
from arivom.core.errors import ArivomError
from arivom.core.logging import configure_logging
from arivom.core.scoring import utcnow
from arivom.models import Classification, Difficulty, WeekStatus
from arivom.quiz.quiz_service import grade_answers

app = typer.Typer(help="Arivom CLI: adaptive learning, quizzes and course Q&A")
console = Console()

CLASSIFICATION_STYLES = {
    Classification.WEAK: "red",
    Classification.MEDIUM: "yellow",
    Classification.STRONG: "green",
}

_services: Services | None = None


def get_services() -> Services:
    """Build services on first use."""
    global _services
    if _services is None:
        configure_logging()
        _services = build_services()
    return _services


def _fail(error: Exception) -> NoReturn:
    rprint(f"[red]✗[/red] {error}")
    raise typer.Exit(code=1)


# ========================================
# COURSE & CONTENT COMMANDS
# ========================================

course_app = typer.Typer(help="Course management")
app.add_typer(course_app, name="course")


@course_app.command("create")
def course_create(
    course_id: str = typer.Argument(..., help="Course identifier"),
    title: str = typer.Option("", "--title", "-t", help="Course title"),
    topics: list[str] = typer.Option([], "--topic", help="Course topic (repeatable, in order)"),
    description: str = typer.Option("", "--description", "-d"),
    level: str | None = typer.Option(None, "--level", help="Course level (default: keep, or beginner)"),
) -> None:
    """Create a course (or update its metadata)."""
    course = get_services().create_course(
        course_id, title=title, topics=topics or None, description=description, level=level
    )
    rprint(f"[green]✓[/green] Course [bold]{course.course_id}[/bold] saved ({len(course.topics)} topics)")


@app.command("ingest")
def ingest(
    course_id: str = typer.Argument(..., help="Course identifier"),
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="UTF-8 text file"),
    title: str | None = typer.Option(None, "--title", "-t", help="Material title (default: file name)"),
    pages: int = typer.Option(0, "--pages", help="Page count of the source document"),
) -> None:
    """Chunk and embed a text document into a course."""
    text = file.read_text(encoding="utf-8")
    try:
        material = get_services().ingestion.add_material(
            course_id, title or file.name, text, page_count=pages, material_type=file.suffix.lstrip(".") or "text"
        )
    except ArivomError as e:
        _fail(e)

    rprint(
        f"[green]✓[/green] Ingested [bold]{material.title}[/bold]: {len(material.chunks)} chunks, "
        f"{material.embedding_coverage:.0%} embedded"
    )


@app.command("ask")
def ask(
    user_id: str = typer.Argument(...),
    course_id: str = typer.Argument(...),
    message: str = typer.Argument(..., help="Question for the learning agent"),
) -> None:
    """Ask the learning agent about course material."""
    try:
        reply = get_services().agent.process_interaction(user_id, course_id, message)
    except ArivomError as e:
        _fail(e)

    console.print(Panel(reply.reply, title=f"Agent ({reply.source})", border_style="cyan"))
    if reply.context_used:
        rprint(f"[dim]Sources: {', '.join(dict.fromkeys(reply.context_used))}[/dim]")
    rprint(f"[bold]Next step:[/bold] {reply.suggested_next_step}")


# ========================================
# QUIZ COMMANDS
# ========================================

quiz_app = typer.Typer(help="Adaptive quizzes")
app.add_typer(quiz_app, name="quiz")


@quiz_app.command("generate")
def quiz_generate(
    user_id: str = typer.Argument(...),
    course_id: str = typer.Argument(...),
    topic: str = typer.Argument(...),
    difficulty: Difficulty | None = typer.Option(None, "--difficulty", help="Override mastery-based difficulty"),
    count: int | None = typer.Option(None, "--count", "-n", help="Number of questions"),
) -> None:
    """Generate a quiz matched to the learner's mastery."""
    try:
        quiz = get_services().quizzes.generate_quiz(user_id, course_id, topic, difficulty, count)
    except ArivomError as e:
        _fail(e)

    rprint(f"\n[bold cyan]{quiz.title}[/bold cyan]  [dim]{quiz.quiz_id}[/dim]")
    rprint(f"  Difficulty: {quiz.difficulty.value}   Status: {quiz.status.value}\n")
    if not quiz.questions:
        rprint("[yellow]⚠[/yellow] No questions could be generated; quiz saved as draft")
        return

    for number, question in enumerate(quiz.questions, start=1):
        rprint(f"[bold]{number}. {question.question_text}[/bold]  [dim]({question.question_id})[/dim]")
        for index, option in enumerate(question.options):
            rprint(f"     {index}) {option}")


@quiz_app.command("submit")
def quiz_submit(
    quiz_id: str = typer.Argument(...),
    answers: list[str] = typer.Option([], "--answer", "-a", help="QUESTION_ID=ANSWER (option index or text)"),
    minutes: float = typer.Option(0.0, "--minutes", help="Time taken"),
) -> None:
    """Submit answers for a quiz and update mastery."""
    services = get_services()
    selections: dict[str, str] = {}
    for raw in answers:
        question_id, sep, value = raw.partition("=")
        if not sep:
            _fail(ValueError(f"Answer must look like QUESTION_ID=ANSWER, got '{raw}'"))
        selections[question_id.strip()] = value.strip()

    completed_at = utcnow()
    try:
        quiz = services.quizzes.get_quiz(quiz_id)
        result = services.quizzes.submit_attempt(
            quiz_id, completed_at - timedelta(minutes=minutes), completed_at, grade_answers(quiz, selections)
        )
    except ArivomError as e:
        _fail(e)

    attempt = result.attempt
    status = "[green]PASSED[/green]" if attempt.passed else "[red]FAILED[/red]"
    rprint(f"\n{status} {attempt.percentage_score}% ({attempt.correct_answers}/{result.quiz.total_questions})")
    rprint(f"  Mastery: {result.mastery.mastery_score} ({result.mastery.classification.value}, {result.mastery_delta:+d})")
    if result.next_difficulty:
        rprint(f"  Next difficulty: {result.next_difficulty.value}")
    if result.weak_concepts:
        rprint(f"  Review: {', '.join(result.weak_concepts)}")


# ========================================
# MASTERY COMMANDS
# ========================================

mastery_app = typer.Typer(help="Topic mastery")
app.add_typer(mastery_app, name="mastery")


@mastery_app.command("show")
def mastery_show(user_id: str = typer.Argument(...), course_id: str = typer.Argument(...)) -> None:
    """Show mastery per topic."""
    services = get_services()
    masteries = services.mastery.list_topics(user_id, course_id)
    if not masteries:
        rprint("[dim]No mastery recorded yet[/dim]")
        return

    table = Table(title=f"Mastery: {user_id} / {course_id}", show_header=True)
    table.add_column("Topic", style="cyan")
    table.add_column("Mastery", justify="right")
    table.add_column("Level")
    table.add_column("Quizzes", justify="right")
    table.add_column("Avg", justify="right")
    table.add_column("Best", justify="right", style="green")

    for m in masteries:
        style = CLASSIFICATION_STYLES[m.classification]
        table.add_row(
            m.topic_name,
            str(m.mastery_score),
            f"[{style}]{m.classification.value}[/{style}]",
            str(m.quiz_attempts),
            str(m.average_quiz_score),
            str(m.highest_quiz_score),
        )
    console.print(table)

    overview = services.mastery.overview(user_id, course_id)
    rprint(f"  {overview['strong']} strong · {overview['medium']} medium · {overview['weak']} weak")


@mastery_app.command("record")
def mastery_record(
    user_id: str = typer.Argument(...),
    course_id: str = typer.Argument(...),
    topic: str = typer.Argument(...),
    score: int = typer.Argument(..., help="Percentage score 0-100"),
    difficulty: Difficulty = typer.Option(Difficulty.MEDIUM, "--difficulty"),
    minutes: float = typer.Option(0.0, "--minutes"),
) -> None:
    """Record a quiz score taken outside the engine."""
    try:
        mastery = get_services().mastery.record_quiz_result(
            user_id, course_id, topic, score, difficulty=difficulty, time_spent=minutes
        )
    except ArivomError as e:
        _fail(e)
    rprint(f"[green]✓[/green] {topic}: mastery {mastery.mastery_score} ({mastery.classification.value})")


# ========================================
# PLAN COMMANDS
# ========================================

plan_app = typer.Typer(help="Learning plans")
app.add_typer(plan_app, name="plan")


@plan_app.command("generate")
def plan_generate(
    user_id: str = typer.Argument(...),
    course_id: str = typer.Argument(...),
    weeks: int = typer.Option(8, "--weeks", "-w"),
    hours: float = typer.Option(5, "--hours", help="Study hours per week"),
    goals: str = typer.Option("", "--goals"),
) -> None:
    """Generate (or regenerate) a learning plan."""
    try:
        plan = get_services().plans.generate_plan(user_id, course_id, weeks, hours, goals)
    except ArivomError as e:
        _fail(e)
    rprint(f"[green]✓[/green] {plan.title}: {len(plan.weeks)} weeks ({plan.metadata.get('source')})")


@plan_app.command("show")
def plan_show(user_id: str = typer.Argument(...), course_id: str = typer.Argument(...)) -> None:
    """Show the learning plan week by week."""
    try:
        plan = get_services().plans.get_plan(user_id, course_id)
    except ArivomError as e:
        _fail(e)

    table = Table(title=plan.title, show_header=True, show_lines=True)
    table.add_column("Week", justify="right")
    table.add_column("Status")
    table.add_column("Topics", style="cyan")
    table.add_column("Tasks")
    for week in plan.weeks:
        status_style = "green" if week.status == WeekStatus.COMPLETED else "yellow"
        table.add_row(
            str(week.week_number),
            f"[{status_style}]{week.status.value}[/{status_style}]",
            "\n".join(week.topics),
            "\n".join(week.tasks),
        )
    console.print(table)


@app.command("replan")
def replan(user_id: str = typer.Argument(...), course_id: str = typer.Argument(...)) -> None:
    """Reflect on quiz results and inject review tasks for weak topics."""
    try:
        result = get_services().agent.self_reflect_and_replan(user_id, course_id)
    except ArivomError as e:
        _fail(e)
    marker = "[green]✓[/green]" if result.adjusted else "[dim]-[/dim]"
    rprint(f"{marker} {result.message}")


# ========================================
# COPILOT COMMANDS
# ========================================

copilot_app = typer.Typer(help="Study guidance: explanations, next topic, quiz picks, tips")
app.add_typer(copilot_app, name="copilot")

PRIORITY_STYLES = {"high": "red", "medium": "yellow", "low": "dim"}


@copilot_app.command("explain")
def copilot_explain(
    user_id: str = typer.Argument(...),
    course_id: str = typer.Argument(...),
    concept: str = typer.Argument(..., help="Concept to explain"),
    depth: str = typer.Option("beginner", "--depth", help="beginner | intermediate | advanced"),
) -> None:
    """Explain a concept in the context of the course."""
    try:
        explanation = get_services().copilot.explain_concept(user_id, course_id, concept, depth)
    except ArivomError as e:
        _fail(e)

    console.print(Panel(explanation.explanation, title=f"{concept} ({explanation.source})", border_style="cyan"))
    for step in explanation.next_steps:
        rprint(f"  • {step}")


@copilot_app.command("next")
def copilot_next(user_id: str = typer.Argument(...), course_id: str = typer.Argument(...)) -> None:
    """Suggest the next topic to study."""
    try:
        suggestion = get_services().copilot.suggest_next_topic(user_id, course_id)
    except ArivomError as e:
        _fail(e)

    if suggestion.next_topic:
        week = f" (week {suggestion.current_week})" if suggestion.current_week else ""
        rprint(f"[bold]Next topic:[/bold] [cyan]{suggestion.next_topic}[/cyan]{week}")
    rprint(f"  {suggestion.reason}")


@copilot_app.command("recommend-quiz")
def copilot_recommend_quiz(user_id: str = typer.Argument(...), course_id: str = typer.Argument(...)) -> None:
    """Recommend a quiz for the weakest topic."""
    recommendation = get_services().copilot.recommend_adaptive_quiz(user_id, course_id)

    rprint(f"  {recommendation.message}")
    if recommendation.topic:
        rprint(f"  Topic: [cyan]{recommendation.topic}[/cyan]   Difficulty: {recommendation.difficulty.value}")
    if recommendation.existing_quiz is not None:
        rprint(f"  [dim]Existing quiz: {recommendation.existing_quiz.quiz_id}[/dim]")


@copilot_app.command("tips")
def copilot_tips(user_id: str = typer.Argument(...), course_id: str = typer.Argument(...)) -> None:
    """Show personalized study tips."""
    tips = get_services().copilot.study_tips(user_id, course_id)

    table = Table(title="Study Tips", show_header=True)
    table.add_column("Priority")
    table.add_column("Tip", style="bold")
    table.add_column("Details")
    for tip in tips:
        style = PRIORITY_STYLES.get(tip.priority, "white")
        table.add_row(f"[{style}]{tip.priority}[/{style}]", tip.title, tip.description)
    console.print(table)


# ========================================
# DATABASE COMMANDS
# ========================================

db_app = typer.Typer(help="Database management")
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """
    Initialize the document table.

    Safe to run multiple times (idempotent).
    """
    from arivom.db.database import get_engine, init_db

    logger.info("Initializing database tables...")
    init_db(get_engine())
    rprint("[green]✓[/green] Database initialized!")


if __name__ == "__main__":
    app()
