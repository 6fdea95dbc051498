"""
Typer CLI for the study-notes engine.

Commands:
    studynotes db init                  - Initialize database tables
    studynotes review CONCEPT QUALITY   - Record a flashcard response
    studynotes due                      - Show concepts due today
    studynotes stats                    - Show review statistics
    studynotes gaps score FILE          - Score and rank gap candidates from JSON
    studynotes gaps list NOTE_ID        - Show stored gaps for a note
    studynotes serve                    - Run the HTTP API
    studynotes version                  - Show version information

Usage:
    studynotes --help
    studynotes review tcp-handshake 4 --user alice
    studynotes gaps score gaps.json --top 5
"""

from __future__ import annotations

from pathlib import Path

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from config import get_settings
from studynotes import __version__
from studynotes.core.gaps import GapType, KnowledgeGap, normalize_mastery, rank_gaps
from studynotes.core.logging import configure_logging
from studynotes.core.mastery import MasteryLevel, quality_from_rating

app = typer.Typer(
    help="study-notes: spaced repetition and knowledge gap engine",
    no_args_is_help=True,
)
db_app = typer.Typer(help="Database management")
gaps_app = typer.Typer(help="Knowledge gap scoring")
app.add_typer(db_app, name="db")
app.add_typer(gaps_app, name="gaps")

console = Console()


def _mastery_cell(score: float) -> str:
    level = MasteryLevel.from_score(score)
    return f"[{level.color}]{score:.0%} {level.display_name}[/{level.color}]"


# ========================================
# Database Commands
# ========================================


@db_app.command("init")
def db_init() -> None:
    """
    Create database tables from the SQLAlchemy models.

    Safe to run multiple times (idempotent).
    """
    from studynotes.db.database import init_db

    logger.info("Initializing database tables...")
    init_db()
    rprint("[green]✓[/green] Database initialized!")


# ========================================
# Review Commands
# ========================================


@app.command("review")
def review(
    concept_id: str = typer.Argument(..., help="Concept id"),
    quality: str = typer.Argument(..., help="Quality 0-5, or hard/medium/easy"),
    user: str | None = typer.Option(None, "--user", "-u", help="Learner id (default: from config)"),
    name: str | None = typer.Option(None, "--name", help="Concept display name"),
) -> None:
    """Record a flashcard response and show the new schedule."""
    from studynotes.db.database import session_scope
    from studynotes.study.flashcard_service import FlashcardService

    settings = get_settings()
    user_id = user or settings.default_user_id
    q = quality_from_rating(quality) if quality.strip().lower() in ("hard", "medium", "easy") else quality

    with session_scope() as session:
        service = FlashcardService(session, policy=settings.get_scheduling_policy())
        state = service.record_response(user_id, concept_id, q, concept_name=name)

    rprint(f"\n[bold cyan]{state.concept_name or concept_id}[/bold cyan]")
    rprint(f"  Mastery:     {_mastery_cell(state.mastery_level)}")
    rprint(f"  Repetitions: {state.repetition_count}")
    rprint(f"  Ease factor: {state.ease_factor:.2f}")
    rprint(f"  Interval:    {state.interval_days} day(s)")
    rprint(f"  Next review: {state.due_date.isoformat()}")


@app.command("due")
def due(
    user: str | None = typer.Option(None, "--user", "-u", help="Learner id (default: from config)"),
    limit: int | None = typer.Option(None, "--limit", "-n", help="Maximum concepts to show"),
    skip_new: bool = typer.Option(False, "--skip-new", help="Exclude never-reviewed concepts"),
) -> None:
    """Show concepts due for review, weakest first."""
    from studynotes.db.database import session_scope
    from studynotes.study.flashcard_service import FlashcardService

    settings = get_settings()
    user_id = user or settings.default_user_id

    with session_scope() as session:
        service = FlashcardService(session, policy=settings.get_scheduling_policy())
        states = service.get_due(
            user_id,
            limit=limit or settings.due_queue_limit,
            include_new=not skip_new,
        )

    if not states:
        rprint("[green]✓[/green] Nothing due. Come back later!")
        return

    table = Table(title=f"Due for {user_id} ({len(states)})")
    table.add_column("Concept", style="cyan")
    table.add_column("Mastery")
    table.add_column("Reps", justify="right")
    table.add_column("Lapses", justify="right")
    table.add_column("Due", style="dim")
    for state in states:
        table.add_row(
            state.concept_name or state.concept_id or "?",
            _mastery_cell(state.mastery_level),
            str(state.repetition_count),
            str(state.lapse_count),
            state.due_date.isoformat() if state.due_date else "new",
        )
    console.print(table)


@app.command("stats")
def stats(
    user: str | None = typer.Option(None, "--user", "-u", help="Learner id (default: from config)"),
) -> None:
    """Show review statistics."""
    from studynotes.db.database import session_scope
    from studynotes.study.flashcard_service import FlashcardService

    settings = get_settings()
    user_id = user or settings.default_user_id

    with session_scope() as session:
        result = FlashcardService(session).get_stats(user_id)

    table = Table(title=f"Review Statistics: {user_id}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Concepts", str(result.total_concepts))
    table.add_row("Due", str(result.due_count))
    table.add_row("Learned", str(result.learned_count))
    table.add_row("Average mastery", _mastery_cell(result.average_mastery))
    console.print(table)


# ========================================
# Gap Commands
# ========================================


@gaps_app.command("score")
def gaps_score(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file of gap candidates"),
    top: int | None = typer.Option(None, "--top", "-t", help="Keep only the N highest (default: from config)"),
) -> None:
    """
    Score and rank gap candidates without storing them.

    The file may hold a JSON array, an object with a "gaps" key, or a
    Markdown-fenced JSON block as returned by an LLM.
    """
    from studynotes.gaps.gap_service import parse_gap_candidates

    try:
        candidates = parse_gap_candidates(file.read_text(encoding="utf-8"))
    except ValueError as e:
        rprint(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    gaps = [
        KnowledgeGap(
            concept=c["concept"].strip(),
            gap_type=GapType.parse(c.get("gap_type", c.get("gapType"))),
            user_mastery=normalize_mastery(c.get("user_mastery", c.get("userMastery"))),
        )
        for c in candidates
    ]
    ranked = rank_gaps(gaps, limit=top or get_settings().gap_top_n)

    table = Table(title=f"Knowledge Gaps ({len(ranked)} of {len(gaps)})")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Concept", style="cyan")
    table.add_column("Type")
    table.add_column("Mastery")
    table.add_column("Priority", justify="right", style="bold")
    for i, gap in enumerate(ranked, 1):
        table.add_row(
            str(i),
            gap.concept,
            gap.gap_type.value,
            _mastery_cell(gap.user_mastery),
            f"{gap.priority_score:.2f}",
        )
    console.print(table)


@gaps_app.command("list")
def gaps_list(
    note_id: str = typer.Argument(..., help="Note id"),
    user: str | None = typer.Option(None, "--user", "-u", help="Only this learner's gaps"),
) -> None:
    """Show stored gaps for a note, highest priority first."""
    from studynotes.db.database import session_scope
    from studynotes.gaps.gap_service import GapAnalysisService

    with session_scope() as session:
        gaps = GapAnalysisService(session).list_gaps(note_id, user)

    if not gaps:
        rprint(f"[yellow]⚠[/yellow] No gaps stored for note {note_id}")
        return

    table = Table(title=f"Gaps for note {note_id}")
    table.add_column("Concept", style="cyan")
    table.add_column("Type")
    table.add_column("Priority", justify="right", style="bold")
    table.add_column("Status", style="dim")
    table.add_column("Strategy")
    for gap in gaps:
        table.add_row(
            gap.concept,
            gap.gap_type.value,
            f"{gap.priority_score:.2f}",
            gap.status.value,
            gap.reinforcement_strategy,
        )
    console.print(table)


# ========================================
# Server & Info
# ========================================


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address (default: from config)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port (default: from config)"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "studynotes.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command("version")
def show_version() -> None:
    """Show version information."""
    rprint(f"[bold]study-notes[/bold] v{__version__}")
    rprint("  SM-2 mastery scheduling and knowledge gap ranking")


def main() -> None:
    """Entry point for the CLI."""
    configure_logging(get_settings())
    app()


if __name__ == "__main__":
    main()
