"""
learner-graph CLI.

A Rich terminal interface for inspecting and feeding a learner's knowledge
graph stored as snapshot files.

Commands:
- learner-graph record          - Record one graded answer
- learner-graph stats           - Show profile counters
- learner-graph due             - Concepts due for review
- learner-graph subjects        - Per-subject summaries
- learner-graph clusters        - Topic clusters with suggested mode
- learner-graph misconceptions  - Active misconceptions
- learner-graph export          - Print the snapshot JSON
- learner-graph reset           - Delete a learner's stored profile
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from learner_graph.config import Settings, get_settings
from learner_graph.core.exceptions import InvalidInteractionError
from learner_graph.core.mastery import MasteryBand
from learner_graph.core.models import UpdateType
from learner_graph.learning.engine import EngineConfig
from learner_graph.persistence.profile_store import ProfileStore

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="learner-graph",
    help="Learner knowledge graph: mastery, reviews and misconceptions",
    no_args_is_help=True,
)
console = Console()

UserOption = typer.Option("default", "--user", "-u", help="Learner id")
ProfileDirOption = typer.Option(
    None,
    "--profile-dir",
    "-p",
    help="Directory with learner snapshots (defaults to settings)",
)

EVENT_STYLES = {
    UpdateType.CONCEPT_ENCOUNTERED: "cyan",
    UpdateType.MASTERY_UPDATE: "bold",
    UpdateType.MISCONCEPTION_DETECTED: "red",
    UpdateType.MISCONCEPTION_RESOLVED: "green",
    UpdateType.CONFIDENCE_UPDATE: "dim",
    UpdateType.REVIEW_SCHEDULED: "yellow",
}


def configure_logging(settings: Settings) -> None:
    """Route loguru output to stderr (and optionally a log file)."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<level>{message}</level>",
    )
    if settings.log_file:
        logger.add(settings.log_file, level=settings.log_level, rotation="10 MB")


def open_store(profile_dir: Optional[Path]) -> ProfileStore:
    settings = get_settings()
    return ProfileStore(
        profile_dir=profile_dir or settings.profile_dir,
        config=EngineConfig.from_settings(settings),
    )


def style_mastery(mastery: float) -> str:
    """Color a mastery percentage by band."""
    color = MasteryBand.from_score(mastery).color
    return f"[{color}]{mastery * 100:.0f}%[/{color}]"


@app.callback()
def main_callback() -> None:
    configure_logging(get_settings())


# =============================================================================
# Commands
# =============================================================================


@app.command()
def record(
    concept_id: str = typer.Argument(..., help="Concept identifier"),
    name: str = typer.Option("", "--name", "-n", help="Concept display name"),
    subject: str = typer.Option("", "--subject", "-s", help="Subject"),
    topic: str = typer.Option("", "--topic", "-t", help="Topic within the subject"),
    correct: bool = typer.Option(False, "--correct/--incorrect", help="Grading result"),
    answer: str = typer.Option("", "--answer", "-a", help="Learner's answer"),
    expected: str = typer.Option("", "--expected", "-e", help="Expected answer"),
    confidence: Optional[float] = typer.Option(
        None,
        "--confidence",
        "-c",
        min=0.0,
        max=1.0,
        help="Learner's self-reported confidence (0-1)",
    ),
    session: str = typer.Option("cli", "--session", help="Session id"),
    mode: str = typer.Option("cli", "--mode", "-m", help="Learning mode"),
    user: str = UserOption,
    profile_dir: Optional[Path] = ProfileDirOption,
) -> None:
    """Record one graded answer and save the profile."""
    store = open_store(profile_dir)
    engine = store.load(user)

    try:
        events = engine.record_interaction(
            concept_id=concept_id,
            concept_name=name or concept_id,
            subject=subject,
            topic=topic,
            is_correct=correct,
            student_answer=answer,
            expected_answer=expected,
            student_confidence=confidence,
            session_id=session,
            mode=mode,
        )
    except InvalidInteractionError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    store.save(engine)

    table = Table(title=f"Updates for {concept_id}")
    table.add_column("Event")
    table.add_column("Details")
    for event in events:
        style = EVENT_STYLES.get(event.type, "white")
        details = ", ".join(f"{k}={v}" for k, v in event.to_dict()["data"].items())
        table.add_row(f"[{style}]{event.type.value}[/{style}]", details)
    console.print(table)

    console.print(f"Mastery now {style_mastery(engine.get_node_mastery(concept_id))}")


@app.command()
def stats(
    user: str = UserOption,
    profile_dir: Optional[Path] = ProfileDirOption,
) -> None:
    """Show profile counters and overall mastery."""
    engine = open_store(profile_dir).load(user)
    profile = engine.get_profile()

    console.print(f"\n[bold cyan]Learner {profile.user_id}[/bold cyan]")
    console.print("=" * 40)

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="dim")
    table.add_column("Value", style="bold")

    table.add_row("Concepts tracked", str(len(profile.knowledge_nodes)))
    table.add_row("Mastered", str(profile.total_concepts_mastered))
    table.add_row("Learning", str(profile.total_concepts_learning))
    table.add_row("Struggling", str(profile.total_concepts_struggling))
    table.add_row("Overall mastery", style_mastery(profile.overall_mastery))
    table.add_row("Active misconceptions", str(len(profile.active_misconceptions)))
    table.add_row("Resolved misconceptions", str(len(profile.resolved_misconceptions)))
    table.add_row("Confidence divergence", f"{profile.confidence_divergence:.2f}")

    console.print(table)

    divergence = engine.confidence_divergence()
    if divergence["overconfident"] or divergence["underconfident"]:
        console.print(
            Panel(
                f"Overconfident: {', '.join(divergence['overconfident']) or '-'}\n"
                f"Underconfident: {', '.join(divergence['underconfident']) or '-'}",
                title="Confidence",
                border_style="yellow",
            )
        )


@app.command()
def due(
    user: str = UserOption,
    profile_dir: Optional[Path] = ProfileDirOption,
) -> None:
    """List concepts due for review, most urgent first."""
    engine = open_store(profile_dir).load(user)
    nodes = engine.review_due()

    if not nodes:
        console.print("[green]Nothing due for review.[/green]")
        return

    table = Table(title="Due for review")
    table.add_column("Concept")
    table.add_column("Subject")
    table.add_column("Mastery")
    table.add_column("Interval")
    table.add_column("Due")
    for node in nodes:
        table.add_row(
            node.concept_name,
            node.subject,
            style_mastery(node.mastery),
            f"{node.interval}d",
            node.next_review_date.strftime("%Y-%m-%d") if node.next_review_date else "-",
        )
    console.print(table)


@app.command()
def subjects(
    user: str = UserOption,
    profile_dir: Optional[Path] = ProfileDirOption,
) -> None:
    """Show per-subject summaries."""
    engine = open_store(profile_dir).load(user)
    summaries = engine.subject_summaries()

    if not summaries:
        console.print("[dim]No concepts recorded yet.[/dim]")
        return

    table = Table(title="Subjects")
    table.add_column("Subject")
    table.add_column("Concepts")
    table.add_column("M/L/S")
    table.add_column("Avg")
    table.add_column("Misc.")
    table.add_column("Focus")
    for s in summaries:
        table.add_row(
            s.subject or "-",
            str(s.total_concepts),
            f"{s.mastered_concepts}/{s.learning_concepts}/{s.struggling_concepts}",
            style_mastery(s.avg_mastery),
            str(s.active_misconceptions),
            ", ".join(s.recommended_focus) or "-",
        )
    console.print(table)


@app.command()
def clusters(
    user: str = UserOption,
    profile_dir: Optional[Path] = ProfileDirOption,
) -> None:
    """Show subject:topic clusters with a suggested mode."""
    engine = open_store(profile_dir).load(user)
    result = engine.concept_clusters()

    if not result:
        console.print("[dim]No concepts recorded yet.[/dim]")
        return

    table = Table(title="Concept clusters")
    table.add_column("Cluster")
    table.add_column("Concepts")
    table.add_column("Avg")
    table.add_column("Mode")
    for cluster in result:
        table.add_row(
            cluster.id,
            str(len(cluster.concepts)),
            style_mastery(cluster.avg_mastery),
            cluster.suggested_mode.value,
        )
    console.print(table)


@app.command()
def misconceptions(
    user: str = UserOption,
    profile_dir: Optional[Path] = ProfileDirOption,
) -> None:
    """List active misconceptions."""
    engine = open_store(profile_dir).load(user)
    active = engine.active_misconceptions()

    if not active:
        console.print("[green]No active misconceptions.[/green]")
        return

    table = Table(title="Active misconceptions")
    table.add_column("Concept")
    table.add_column("Name")
    table.add_column("Seen")
    for item in active:
        table.add_row(item["concept"], item["name"], str(item["occurrence_count"]))
    console.print(table)


@app.command()
def export(
    user: str = UserOption,
    profile_dir: Optional[Path] = ProfileDirOption,
) -> None:
    """Print the learner's snapshot JSON to stdout."""
    engine = open_store(profile_dir).load(user)
    typer.echo(engine.serialize())


@app.command()
def reset(
    user: str = UserOption,
    profile_dir: Optional[Path] = ProfileDirOption,
    confirm: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip confirmation",
    ),
) -> None:
    """Delete a learner's stored profile."""
    if not confirm and not Confirm.ask(f"Delete the stored profile for {user}?", default=False):
        raise typer.Exit(0)

    if open_store(profile_dir).delete(user):
        console.print(f"[green]Deleted profile for {user}.[/green]")
    else:
        console.print(f"[yellow]No stored profile for {user}.[/yellow]")


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
