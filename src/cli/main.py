"""
Typer CLI for the pagecards review tool.

Commands:
    pagecards db init           - Initialize database tables
    pagecards fetch URL         - Import a public page tree as topics and cards
    pagecards reset             - Clear the deck and re-import the default page
    pagecards import FILE       - Import topics and cards from JSON
    pagecards export FILE       - Export topics and cards to JSON
    pagecards topics            - List topics
    pagecards cards TOPIC_ID    - List the cards of a topic
    pagecards edit CARD_ID      - Edit a card's question/answer
    pagecards review [TOPIC_ID] - Interactive spaced-repetition review
    pagecards info              - Show configuration

Usage:
    pagecards --help
    pagecards fetch https://example.notion.site/Tickets-8ec04abc8dba4cebbad42125cde3dba9
    pagecards fetch URL --append --parallel
    pagecards review --shuffle
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from config import Settings, get_settings
from src.core.models import ImportPayload

app = typer.Typer(
    help="pagecards CLI: public pages -> flashcards -> spaced repetition",
    no_args_is_help=True,
)

console = Console()


def configure_logging(settings: Settings) -> None:
    """Route loguru output to stderr (and optionally a rotating log file)."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if settings.log_file:
        Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(settings.log_file, level=settings.log_level, rotation="10 MB", retention=5)


@app.callback()
def main_callback() -> None:
    """
    Personal flashcard review tool.

    Import a public Notion page (and its child pages) as topics and cards,
    then review them with a simple spaced-repetition schedule.
    """
    configure_logging(get_settings())


# ========================================
# Context Builder (Dependency Injection)
# ========================================


class CLIContext:
    """
    Dependency injection container for CLI commands.

    Lazily initializes services so `--help` never touches the database.
    """

    def __init__(self) -> None:
        self.settings = get_settings()
        self._repository = None

    @property
    def repository(self):
        """Lazy load CardRepository (tables created on first use)."""
        if self._repository is None:
            from src.db.database import init_db
            from src.db.repository import CardRepository

            init_db()
            self._repository = CardRepository()
        return self._repository


def _build_context() -> CLIContext:
    """Build CLI context with dependency injection."""
    return CLIContext()


def _acquire(url: str, parallel: bool = False) -> ImportPayload | None:
    """Run the acquisition pipeline for one root URL."""
    from src.acquisition import AcquisitionService, PageFetcher

    def progress_callback(page_url: str, current: int, total: int) -> None:
        rprint(f"  [dim][{current}/{total}] {page_url}[/dim]")

    async def run() -> ImportPayload | None:
        async with PageFetcher() as fetcher:
            service = AcquisitionService(fetcher, progress_callback=progress_callback)
            return await service.acquire(url, parallel=parallel)

    return asyncio.run(run())


def _print_payload(payload: ImportPayload) -> None:
    table = Table(title="Imported Topics", show_header=True)
    table.add_column("Topic", style="cyan")
    table.add_column("Cards", justify="right", style="green")

    for topic in payload.topics:
        table.add_row(topic.name, str(len(payload.cards_for(topic.id))))

    table.add_section()
    table.add_row("TOTAL", str(len(payload.cards)), style="bold")
    console.print(table)


def _persistence_failed(exc: SQLAlchemyError) -> typer.Exit:
    logger.exception("Database operation failed")
    rprint(f"\n[red]✗[/red] Database error: {escape(str(exc))}")
    return typer.Exit(code=1)


# ========================================
# DATABASE COMMANDS
# ========================================

db_app = typer.Typer(help="Database management")
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """
    Initialize database tables.

    Safe to run multiple times (idempotent).
    """
    from src.db.database import init_db

    try:
        init_db()
    except SQLAlchemyError as e:
        raise _persistence_failed(e)
    rprint("[green]✓[/green] Database initialized!")


# ========================================
# ACQUISITION COMMANDS
# ========================================


@app.command("fetch")
def fetch_url(
    url: str = typer.Argument(..., help="Public page URL (root of the page tree)"),
    replace: bool = typer.Option(
        True, "--replace/--append", help="Clear existing topics and cards before importing"
    ),
    parallel: bool = typer.Option(False, "--parallel", help="Fetch child pages concurrently"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without writing to database"),
) -> None:
    """
    Import a public page tree as topics and cards.

    If the page links to child pages, each child becomes one topic and the
    root page itself is ignored. Otherwise the page becomes a single topic.
    """
    ctx = _build_context()
    url = url.strip()

    rprint(f"\n[bold cyan]Fetching[/bold cyan] {url}")
    payload = _acquire(url, parallel=parallel)
    if payload is None:
        rprint("\n[red]✗[/red] Could not fetch or parse the page; nothing imported")
        raise typer.Exit(code=1)

    _print_payload(payload)
    if dry_run:
        rprint("\n[yellow]Dry run:[/yellow] nothing written")
        return

    try:
        if replace:
            ctx.repository.clear_all()
        ctx.repository.bulk_import(payload)
    except SQLAlchemyError as e:
        raise _persistence_failed(e)

    rprint("\n[bold green]✓ Import complete![/bold green]")


@app.command("reset")
def reset_deck() -> None:
    """Clear all topics and cards, then re-import the default source page."""
    ctx = _build_context()

    try:
        ctx.repository.clear_all()
    except SQLAlchemyError as e:
        raise _persistence_failed(e)

    url = ctx.settings.default_source_url
    rprint(f"\n[bold cyan]Fetching default source[/bold cyan] {url}")
    payload = _acquire(url)
    if payload is None:
        rprint("[yellow]⚠[/yellow] Default source unavailable; deck left empty")
        return

    try:
        ctx.repository.bulk_import(payload)
    except SQLAlchemyError as e:
        raise _persistence_failed(e)
    _print_payload(payload)


# ========================================
# IMPORT / EXPORT COMMANDS
# ========================================


@app.command("import")
def import_json(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file to import"),
) -> None:
    """Import topics and cards from a JSON file ({"topics": [...], "cards": [...]})."""
    from src.export import ImportFileError, import_file

    ctx = _build_context()
    try:
        payload = import_file(ctx.repository, path)
    except ImportFileError as e:
        rprint(f"\n[red]✗[/red] Import failed: {escape(str(e))}")
        raise typer.Exit(code=1)
    except SQLAlchemyError as e:
        raise _persistence_failed(e)

    rprint(
        f"[green]✓[/green] Imported {len(payload.topics)} topics "
        f"and {len(payload.cards)} cards from {path}"
    )


@app.command("export")
def export_json(
    output: Path = typer.Argument(Path("cards_export.json"), help="Destination JSON file"),
) -> None:
    """Export all topics and cards to a JSON file."""
    from src.export import export_file

    ctx = _build_context()
    try:
        payload = export_file(ctx.repository, output)
    except SQLAlchemyError as e:
        raise _persistence_failed(e)

    rprint(
        f"[green]✓[/green] Exported {len(payload.topics)} topics "
        f"and {len(payload.cards)} cards to {output}"
    )


# ========================================
# BROWSE & EDIT COMMANDS
# ========================================


@app.command("topics")
def list_topics() -> None:
    """List topics (sorted by name) with their card counts."""
    ctx = _build_context()
    try:
        topics = ctx.repository.list_topics()
        counts = ctx.repository.count_cards_by_topic() if topics else {}
    except SQLAlchemyError as e:
        raise _persistence_failed(e)

    if not topics:
        rprint("[yellow]No topics yet.[/yellow] Run `pagecards fetch URL` or `pagecards import FILE`.")
        return

    table = Table(title=f"Topics ({len(topics)})")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Cards", justify="right", style="green")

    for topic in topics:
        table.add_row(topic.id, topic.name, topic.description or "", str(counts.get(topic.id, 0)))

    console.print(table)


@app.command("cards")
def list_cards(
    topic_id: str = typer.Argument(..., help="Topic ID (see `pagecards topics`)"),
    width: int = typer.Option(60, "--width", "-w", help="Truncate question/answer text"),
) -> None:
    """List the cards of one topic."""
    ctx = _build_context()
    try:
        topic = ctx.repository.get_topic(topic_id)
        cards = ctx.repository.list_cards_by_topic(topic_id) if topic else []
    except SQLAlchemyError as e:
        raise _persistence_failed(e)

    if topic is None:
        rprint(f"[red]✗[/red] Topic not found: {topic_id}")
        raise typer.Exit(code=1)

    table = Table(title=f"{topic.name} ({len(cards)} cards)")
    table.add_column("ID", style="dim")
    table.add_column("Question", style="cyan")
    table.add_column("Answer")

    for card in cards:
        table.add_row(card.id, _truncate(card.question, width), _truncate(card.answer, width))

    console.print(table)


@app.command("edit")
def edit_card(
    card_id: str = typer.Argument(..., help="Card ID (see `pagecards cards TOPIC_ID`)"),
    question: str | None = typer.Option(None, "--question", "-q", help="New question text"),
    answer: str | None = typer.Option(None, "--answer", "-a", help="New answer text"),
) -> None:
    """Edit a card's question and/or answer."""
    ctx = _build_context()
    card = ctx.repository.get_card(card_id)
    if card is None:
        rprint(f"[red]✗[/red] Card not found: {card_id}")
        raise typer.Exit(code=1)

    if question is None and answer is None:
        question = Prompt.ask("Question", default=card.question)
        answer = Prompt.ask("Answer", default=card.answer)

    updated = card.model_copy(
        update={
            "question": question if question is not None else card.question,
            "answer": answer if answer is not None else card.answer,
        }
    )
    try:
        ctx.repository.upsert_card(updated)
    except SQLAlchemyError as e:
        raise _persistence_failed(e)
    rprint(f"[green]✓[/green] Saved card {card_id}")


def _truncate(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 1] + "…"


# ========================================
# REVIEW COMMAND
# ========================================


@app.command("review")
def review(
    topic_id: str | None = typer.Argument(None, help="Topic ID (default: first topic by name)"),
    shuffle: bool = typer.Option(False, "--shuffle", help="Shuffle the deck before reviewing"),
    limit: int = typer.Option(0, "--limit", "-n", help="Stop after N reviews (0 = until quit)"),
) -> None:
    """
    Interactive review session.

    Shows the next card (overdue cards first), reveals the answer, and
    records whether you knew it. Correct answers double the interval,
    wrong answers reset it to one day.
    """
    from src.study import ReviewSession

    ctx = _build_context()
    session = ReviewSession(ctx.repository)

    try:
        if topic_id:
            if ctx.repository.get_topic(topic_id) is None:
                rprint(f"[red]✗[/red] Topic not found: {topic_id}")
                raise typer.Exit(code=1)
            session.load_topic(topic_id, shuffle=shuffle)
        else:
            session.load_first_topic(shuffle=shuffle)
    except SQLAlchemyError as e:
        raise _persistence_failed(e)

    if session.is_empty:
        rprint("[yellow]No cards to review.[/yellow]")
        return

    rprint(f"\n[bold cyan]Review[/bold cyan] {len(session.cards)} cards, {session.due_count()} due")
    reviewed = 0
    correct = 0

    while limit <= 0 or reviewed < limit:
        card = session.current_card
        record = session.records.get(card.id)
        level = record.level if record else 0
        console.print(
            Panel(
                card.question or "—",
                title=f"Card {session.index + 1}/{len(session.cards)}",
                subtitle=f"level {level}",
            )
        )

        action = Prompt.ask("[dim]Enter to reveal, q to quit[/dim]", default="", show_default=False)
        if action.strip().lower() == "q":
            break

        console.print(Panel(card.answer or "[dim](no answer yet)[/dim]", title="Answer"))
        verdict = Prompt.ask(
            "Correct? (y)es / (n)o / (e)dit / (q)uit", choices=["y", "n", "e", "q"], default="n"
        )
        if verdict == "q":
            break
        if verdict == "e":
            new_question = Prompt.ask("Question", default=card.question)
            new_answer = Prompt.ask("Answer", default=card.answer)
            try:
                session.save_card(new_question, new_answer)
            except SQLAlchemyError as e:
                raise _persistence_failed(e)
            continue

        try:
            session.answer(verdict == "y")
        except SQLAlchemyError as e:
            raise _persistence_failed(e)
        reviewed += 1
        if verdict == "y":
            correct += 1

    rprint(f"\n[bold green]✓ Reviewed {reviewed} cards[/bold green] ({correct} correct)")


# ========================================
# INFO COMMANDS
# ========================================


@app.command("info")
def show_info() -> None:
    """Show configuration."""
    settings = get_settings()

    table = Table(title="pagecards Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Database URL", settings.database_url)
    table.add_row("Default Source", settings.default_source_url)
    table.add_row("Text Proxy", settings.text_proxy_base)
    table.add_row("Raw Proxy", settings.raw_proxy_base)
    table.add_row("Fetch Timeout", f"{settings.fetch_timeout_seconds}s")
    table.add_row("Max SRS Level", str(settings.srs_max_level))
    table.add_row("Log Level", settings.log_level)

    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
