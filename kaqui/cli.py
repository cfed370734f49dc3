"""
kaqui: Japanese flashcard quizzes in the terminal.

Commands:
- kaqui init           - Create the database tables
- kaqui import FILE    - Import kana, kanji and words from a JSON document
- kaqui quiz DOMAIN    - Run a multiple-choice quiz session
- kaqui stats DOMAIN   - Show learning statistics
- kaqui enable DOMAIN  - Enable items for quizzes
- kaqui disable DOMAIN - Disable items
- kaqui select-level DOMAIN LEVEL - Study one JLPT level
- kaqui search DOMAIN TEXT - Find items by text, reading or meaning
- kaqui select TEXT    - Enable exactly the kanji of a text
- kaqui select-words   - Enable the words made of enabled kanji
- kaqui selections     - Save, restore and delete kanji selections
"""
from __future__ import annotations

import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from config import Settings, get_settings

from .db import (
    Database,
    ImportResult,
    SelectionNotFoundError,
    auto_select_words,
    delete_kanji_selection,
    get_enabled_whole_kanji_ratio,
    import_file,
    list_kanji_selections,
    restore_kanji_selection,
    save_kanji_selection,
    set_kanji_selection,
)
from .engine import DebugData, EngineConfig, RoundState, TestEngine
from .model import (
    Certainty,
    Classifier,
    KnowledgeDomain,
    LearningItem,
    TestType,
    get_answer_text,
    get_classifiers,
    get_description,
    get_question_text,
)
from .srs import KaquiError

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="kaqui",
    help="kaqui: spaced repetition quizzes for kana, kanji and words",
    no_args_is_help=True,
)
selections_app = typer.Typer(help="Saved kanji selections")
app.add_typer(selections_app, name="selections")
console = Console()

STYLES = {
    "correct": "bold green",
    "incorrect": "bold red",
    "unknown": "bold yellow",
    "info": "bold cyan",
}


def _open_database(settings: Settings) -> Database:
    database = Database(settings.database_url)
    database.init_db()
    return database


def _parse_test_types(domain: KnowledgeDomain, names: list[str] | None) -> list[TestType]:
    if not names:
        return [t for t in TestType if t.domain == domain and not t.is_composition]

    test_types = []
    for name in names:
        try:
            test_type = TestType[name.upper().replace("-", "_")]
        except KeyError:
            console.print(f"[red]Unknown test type: {name}[/red]")
            console.print("Available: " + ", ".join(t.name.lower() for t in TestType if t.domain == domain))
            raise typer.Exit(1)
        if test_type.domain != domain:
            console.print(f"[red]{test_type.name.lower()} is not a {domain.value} test[/red]")
            raise typer.Exit(1)
        test_types.append(test_type)
    return test_types


def _error_panel(exc: Exception) -> None:
    console.print(Panel(str(exc), title=type(exc).__name__, border_style="red"))


# =============================================================================
# Commands
# =============================================================================


@app.command("init")
def init_cmd() -> None:
    """Create the database tables (safe to run multiple times)."""
    settings = get_settings()
    _open_database(settings)
    console.print(f"[green]✓[/green] Database initialized at {settings.database_url}")


@app.command("import")
def import_cmd(
    path: Path = typer.Argument(..., help="JSON item document"),
) -> None:
    """
    Import kana, kanji and words.

    Existing items keep their scores and enabled flag.
    """
    database = _open_database(get_settings())
    try:
        result: ImportResult = import_file(database, path)
    except (FileNotFoundError, ValueError, KeyError) as exc:
        _error_panel(exc)
        raise typer.Exit(1)

    table = Table(title="Import Summary", show_header=True)
    table.add_column("Domain", style="cyan")
    table.add_column("Created", justify="right", style="green")
    table.add_column("Updated", justify="right")
    for domain in KnowledgeDomain:
        table.add_row(
            domain.value,
            str(result.created.get(domain.value, 0)),
            str(result.updated.get(domain.value, 0)),
        )
    console.print(table)


@app.command("stats")
def stats_cmd(
    domain: KnowledgeDomain = typer.Argument(..., help="Knowledge domain"),
    by_level: bool = typer.Option(False, "--by-level", help="Break kanji/word stats down by JLPT level"),
) -> None:
    """Show how many items are bad, meh, good and disabled."""
    database = _open_database(get_settings())
    view = database.get_view(domain)

    table = Table(title=f"{domain.value.capitalize()} Statistics", show_header=True)
    table.add_column("Items", style="cyan")
    table.add_column("Bad", justify="right", style="red")
    table.add_column("Meh", justify="right", style="yellow")
    table.add_column("Good", justify="right", style="green")
    table.add_column("Disabled", justify="right", style="dim")

    rows: list[tuple[str, Classifier | None]] = [("All", None)]
    if by_level and domain in (KnowledgeDomain.KANJI, KnowledgeDomain.WORD):
        rows += [(c.name(), c) for c in get_classifiers()]

    for label, classifier in rows:
        stats = view.get_stats(classifier)
        table.add_row(label, str(stats.bad), str(stats.meh), str(stats.good), str(stats.disabled))

    console.print(table)
    if domain == KnowledgeDomain.KANJI:
        ratio = get_enabled_whole_kanji_ratio(database)
        console.print(f"[dim]Enabled kanji without parts: {ratio:.0%}[/dim]")


def _set_enabled(domain: KnowledgeDomain, item_ids: list[int] | None, all_items: bool, enabled: bool) -> None:
    database = _open_database(get_settings())
    view = database.get_view(domain)

    if all_items:
        count = view.set_all_enabled(enabled)
    elif item_ids:
        for item_id in item_ids:
            view.set_item_enabled(item_id, enabled)
        count = len(item_ids)
    else:
        console.print("[yellow]Give item ids or --all[/yellow]")
        raise typer.Exit(1)

    action = "Enabled" if enabled else "Disabled"
    console.print(f"{action} {count} {domain.value} items ({view.get_enabled_count()} enabled now)")


@app.command("enable")
def enable_cmd(
    domain: KnowledgeDomain = typer.Argument(..., help="Knowledge domain"),
    item_ids: list[int] | None = typer.Argument(None, help="Item ids"),
    all_items: bool = typer.Option(False, "--all", help="Enable every item of the domain"),
) -> None:
    """Enable items for quizzes."""
    _set_enabled(domain, item_ids, all_items, True)


@app.command("disable")
def disable_cmd(
    domain: KnowledgeDomain = typer.Argument(..., help="Knowledge domain"),
    item_ids: list[int] | None = typer.Argument(None, help="Item ids"),
    all_items: bool = typer.Option(False, "--all", help="Disable every item of the domain"),
) -> None:
    """Disable items, they are no longer asked."""
    _set_enabled(domain, item_ids, all_items, False)


@app.command("select-level")
def select_level_cmd(
    domain: KnowledgeDomain = typer.Argument(..., help="kanji or word"),
    level: int = typer.Argument(..., min=1, max=5, help="JLPT level (5 is the easiest)"),
    only: bool = typer.Option(False, "--only", help="Disable the items of every other level"),
) -> None:
    """Enable all items of one JLPT level."""
    if domain not in (KnowledgeDomain.KANJI, KnowledgeDomain.WORD):
        console.print("[red]Only kanji and words have JLPT levels[/red]")
        raise typer.Exit(1)

    database = _open_database(get_settings())
    if only:
        database.get_view(domain).set_all_enabled(False)
    count = database.get_view(domain, Classifier(level)).set_all_enabled(True)
    console.print(f"Enabled {count} {domain.value} items of {Classifier(level).name()}")


@app.command("search")
def search_cmd(
    domain: KnowledgeDomain = typer.Argument(..., help="Knowledge domain"),
    text: str = typer.Argument(..., help="Item, reading or meaning to look for"),
) -> None:
    """Find items by text, reading or meaning."""
    database = _open_database(get_settings())
    view = database.get_view(domain)
    item_ids = view.search(text)
    if not item_ids:
        console.print(f"[yellow]No {domain.value} item matches '{text}'[/yellow]")
        return

    table = Table(title=f"Search: {text}", show_header=True)
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Item", style="bold")
    table.add_column("Description")
    table.add_column("Enabled", justify="center")
    for item_id in item_ids:
        item = view.get_item(item_id)
        table.add_row(
            str(item.id),
            item.text,
            get_description(item).replace("\n", " | "),
            "[green]✓[/green]" if item.enabled else "[dim]-[/dim]",
        )
    console.print(table)


@app.command("select")
def select_cmd(
    text: str = typer.Argument(..., help="Text whose kanji should be studied"),
    words: bool = typer.Option(False, "--words", help="Also select the words made of these kanji"),
) -> None:
    """Enable exactly the kanji appearing in a text, disable all others."""
    database = _open_database(get_settings())
    count = set_kanji_selection(database, text)
    console.print(f"Enabled {count} kanji")
    if words:
        console.print(f"Enabled {auto_select_words(database)} words")


@app.command("select-words")
def select_words_cmd() -> None:
    """Enable the words whose kanji are all enabled, disable the others."""
    database = _open_database(get_settings())
    console.print(f"Enabled {auto_select_words(database)} words")


@selections_app.command("list")
def selections_list_cmd() -> None:
    """List saved kanji selections."""
    database = _open_database(get_settings())
    selections = list_kanji_selections(database)
    if not selections:
        console.print("[dim]No saved selections[/dim]")
        return

    table = Table(title="Kanji Selections", show_header=True)
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Kanji", justify="right")
    for selection in selections:
        table.add_row(str(selection.id), selection.name, str(selection.size))
    console.print(table)


@selections_app.command("save")
def selections_save_cmd(name: str = typer.Argument(..., help="Selection name")) -> None:
    """Save the enabled kanji under a name (replaces a selection of the same name)."""
    database = _open_database(get_settings())
    selection = save_kanji_selection(database, name)
    console.print(f"[green]✓[/green] Saved {selection.size} kanji as '{selection.name}'")


@selections_app.command("restore")
def selections_restore_cmd(name: str = typer.Argument(..., help="Selection name")) -> None:
    """Enable exactly the kanji of a saved selection."""
    database = _open_database(get_settings())
    try:
        count = restore_kanji_selection(database, name)
    except SelectionNotFoundError as exc:
        _error_panel(exc)
        raise typer.Exit(1)
    console.print(f"Enabled {count} kanji from '{name}'")


@selections_app.command("delete")
def selections_delete_cmd(name: str = typer.Argument(..., help="Selection name")) -> None:
    """Delete a saved selection; the enabled kanji are left as they are."""
    database = _open_database(get_settings())
    try:
        delete_kanji_selection(database, name)
    except SelectionNotFoundError as exc:
        _error_panel(exc)
        raise typer.Exit(1)
    console.print(f"Deleted selection '{name}'")


# =============================================================================
# Quiz
# =============================================================================


class QuizPrinter:
    """Prints the outcome of each answer; replayed history is not printed."""

    def __init__(self, show_debug: bool = False):
        self.show_debug = show_debug
        self.engine: TestEngine | None = None

    @property
    def test_type(self) -> TestType:
        return self.engine.test_type

    def good(self, correct: LearningItem, debug_data: DebugData | None, refresh: bool) -> None:
        if refresh:
            self._print_result(STYLES["correct"], "✓ Correct", correct, debug_data)

    def unknown(self, correct: LearningItem, debug_data: DebugData | None, refresh: bool) -> None:
        if refresh:
            self._print_result(STYLES["unknown"], "? Don't know", correct, debug_data)

    def wrong(
        self, correct: LearningItem, debug_data: DebugData | None, wrong: LearningItem, refresh: bool
    ) -> None:
        if refresh:
            self._print_result(STYLES["incorrect"], "✗ Wrong", correct, debug_data)
            console.print(f"  You picked: {wrong.text}, {get_description(wrong)}")

    def _print_result(self, style: str, title: str, item: LearningItem, debug_data: DebugData | None) -> None:
        content = f"{get_question_text(item, self.test_type)} → {get_answer_text(item, self.test_type)}"
        content += f"\n[dim]{get_description(item)}[/dim]"
        if self.show_debug and debug_data is not None:
            p = debug_data.probability_data
            content += (
                f"\n[dim]short {p.short_score:.2f} long {p.long_score:.2f} "
                f"p={p.final_probability:.3f}/{debug_data.total_weight:.3f}[/dim]"
            )
        console.print(Panel(content, title=title, title_align="left", border_style=style))


def _display_question(engine: TestEngine) -> None:
    question = engine.current_question
    test_type = engine.test_type

    content = f"[bold]{get_question_text(question, test_type)}[/bold]\n\n"
    for position, answer in enumerate(engine.current_answers, 1):
        content += f"  {position}. {get_answer_text(answer, test_type)}\n"

    header = f"Question {engine.question_count + 1}  |  {test_type.name.lower()}"
    console.print(Panel(content, title=header, title_align="left", border_style="cyan", padding=(1, 2)))


def _ask_certainty() -> Certainty:
    choice = Prompt.ask("Sure or maybe?", choices=["s", "m"], default="s")
    return Certainty.SURE if choice == "s" else Certainty.MAYBE


def _ask_answer(engine: TestEngine) -> bool:
    """Grade one question from keyboard input; False when the user quits."""
    count = len(engine.current_answers)

    if engine.test_type.is_composition:
        raw = Prompt.ask("Parts (numbers separated by spaces, ? = don't know, q = quit)", default="")
        raw = raw.strip().lower()
        if raw == "q":
            return False
        if raw == "?":
            engine.mark_composition_answer(Certainty.DONTKNOW, [])
            return True
        try:
            positions = {int(token) - 1 for token in raw.split()}
        except ValueError:
            console.print("[yellow]Numbers only[/yellow]")
            return _ask_answer(engine)
        if any(not 0 <= p < count for p in positions):
            console.print(f"[yellow]Answers go from 1 to {count}[/yellow]")
            return _ask_answer(engine)
        engine.mark_composition_answer(_ask_certainty(), positions)
        return True

    choices = [str(i) for i in range(1, count + 1)] + ["?", "q"]
    raw = Prompt.ask("Answer (? = don't know, q = quit)", choices=choices, show_choices=False)
    if raw == "q":
        return False
    if raw == "?":
        engine.select_answer(Certainty.DONTKNOW, 0)
        return True
    engine.select_answer(_ask_certainty(), int(raw) - 1)
    return True


@app.command("quiz")
def quiz_cmd(
    domain: KnowledgeDomain = typer.Argument(..., help="Knowledge domain"),
    test_types: list[str] | None = typer.Option(
        None, "--type", "-t", help="Quiz variant, repeatable (e.g. kanji_to_meaning, kanji_composition)"
    ),
    count: int = typer.Option(0, "--count", "-n", help="Number of questions (0 = until you quit)"),
    resume: bool = typer.Option(True, "--resume/--new", help="Resume the last interrupted session"),
    debug: bool = typer.Option(False, "--debug", help="Show the sampling weights of each question"),
) -> None:
    """Run a quiz session."""
    settings = get_settings()
    database = _open_database(settings)
    types = _parse_test_types(domain, test_types)

    printer = QuizPrinter(show_debug=debug)
    engine = TestEngine(
        database.get_view(domain),
        types,
        good_answer_callback=printer.good,
        wrong_answer_callback=printer.wrong,
        unknown_answer_callback=printer.unknown,
        config=EngineConfig.from_settings(settings),
    )
    printer.engine = engine

    state_file = settings.state_dir / f"{domain.value}.session"
    if resume and state_file.exists():
        try:
            engine.load_state(state_file.read_bytes())
            console.print(f"[dim]Resumed session {engine.session_id}[/dim]")
        except (KaquiError, LookupError, ValueError) as exc:
            logger.warning(f"Could not resume session from {state_file}: {exc}")

    asked = 0
    try:
        while count == 0 or asked < count:
            if engine.state != RoundState.QUESTION_SHOWN:
                engine.prepare_new_question()
            _display_question(engine)
            if not _ask_answer(engine):
                break
            asked += 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Session interrupted.[/yellow]")
    except KaquiError as exc:
        _error_panel(exc)
        raise typer.Exit(1)
    finally:
        if engine.current_question is not None:
            state_file.parent.mkdir(parents=True, exist_ok=True)
            state_file.write_bytes(engine.save_state())

    if engine.question_count:
        accuracy = 100 * engine.correct_count / engine.question_count
        console.print(
            f"\n[bold]{engine.correct_count}/{engine.question_count}[/bold] correct ({accuracy:.0f}%)"
        )


# =============================================================================
# Entry Point
# =============================================================================


def _configure_logging(settings: Settings) -> None:
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level, format="<level>{message}</level>")
    if settings.log_file:
        logger.add(
            settings.log_file,
            level="DEBUG",
            rotation="1 MB",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}",
        )


def main() -> None:
    """CLI entry point."""
    _configure_logging(get_settings())
    app()


if __name__ == "__main__":
    main()
