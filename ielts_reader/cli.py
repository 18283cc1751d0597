"""
CLI Interface
=============
Command-line interface for the IELTS reader.

Usage:
    python -m ielts_reader extract <pdf_path>
    python -m ielts_reader parse <pdf_path> [--llm] [--json-output]
    python -m ielts_reader render <pdf_path> [--llm] [--out page.html]
    python -m ielts_reader take <pdf_path> [--llm] [--minutes 60]
    python -m ielts_reader dark-mode [--toggle]
"""

from __future__ import annotations

import json
import os
import sys
import threading

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import ReaderConfig
from .engine import ReaderEngine
from .errors import ReaderError
from .models import Question, QuestionType, ReadingTest, TestResult
from .preferences import DarkModePreference
from .renderer import TRUE_FALSE_VALUES, passage_to_text, render_page, write_page
from .session import TestSession
from .timer import CountdownTimer

console = Console()

LOG_LEVELS = click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"])


def _fail(message: str, prefix: str = "Error"):
    console.print(f"[red]{prefix}:[/] {message}")
    sys.exit(1)


def _build(pdf_path: str, llm: bool, log_level: str, output: str = "output",
           save: bool = False) -> ReadingTest:
    config = ReaderConfig(
        output_dir=output,
        save_output=save,
        use_llm=llm,
        log_level=log_level,
    )
    try:
        return ReaderEngine(config).build(pdf_path)
    except (FileNotFoundError, ReaderError) as e:
        _fail(str(e))


@click.group()
@click.version_option(version=__version__, prog_name="ielts-reader")
def cli():
    """IELTS Reader: turn reading-test PDFs into interactive tests."""
    pass


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True))
@click.option("--log-level", default="WARNING", type=LOG_LEVELS,
              help="Logging level")
def extract(pdf_path: str, log_level: str):
    """Print the plain text rebuilt from the PDF layout."""
    try:
        text = ReaderEngine(ReaderConfig(log_level=log_level)).extract_text(pdf_path)
    except (FileNotFoundError, ReaderError) as e:
        _fail(str(e))
    click.echo(text)


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True))
@click.option("--llm", is_flag=True, default=False,
              help="Use the language model instead of the heuristic parser")
@click.option("--output", "-o", default="output",
              help="Output directory for the JSON result")
@click.option("--save", is_flag=True, default=False,
              help="Save the result as JSON in the output directory")
@click.option("--log-level", default="INFO", type=LOG_LEVELS,
              help="Logging level")
@click.option("--json-output", is_flag=True, default=False,
              help="Output only the JSON result to stdout")
def parse(pdf_path: str, llm: bool, output: str, save: bool, log_level: str,
          json_output: bool):
    """Build passage and questions from a PDF."""

    if json_output:
        log_level = "ERROR"
    else:
        console.print()
        console.print(
            Panel.fit(
                f"[bold cyan]IELTS Reader v{__version__}[/]\n"
                f"[dim]Parsing: {os.path.basename(pdf_path)}[/]",
                border_style="cyan",
            )
        )

    test = _build(pdf_path, llm, log_level, output=output, save=save)

    if json_output:
        click.echo(json.dumps(
            test.model_dump(mode="json", by_alias=True),
            indent=2,
            ensure_ascii=False,
        ))
        return

    _display_test(test)


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True))
@click.option("--llm", is_flag=True, default=False,
              help="Use the language model instead of the heuristic parser")
@click.option("--out", "out_path", default=None,
              help="HTML file to write (defaults to <pdf name>.html)")
@click.option("--prefs-file", envvar="IELTS_READER_PREFS", default=None,
              help="Preferences file holding the dark-mode flag")
@click.option("--log-level", default="WARNING", type=LOG_LEVELS,
              help="Logging level")
def render(pdf_path: str, llm: bool, out_path: str, prefs_file: str,
           log_level: str):
    """Write an HTML test page for a PDF."""
    test = _build(pdf_path, llm, log_level)
    dark_mode = DarkModePreference(prefs_file).is_dark_mode

    page = render_page(
        test.passage_html,
        test.questions,
        dark_mode=dark_mode,
        title=test.metadata.name or "IELTS Reading Test",
    )
    out_path = out_path or os.path.splitext(pdf_path)[0] + ".html"
    written = write_page(out_path, page)
    console.print(
        f"[green]✓[/] Wrote {len(test.questions)} questions to {written}"
    )


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True))
@click.option("--llm", is_flag=True, default=False,
              help="Use the language model instead of the heuristic parser")
@click.option("--minutes", default=60, type=click.IntRange(min=1),
              help="Time limit in minutes")
@click.option("--log-level", default="WARNING", type=LOG_LEVELS,
              help="Logging level")
def take(pdf_path: str, llm: bool, minutes: int, log_level: str):
    """Sit the test in the terminal and get a score."""
    test = _build(pdf_path, llm, log_level)

    session = TestSession()
    session.load_questions(test.questions)
    if not session.questions:
        _fail("No questions detected in this PDF", prefix="Nothing to take")

    console.print()
    console.print(Panel(
        escape(passage_to_text(test.passage_html)) or "[dim](no passage text)[/]",
        title="Reading Passage",
        border_style="cyan",
    ))

    time_up = threading.Event()
    with CountdownTimer(minutes * 60) as timer:
        timer.start(on_time_up=time_up.set)
        for q in session.questions:
            if time_up.is_set():
                console.print("[red]Time is up![/]")
                break
            console.print(
                f"[dim]{timer.formatted_time} left | "
                f"{session.completed_count}/{len(session.questions)} answered[/]"
            )
            answer = _ask(q)
            if time_up.is_set():
                # Prompts block, so the timer can expire mid-answer
                console.print("[red]Time is up![/] Late answer discarded.")
                break
            session.set_answer(q.id, answer)

    result = session.calculate_score()
    _display_score(session, result)


@cli.command("dark-mode")
@click.option("--toggle", is_flag=True, default=False,
              help="Flip the stored preference")
@click.option("--prefs-file", envvar="IELTS_READER_PREFS", default=None,
              help="Preferences file holding the dark-mode flag")
def dark_mode(toggle: bool, prefs_file: str):
    """Show or toggle the dark-mode preference used for rendered pages."""
    pref = DarkModePreference(prefs_file)
    if toggle:
        pref.toggle()
    state = "[bold]on[/]" if pref.is_dark_mode else "[bold]off[/]"
    console.print(f"Dark mode: {state}")


# ─── Interactive Helpers ──────────────────────────────────────────────────────


def _ask(q: Question) -> str:
    """Prompt for one answer. An empty reply skips the question."""
    console.print()
    if q.instructions:
        console.print(f"[italic]{escape(q.instructions)}[/]")
    console.print(f"[bold cyan]{q.id}.[/] {escape(q.text)}")

    if q.type == QuestionType.TRUE_FALSE:
        choices = list(TRUE_FALSE_VALUES)
        console.print(f"   [dim]{' / '.join(choices)}[/]")
    elif q.type == QuestionType.MULTIPLE_CHOICE:
        choices = [opt.value for opt in q.options or []]
        for opt in q.options or []:
            console.print(f"   {opt.value}. {escape(opt.text)}")
    else:
        return click.prompt("Answer", default="", show_default=False).strip()

    while True:
        reply = click.prompt("Answer", default="", show_default=False)
        reply = " ".join(reply.split()).upper()
        if not reply or reply in choices:
            return reply
        console.print(f"[yellow]Choose one of: {', '.join(choices)}[/]")


# ─── Display Helpers ──────────────────────────────────────────────────────────


def _display_test(test: ReadingTest):
    """Display build results in formatted tables."""
    console.print()

    meta = test.metadata
    table = Table(title="Test Information", border_style="cyan")
    table.add_column("Property", style="bold")
    table.add_column("Value")
    table.add_row("Name", meta.name or "(auto)")
    table.add_row("Source PDF", meta.source_pdf)
    table.add_row("Total Pages", str(meta.total_pages))
    table.add_row("File Hash", meta.file_hash[:16] + "...")
    table.add_row("Path", test.source.value)
    console.print(table)
    console.print()

    report = test.report
    summary = Table(title="Question Report", border_style="green")
    summary.add_column("Metric", style="bold")
    summary.add_column("Value", justify="right")
    summary.add_column("Status", justify="center")
    summary.add_row(
        "Questions Detected",
        str(report.total_questions),
        "[green]✓[/]" if report.total_questions > 0 else "[red]✗[/]",
    )
    summary.add_row(
        "Duplicate Ids",
        str(len(report.duplicate_ids)),
        "[green]✓[/]" if not report.duplicate_ids else "[yellow]⚠[/]",
    )
    summary.add_row(
        "Gaps In Numbering",
        str(len(report.missing_ids)),
        "[green]✓[/]" if not report.missing_ids else "[yellow]⚠[/]",
    )
    for q_type, count in sorted(report.type_breakdown.items()):
        summary.add_row(f"  {q_type}", str(count), "")
    console.print(summary)
    console.print()

    if test.questions:
        questions = Table(title="Questions", border_style="cyan")
        questions.add_column("#", justify="right")
        questions.add_column("Type")
        questions.add_column("Text")
        for q in test.questions:
            questions.add_row(str(q.id), q.type.value, escape(q.text))
        console.print(questions)
        console.print()


def _display_score(session: TestSession, result: TestResult):
    console.print()
    table = Table(title="Results", border_style="cyan")
    table.add_column("#", justify="right")
    table.add_column("Your Answer")
    table.add_column("Correct Answer")
    table.add_column("Status", justify="center")

    for q in session.questions:
        if not q.correct_answer:
            status = "[dim]-[/]"
        elif result.is_correct(q.id):
            status = "[green]✓[/]"
        else:
            status = "[red]✗[/]"
        table.add_row(
            str(q.id),
            escape(result.answers.get(q.id) or "") or "[dim](blank)[/]",
            escape(q.correct_answer) or "[dim](not set)[/]",
            status,
        )

    console.print(table)
    console.print()
    console.print(
        f"[bold]Score:[/] {result.score}/{result.total_questions} "
        f"({result.percentage}%)"
    )
    console.print()


# ─── Entry point (for python -m ielts_reader.cli) ─────────────────────────────


if __name__ == "__main__":
    cli()
