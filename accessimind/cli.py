"""
AccessiMind CLI Tool

Run the browser's AI page tasks from a terminal against saved page files.

Usage:
    accessimind summarize page.txt --type key-points
    accessimind ask page.txt "What does this cost?"
    accessimind action page.txt "List every price on this page"
    accessimind analyze page.txt --type sentiment
    accessimind wcag page.html --url https://example.com
    accessimind agent-step "find the contact page" page.txt
    accessimind decode '{"action": "SCROLL_DOWN"}'
    accessimind models
"""
import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from accessimind.agents.action_decoder import AgentActionDecoder, DecodeFailure
from accessimind.config import AVAILABLE_MODELS, EnvSettingsSource, get_settings
from accessimind.prompts.analyze import AnalysisType
from accessimind.prompts.summarize import SummaryType
from accessimind.prompts.wcag import WCAGMode
from accessimind.services.page_assistant import PageAssistant, TaskResult

console = Console()


def configure_logging(level: str) -> None:
    """Configure root logging for CLI runs."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_assistant() -> PageAssistant:
    """Create a PageAssistant from environment settings."""
    settings = get_settings()
    return PageAssistant(
        EnvSettingsSource(),
        generator_options={"attempt_timeout": settings.attempt_timeout},
    )


def run_task(task: Callable[[PageAssistant], Awaitable[TaskResult]]) -> TaskResult:
    """Run one task on a fresh assistant and close its provider afterwards."""

    async def _run() -> TaskResult:
        assistant = build_assistant()
        try:
            return await task(assistant)
        finally:
            await assistant.aclose()

    return asyncio.run(_run())


def read_page(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def show_result(result: TaskResult, title: str) -> None:
    """Print a task result, exiting with status 1 on failure."""
    if result.failed:
        console.print(f"[red]✗ {escape(result.error or '')}[/red]")
        raw = result.metadata.get("raw")
        if raw:
            console.print(Panel(Text(raw), title="Raw response", border_style="yellow"))
        sys.exit(1)

    content = result.content
    if hasattr(content, "model_dump"):
        content = json.dumps(content.model_dump(mode="json"), indent=2, ensure_ascii=False)
    console.print(Panel(Text(str(content)), title=title, border_style="green"))
    console.print(f"[dim]{result.model_used} · {result.latency_ms}ms[/dim]")


@click.group()
@click.option("--log-level", default=None, help="Logging level (defaults to LOG_LEVEL)")
def cli(log_level):
    """AccessiMind AI page tasks."""
    configure_logging(log_level or get_settings().LOG_LEVEL)


@cli.command()
@click.argument("page", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--url", default="", help="Page URL")
@click.option(
    "--type",
    "summary_type",
    type=click.Choice([t.value for t in SummaryType]),
    default=SummaryType.BRIEF.value,
    show_default=True,
)
def summarize(page, url, summary_type):
    """Summarize a saved page."""
    result = run_task(lambda a: a.summarize(read_page(page), url, summary_type))
    show_result(result, "Summary")


@cli.command()
@click.argument("page", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("question")
@click.option("--url", default="", help="Page URL")
def ask(page, question, url):
    """Ask a question about a saved page."""
    result = run_task(lambda a: a.ask(question, read_page(page), url))
    show_result(result, "Answer")


@cli.command()
@click.argument("page", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("action")
@click.option("--url", default="", help="Page URL")
def action(page, action, url):
    """Perform a described operation on a saved page."""
    result = run_task(lambda a: a.execute_action(read_page(page), action, url))
    show_result(result, "Result")


@cli.command()
@click.argument("page", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--url", default="", help="Page URL")
@click.option(
    "--type",
    "analysis_type",
    type=click.Choice([t.value for t in AnalysisType]),
    default=AnalysisType.GENERAL.value,
    show_default=True,
)
def analyze(page, url, analysis_type):
    """Analyze a saved page."""
    result = run_task(lambda a: a.analyze(read_page(page), url, analysis_type))
    show_result(result, "Analysis")


@cli.command()
@click.argument("page", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--url", required=True, help="Page URL")
@click.option(
    "--mode",
    type=click.Choice([m.value for m in WCAGMode]),
    default=WCAGMode.ELEMENTS.value,
    show_default=True,
)
def wcag(page, url, mode):
    """Run a WCAG audit on a saved HTML page."""
    result = run_task(lambda a: a.analyze_wcag(url, html=read_page(page), mode=mode))
    show_result(result, "WCAG")


@cli.command("agent-step")
@click.argument("goal")
@click.argument("page", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--url", default="", help="Page URL")
@click.option(
    "--links",
    "links_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='JSON file with [{"text": ..., "href": ...}]',
)
def agent_step(goal, page, url, links_file):
    """Plan the next browsing action for a goal."""
    links = json.loads(links_file.read_text(encoding="utf-8")) if links_file else []
    result = run_task(lambda a: a.agent_step(goal, url, read_page(page), links))
    show_result(result, "Next action")


@cli.command()
@click.argument("text")
def decode(text):
    """Decode a raw model response into an agent action."""
    result = AgentActionDecoder().decode(text)
    if isinstance(result, DecodeFailure):
        console.print(f"[red]✗ {escape(result.reason)}[/red]")
        sys.exit(1)
    source = "regex recovery" if result.recovered else "JSON"
    console.print(f"[green]✓ {result.action.value}[/green] [dim]({source})[/dim]")
    console.print(f"params: {json.dumps(result.params, ensure_ascii=False)}", markup=False)
    if result.explanation:
        console.print(f"explanation: {result.explanation}", markup=False)


@cli.command()
def models():
    """List selectable models."""
    current = get_settings().AI_MODEL
    table = Table(title="Models")
    table.add_column("Model", style="cyan")
    table.add_column("Name")
    table.add_column("Description", style="dim")
    for model in AVAILABLE_MODELS:
        marker = " ✓" if model["value"] == current else ""
        table.add_row(model["value"] + marker, model["name"], model["description"])
    console.print(table)


if __name__ == "__main__":
    cli()
