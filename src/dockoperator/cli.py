from __future__ import annotations

import logging
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler

from dockoperator import __version__
from dockoperator.ecosystems import EcosystemProfile, default_registry
from dockoperator.languages import add_language, ensure_language_list, language_list_path, load_languages
from dockoperator.models import Outcome, SynthesisResult
from dockoperator.render import render_registry, render_result
from dockoperator.rules import load_rule_file, ruleset_summary
from dockoperator.synthesis import synthesize

app = typer.Typer(help="dockoperator: generate a first-pass Dockerfile for an existing project")
ecosystems_app = typer.Typer(help="Ecosystem rule operations")
languages_app = typer.Typer(help="Known language list operations")
app.add_typer(ecosystems_app, name="ecosystems")
app.add_typer(languages_app, name="languages")
console = Console()

EXIT_CODES = {
    Outcome.SUCCESS: 0,
    Outcome.UNSUPPORTED_PROJECT: 1,
    Outcome.INVALID_TARGET: 2,
}


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_registry(rules: list[Path] | None) -> list[EcosystemProfile]:
    try:
        return default_registry(rules or ())
    except (ValueError, OSError) as exc:
        console.print(f"[bold red]Invalid ecosystem rules:[/] {exc}")
        raise typer.Exit(2)


def _print_raw(text: str, end: str = "\n") -> None:
    console.print(text, markup=False, highlight=False, emoji=False, soft_wrap=True, end=end)


def _report_failure(result: SynthesisResult, format: str) -> NoReturn:
    if format == "json":
        _print_raw(result.to_json())
    else:
        render_result(result, console=console)
        console.print(f"[bold red]{result.message}[/]")
    raise typer.Exit(EXIT_CODES[result.outcome])


@app.command("version")
def version() -> None:
    console.print(f"dockoperator {__version__}")


@app.command("generate")
def generate_cmd(
    target: Path = typer.Argument(..., help="Project directory to containerize"),
    out: Path | None = typer.Option(None, "--out", help="Write the recipe here instead of <target>/Dockerfile"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the recipe instead of writing it"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
    rules: list[Path] | None = typer.Option(None, "--rules", help="Extra ecosystem rule file (repeatable)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    if format not in {"text", "json"}:
        console.print("[bold red]Invalid --format:[/] expected text or json")
        raise typer.Exit(2)
    _configure_logging(verbose)

    registry = _load_registry(rules)
    result = synthesize(target, registry)
    if not result.ok or result.artifact is None:
        _report_failure(result, format)

    if dry_run:
        if format == "json":
            _print_raw(result.to_json())
        else:
            render_result(result, console=console)
            _print_raw(result.artifact, end="")
        return

    destination = out or target / "Dockerfile"
    try:
        destination.write_text(result.artifact, encoding="utf-8", newline="\n")
    except OSError as exc:
        console.print(f"[bold red]Failed to write recipe:[/] {exc}")
        raise typer.Exit(2)

    if format == "json":
        _print_raw(result.to_json())
    else:
        render_result(result, console=console)
        console.print(f"[green]Wrote Dockerfile:[/] {destination}")


@app.command("detect")
def detect_cmd(
    target: Path = typer.Argument(..., help="Project directory to inspect"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
    rules: list[Path] | None = typer.Option(None, "--rules", help="Extra ecosystem rule file (repeatable)"),
) -> None:
    if format not in {"text", "json"}:
        console.print("[bold red]Invalid --format:[/] expected text or json")
        raise typer.Exit(2)

    result = synthesize(target, _load_registry(rules))
    if not result.ok:
        _report_failure(result, format)
    if format == "json":
        _print_raw(result.model_dump_json(indent=2, exclude={"artifact"}))
    else:
        render_result(result, console=console)


@ecosystems_app.command("list")
def ecosystems_list(
    rules: list[Path] | None = typer.Option(None, "--rules", help="Extra ecosystem rule file (repeatable)"),
) -> None:
    render_registry(_load_registry(rules), console=console)


@ecosystems_app.command("validate")
def ecosystems_validate(path: Path = typer.Argument(..., exists=True, readable=True)) -> None:
    try:
        ruleset = load_rule_file(path)
        default_registry([path])
    except ValueError as exc:
        console.print(f"[bold red]Invalid ecosystem rules:[/] {exc}")
        raise typer.Exit(2)
    console.print(f"[green]Valid ecosystem rules:[/] {ruleset_summary(ruleset)}")


def _announce_language_list() -> None:
    if ensure_language_list():
        console.print(f"[dim]Created language list with the default languages: {language_list_path()}[/dim]")


@languages_app.command("list")
def languages_list() -> None:
    _announce_language_list()
    for name in load_languages():
        console.print(name, markup=False)


@languages_app.command("add")
def languages_add(name: str = typer.Argument(..., help="Display name of the language")) -> None:
    _announce_language_list()
    try:
        added = add_language(name)
    except ValueError as exc:
        console.print(f"[bold red]Invalid language:[/] {exc}")
        raise typer.Exit(2)
    console.print(f"Added language: {added}", markup=False)


if __name__ == "__main__":
    app()
