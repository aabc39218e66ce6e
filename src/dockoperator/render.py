from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from dockoperator.ecosystems import EcosystemProfile
from dockoperator.models import Outcome, SynthesisResult

OUTCOME_STYLE = {
    Outcome.SUCCESS: "bold green",
    Outcome.UNSUPPORTED_PROJECT: "bold yellow",
    Outcome.INVALID_TARGET: "bold red",
}


def render_result(result: SynthesisResult, console: Console | None = None) -> None:
    console = console or Console()
    style = OUTCOME_STYLE[result.outcome]

    summary = (
        f"[bold]Target:[/bold] {escape(result.target)}\n"
        f"[bold]Ecosystems:[/bold] {escape(', '.join(result.ecosystems)) or '-'}\n"
        f"[bold]Message:[/bold] {escape(result.message)}"
    )
    console.print(
        Panel(
            summary,
            title=f"Outcome: [{style}]{result.outcome.value.upper()}[/]",
            border_style=style,
        )
    )

    if result.stages:
        stages = Table(title="Detected Ecosystems", show_lines=True)
        stages.add_column("Ecosystem", style="cyan")
        stages.add_column("Manifest")
        stages.add_column("Dependencies")
        stages.add_column("Build")
        for stage in result.stages:
            stages.add_row(
                escape(stage.name),
                escape(stage.manifest or "-"),
                escape("\n".join(stage.dependencies)) if stage.dependencies else "none",
                "placeholder" if stage.ambiguous else "ok",
            )
        console.print(stages)

    for warning in result.warnings:
        console.print(f"[dim]warning: {escape(warning)}[/dim]")


def render_registry(registry: Sequence[EcosystemProfile], console: Console | None = None) -> None:
    console = console or Console()
    table = Table(title="Ecosystem Registry")
    table.add_column("#", justify="right")
    table.add_column("Ecosystem", style="cyan")
    table.add_column("Manifests")
    table.add_column("Extensions")
    table.add_column("Base image", style="magenta")
    for index, profile in enumerate(registry, start=1):
        rule = profile.rule
        table.add_row(
            str(index),
            escape(profile.name),
            escape(", ".join([*rule.manifests, *rule.manifest_globs]) or "-"),
            escape(", ".join(rule.extensions)),
            escape(rule.base_image),
        )
    console.print(table)
