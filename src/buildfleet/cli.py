"""
buildfleet.cli - Command Line Interface
=========================================

    buildfleet [--config PATH] [--log-level LEVEL] COMMAND

    build      Build → Aggregate
    aggregate  Aggregate artifacts already on disk
    publish    Build → Aggregate → Publish
    coverage   Build → Coverage
    clean      Clean modules → delete the root output tree
    channel    Print the repository channel a version publishes to

Every stage command prints a summary table and exits with status 1 when any
module failed.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import structlog
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from buildfleet.core.config import BuildConfig, load_config
from buildfleet.core.enums import PublishStatus
from buildfleet.core.exceptions import BuildFleetError
from buildfleet.core.models import RunSummary
from buildfleet.facade import BuildFleet
from buildfleet.orchestration.publisher import select_channel


app = typer.Typer(name="buildfleet", help="Multi-module build artifact orchestrator.")

console = Console()


def configure_logging(level: str) -> None:
    """Route structlog output to stderr, filtered at ``level``."""
    numeric = getattr(logging, level.upper(), logging.INFO)
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to buildfleet.yaml."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override the configured log level."),
) -> None:
    """Multi-module build artifact orchestrator."""
    ctx.obj = {"config": config, "log_level": log_level}


def _load(ctx: typer.Context) -> BuildConfig:
    options = ctx.obj or {}
    path = options.get("config")
    try:
        config = load_config(str(path) if path else None)
    except (FileNotFoundError, BuildFleetError, ValidationError) as exc:
        console.print(f"[bold red]Invalid configuration:[/] {exc}")
        raise typer.Exit(code=1) from exc

    configure_logging(options.get("log_level") or config.log_level)
    return config


def _fleet(config: BuildConfig) -> BuildFleet:
    try:
        return BuildFleet(config)
    except BuildFleetError as exc:
        console.print(f"[bold red]{exc.error_code}:[/] {exc.message}")
        raise typer.Exit(code=1) from exc


# =============================================================================
# Summary Rendering
# =============================================================================

def render_summary(summary: RunSummary) -> None:
    console.print(f"[bold]Version:[/] {summary.version}")

    if summary.lifecycle is not None:
        console.print(
            f"[bold]{summary.lifecycle.phase.value.capitalize()}:[/] "
            f"{', '.join(summary.lifecycle.modules) or 'no modules'}"
        )

    if summary.aggregation is not None:
        table = Table(title=f"Artifacts in {summary.aggregation.output_dir}")
        table.add_column("Module")
        table.add_column("Kind")
        table.add_column("File")
        for artifact in summary.aggregation.artifacts:
            table.add_row(artifact.module, artifact.kind.value, artifact.target_name)
        console.print(table)

    if summary.publish is not None:
        table = Table(title="Publish")
        table.add_column("Module")
        table.add_column("Status")
        table.add_column("Channel")
        table.add_column("Endpoint")
        table.add_column("Published")
        for outcome in summary.publish.outcomes:
            color = {
                PublishStatus.PUBLISHED: "green",
                PublishStatus.FAILED: "red",
                PublishStatus.SKIPPED: "yellow",
            }[outcome.status]
            table.add_row(
                outcome.module,
                f"[{color}]{outcome.status.value}[/{color}]",
                outcome.channel.value if outcome.channel else "-",
                outcome.endpoint or "-",
                ", ".join(outcome.published) or (outcome.error or {}).get("message", "-"),
            )
        console.print(table)

    if summary.coverage is not None:
        console.print(f"[bold]Coverage XML:[/] {summary.coverage.xml_report}")
        console.print(f"[bold]Coverage HTML:[/] {summary.coverage.html_report}")
        console.print(
            f"[bold]Contributing modules:[/] "
            f"{', '.join(summary.coverage.contributing_modules) or 'none'}"
        )

    if summary.removed_output is not None:
        console.print(
            "[bold]Output tree:[/] " + ("removed" if summary.removed_output else "already absent")
        )

    for warning in summary.warnings:
        console.print(f"[yellow]warning[/] {warning['error_code']}: {warning['message']}")
    for error in summary.errors:
        console.print(f"[bold red]error[/] {error['error_code']}: {error['message']}")


def _finish(summary: RunSummary) -> None:
    render_summary(summary)
    if not summary.succeeded:
        raise typer.Exit(code=1)


# =============================================================================
# Commands
# =============================================================================

@app.command()
def build(ctx: typer.Context) -> None:
    """Build every module and aggregate the artifacts."""
    fleet = _fleet(_load(ctx))
    _finish(asyncio.run(fleet.run_build()))


@app.command()
def aggregate(ctx: typer.Context) -> None:
    """Aggregate module artifacts without building."""
    fleet = _fleet(_load(ctx))
    _finish(asyncio.run(fleet.run_aggregate()))


@app.command()
def publish(ctx: typer.Context) -> None:
    """Build, aggregate and publish every module."""
    fleet = _fleet(_load(ctx))
    _finish(asyncio.run(fleet.run_publish()))


@app.command()
def coverage(ctx: typer.Context) -> None:
    """Build every module and write the combined coverage report."""
    fleet = _fleet(_load(ctx))
    _finish(asyncio.run(fleet.run_coverage()))


@app.command()
def clean(ctx: typer.Context) -> None:
    """Clean every module and delete the root output tree."""
    fleet = _fleet(_load(ctx))
    _finish(asyncio.run(fleet.run_clean()))


@app.command()
def channel(
    ctx: typer.Context,
    version: Optional[str] = typer.Argument(None, help="Version string (default: configured version)."),
) -> None:
    """Print the repository channel a version publishes to."""
    config = _load(ctx)
    console.print(select_channel(version or config.version, config.prerelease_marker).value)


if __name__ == "__main__":
    app()
