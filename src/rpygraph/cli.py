"""rpygraph CLI - typer application entry point."""

from __future__ import annotations

import atexit
import dataclasses
import json
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.table import Table

from rpygraph.analysis.engine import analyze, analyze_routes, layout_blocks
from rpygraph.config import ProjectConfig, ProjectConfigError, load_project_config
from rpygraph.inspection import inspect_project
from rpygraph.loader import load_blocks
from rpygraph.observability import (
    bind_project,
    close_file_logging,
    configure_logging,
    get_logger,
)
from rpygraph.visualization import (
    build_block_graph,
    build_route_graph_view,
    render_dot,
    render_mermaid,
)

if TYPE_CHECKING:
    from rpygraph.models import AnalysisResult, Block

app = typer.Typer(
    name="rpygraph",
    help="rpygraph: static analysis and flow graphs for Ren'Py scripts.",
    no_args_is_help=True,
)
console = Console()
log = get_logger(__name__)


class GraphFormat(str, Enum):
    """Markup emitted by the graph command."""

    DOT = "dot"
    MERMAID = "mermaid"


PathArgument = Annotated[
    Path,
    typer.Argument(help="A .rpy file or a project directory."),
]


@app.callback()
def main(
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity: -v for INFO, -vv for DEBUG.",
        ),
    ] = 0,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log",
            help="Also write every log event as JSON lines to this file.",
        ),
    ] = None,
) -> None:
    """rpygraph: static analysis and flow graphs for Ren'Py scripts."""
    configure_logging(verbosity=verbose, log_file=log_file)
    if log_file is not None:
        atexit.register(close_file_logging)


def _load(path: Path, max_routes: int | None = None) -> tuple[list[Block], ProjectConfig]:
    """Load blocks and configuration, exiting with a message on failure.

    Configuration comes from ``PATH/rpygraph.yaml`` when PATH is a
    directory; a single file analyzes with defaults.
    """
    try:
        _, blocks = load_blocks(path)
        config = load_project_config(path) if path.is_dir() else ProjectConfig()
        if max_routes is not None:
            config.analysis = dataclasses.replace(config.analysis, max_routes=max_routes)
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None
    except (ProjectConfigError, ValueError) as e:
        console.print(f"[red]Error:[/red] Invalid configuration: {e}")
        raise typer.Exit(1) from None

    bind_project(config.name)
    if not blocks:
        console.print(f"[yellow]Warning:[/yellow] No .rpy files found under {path}")
    return blocks, config


def _summary_table(result: AnalysisResult, block_count: int) -> Table:
    table = Table(title="Analysis Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right", style="bold")

    rows = [
        ("Blocks", block_count),
        ("Labels", len(result.labels)),
        ("Jumps", sum(len(j) for j in result.jumps.values())),
        ("Links", len(result.links)),
        ("Unresolved", sum(len(t) for t in result.invalid_jumps.values())),
        ("Story blocks", len(result.story_block_ids)),
        ("Screen blocks", len(result.screen_only_block_ids)),
        ("Config blocks", len(result.config_block_ids)),
        ("Root blocks", len(result.root_block_ids)),
        ("Leaf blocks", len(result.leaf_block_ids)),
        ("Branching blocks", len(result.branching_block_ids)),
        ("Characters", len(result.characters)),
        ("Variables", len(result.variables)),
        ("Screens", len(result.screens)),
        ("Images", len(result.defined_images)),
    ]
    for metric, count in rows:
        table.add_row(metric, str(count))
    return table


@app.command()
def version() -> None:
    """Show version information."""
    from rpygraph import __version__

    console.print(f"rpygraph v{__version__}")


@app.command(name="analyze")
def analyze_command(
    path: PathArgument,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the full analysis result as JSON."),
    ] = False,
) -> None:
    """Analyze labels, jumps, characters and variables."""
    blocks, config = _load(path)
    result = analyze(blocks, config)

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
        return

    console.print()
    console.print(_summary_table(result, len(blocks)))
    for block_id, targets in result.invalid_jumps.items():
        for target in targets:
            console.print(f"[yellow]![/yellow] {block_id}: unresolved target [bold]{target}[/bold]")
    console.print()


@app.command()
def routes(
    path: PathArgument,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the full route analysis as JSON."),
    ] = False,
    max_routes: Annotated[
        int | None,
        typer.Option(
            "--max-routes",
            min=1,
            help="Cap on enumerated routes (overrides rpygraph.yaml).",
            envvar="RPYGRAPH_MAX_ROUTES",
        ),
    ] = None,
) -> None:
    """Enumerate routes through the label graph."""
    blocks, config = _load(path, max_routes)
    result = analyze(blocks, config)
    route_analysis = analyze_routes(blocks, result.labels, result.jumps, config)

    if as_json:
        typer.echo(route_analysis.model_dump_json(indent=2))
        return

    table = Table(title=f"Routes ({len(route_analysis.identified_routes)})")
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Color")
    table.add_column("Links", justify="right", style="bold")
    for route in route_analysis.identified_routes:
        table.add_row(
            str(route.id),
            f"[{route.color}]■[/{route.color}] {route.color}",
            str(len(route.link_ids)),
        )

    console.print()
    console.print(
        f"[bold]{len(route_analysis.label_nodes)}[/bold] labels, "
        f"[bold]{len(route_analysis.route_links)}[/bold] route links"
    )
    console.print(table)
    console.print()


@app.command()
def graph(
    path: PathArgument,
    by_route: Annotated[
        bool,
        typer.Option("--routes", help="Render the label route graph instead of blocks."),
    ] = False,
    fmt: Annotated[
        GraphFormat,
        typer.Option("--format", "-f", help="Output format."),
    ] = GraphFormat.DOT,
) -> None:
    """Print the block or route graph as DOT or Mermaid markup."""
    blocks, config = _load(path)
    result = analyze(blocks, config)

    if by_route:
        route_analysis = analyze_routes(blocks, result.labels, result.jumps, config)
        sg = build_route_graph_view(route_analysis)
    else:
        sg = build_block_graph(blocks, result)

    typer.echo(render_mermaid(sg) if fmt is GraphFormat.MERMAID else render_dot(sg))


@app.command()
def layout(
    path: PathArgument,
    by_route: Annotated[
        bool,
        typer.Option("--routes", help="Lay out label nodes instead of blocks."),
    ] = False,
) -> None:
    """Print computed node positions as JSON."""
    blocks, config = _load(path)
    result = analyze(blocks, config)

    if by_route:
        route_analysis = analyze_routes(blocks, result.labels, result.jumps, config)
        positions = {node.id: node.position.model_dump() for node in route_analysis.label_nodes}
    else:
        placed = layout_blocks(blocks, result.links, config.layout)
        positions = {node_id: pos.model_dump() for node_id, pos in placed.items()}

    typer.echo(json.dumps(positions, indent=2))


@app.command()
def inspect(path: PathArgument) -> None:
    """Inspect a project: statistics and diagnostics."""
    blocks, config = _load(path)
    result = analyze(blocks, config)
    route_analysis = analyze_routes(blocks, result.labels, result.jumps, config)
    report = inspect_project(blocks, result, route_analysis)

    console.print()
    console.print(f"[bold]Project:[/bold] {config.name}")
    console.print(
        f"  {report.total_blocks} blocks, {report.label_count} labels, "
        f"{report.jump_count} jumps, {report.link_count} links"
    )
    p = report.partitions
    console.print(f"  story {p.story} / screen {p.screen_only} / config {p.config}")
    console.print(f"  {report.total_words} words")
    console.print(
        f"  {report.route_count} routes, longest {report.longest_route} links, "
        f"complexity {report.complexity}/10"
    )

    if report.characters:
        table = Table(title="Characters")
        table.add_column("Tag", style="cyan")
        table.add_column("Name")
        table.add_column("Lines", justify="right")
        table.add_column("Words", justify="right")
        for stats in report.characters:
            table.add_row(stats.tag, stats.name, str(stats.lines), str(stats.words))
        console.print()
        console.print(table)

    console.print()
    if not report.diagnostics:
        console.print("[green]✓[/green] No issues found")
    severity_icons = {"warn": "[yellow]⚠[/yellow]", "info": "[dim]ℹ[/dim]"}
    for diagnostic in report.diagnostics:
        where = f" [dim]({diagnostic.block_id})[/dim]" if diagnostic.block_id else ""
        icon = severity_icons.get(diagnostic.severity, diagnostic.severity)
        console.print(f"{icon} {diagnostic.code}: {diagnostic.message}{where}")
    console.print()

    log.info("inspect_finished", warnings=len(report.warnings))


if __name__ == "__main__":
    app()
