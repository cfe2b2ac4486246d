import logging
from collections import Counter
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from dgeval._binding import driven_transform_plugs, sample_range
from dgeval._eval_engine import DiagnosticCollector, Evaluator, is_supported_compute_node_type
from dgeval._expr import ExpressionProgram
from dgeval._io import LoadedScene, SceneError, export_samples, load_scene

from .config import ConfigError, DgevalConfig, get_config

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Evaluate plugs of imported dependency-graph scenes."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
    )


def _fail(message: str) -> typer.Exit:
    err_console.print(f"[red]✗ {escape(message)}[/red]")
    return typer.Exit(code=1)


def _load(scene: Path) -> LoadedScene:
    err_console.print(f"[cyan]Loading scene from:[/cyan] {scene}")
    try:
        return load_scene(scene)
    except SceneError as e:
        raise _fail(str(e)) from e


def _config() -> DgevalConfig:
    try:
        return get_config()
    except ConfigError as e:
        raise _fail(str(e)) from e


def _format(value: float) -> str:
    return f"{value:.6g}"


def _print_diagnostics(collector: DiagnosticCollector) -> None:
    if not collector.diagnostics:
        return
    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("Kind", style="yellow")
    table.add_column("Plug", style="bold")
    table.add_column("Detail", style="dim")
    for diagnostic in collector.diagnostics:
        table.add_row(str(diagnostic.kind), escape(diagnostic.plug), escape(diagnostic.message))
    err_console.print(Panel(table, title="[bold]Diagnostics[/bold]", border_style="yellow"))


@app.command(name="eval")
def eval_(
    scene: Annotated[
        Path,
        typer.Argument(help="Path to scene file (.toml or .json)"),
    ],
    plug: Annotated[
        str,
        typer.Argument(help="Plug to evaluate, as node.attr"),
    ],
    *,
    frame: Annotated[
        float,
        typer.Option("-f", "--frame", help="Frame to evaluate at"),
    ] = 0.0,
    diagnostics: Annotated[
        bool,
        typer.Option("--diagnostics", help="Report default-zero fallbacks"),
    ] = False,
) -> None:
    """Evaluate one plug at one frame."""
    loaded = _load(scene)
    collector = DiagnosticCollector()
    evaluator = Evaluator(loaded.graph, loaded.curves, on_diagnostic=collector)

    value = evaluator.evaluate_plug(plug, frame)
    out_console.print(_format(value), highlight=False)

    if diagnostics:
        _print_diagnostics(collector)


@app.command()
def sample(  # noqa: PLR0913
    scene: Annotated[
        Path | None,
        typer.Argument(help="Path to scene file (defaults to [tool.dgeval].scene)"),
    ] = None,
    *,
    plugs: Annotated[
        list[str] | None,
        typer.Option("-p", "--plug", help="Plug to sample (repeatable; defaults to driven transform channels)"),
    ] = None,
    start: Annotated[
        float | None,
        typer.Option("--start", help="First frame"),
    ] = None,
    end: Annotated[
        float | None,
        typer.Option("--end", help="Last frame (inclusive)"),
    ] = None,
    step: Annotated[
        float | None,
        typer.Option("--step", help="Frame increment"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Path to output TOML file"),
    ] = None,
) -> None:
    """Sample plugs over a frame range and print or export the values."""
    config = _config()

    scene = scene or config.scene
    if scene is None:
        raise _fail("No scene given and no [tool.dgeval].scene configured")
    loaded = _load(scene)

    plug_list = list(plugs or config.plugs) or driven_transform_plugs(loaded.graph)
    if not plug_list:
        raise _fail("Nothing to sample: pass --plug or connect transform channels in the scene")

    first = start if start is not None else (config.start if config.start is not None else 0.0)
    last = end if end is not None else (config.end if config.end is not None else first)
    increment = step if step is not None else (config.step if config.step is not None else 1.0)

    evaluator = Evaluator(loaded.graph, loaded.curves)
    try:
        samples = sample_range(evaluator, plug_list, first, last, increment)
    except ValueError as e:
        raise _fail(str(e)) from e

    output = output or config.output
    if output is not None:
        export_samples(samples, output)
        err_console.print(f"[green]✓ Wrote {len(samples.frames)} frame(s) to {output}[/green]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Frame", justify="right", style="dim")
    for p in plug_list:
        table.add_column(escape(p), justify="right")
    for i, f in enumerate(samples.frames):
        table.add_row(_format(f), *(_format(samples.values[p][i]) for p in plug_list))
    out_console.print(table)


@app.command()
def expr(
    scene: Annotated[
        Path,
        typer.Argument(help="Path to scene file (.toml or .json)"),
    ],
    text: Annotated[
        str,
        typer.Argument(help="Expression text, e.g. 'sin(time) * ctrl.tx' or 'ball.ty = frame / 2;'"),
    ],
    *,
    frame: Annotated[
        float,
        typer.Option("-f", "--frame", help="Frame to evaluate at"),
    ] = 0.0,
) -> None:
    """Evaluate expression text against a scene."""
    loaded = _load(scene)
    evaluator = Evaluator(loaded.graph, loaded.curves)
    program = ExpressionProgram.from_text(text)

    if not any(a.target for a in program.assignments):
        out_console.print(_format(evaluator.interpreter.evaluate(text, frame)), highlight=False)
        return

    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("Target", style="bold")
    table.add_column("Value", justify="right")
    for assignment, value in program.values(evaluator.interpreter, frame):
        table.add_row(escape(assignment.target), _format(value))
    out_console.print(table)


@app.command()
def coverage(
    scene: Annotated[
        Path,
        typer.Argument(help="Path to scene file (.toml or .json)"),
    ],
) -> None:
    """Report which node types of a scene have a formula."""
    loaded = _load(scene)
    graph = loaded.graph

    counts = Counter(node.type for node in graph.nodes.values())
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Node type", style="bold")
    table.add_column("Count", justify="right", style="yellow")
    table.add_column("Supported")
    for node_type, count in sorted(counts.items()):
        status = "[green]✓[/green]" if is_supported_compute_node_type(node_type) else "[dim]-[/dim]"
        table.add_row(escape(node_type), str(count), status)

    supported = sum(c for t, c in counts.items() if is_supported_compute_node_type(t))
    out_console.print(
        Panel(
            table,
            title="[bold]Node type coverage[/bold]",
            subtitle=f"[dim]{supported}/{len(graph)} nodes computed[/dim]",
            border_style="cyan",
        ),
    )

    cyclic = sorted(graph.cyclic_plugs())
    if cyclic:
        err_console.print(f"[yellow]⚠ {len(cyclic)} plug(s) on or downstream of a cycle:[/yellow]")
        for plug in cyclic:
            err_console.print(f"  [yellow]•[/yellow] {escape(plug)}")


def main() -> None:
    app()
