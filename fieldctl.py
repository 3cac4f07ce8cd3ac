"""
fieldctl.py - Wave Field Command Line

Drives the engine from the shell: harvest seeds, iterate to a fixpoint,
sweep the runtime heartbeat, unfold attractors and redistribute their
strengths. Every command takes --output rich|json.

Usage:
    fieldctl harvest --count 3
    fieldctl --preset strict converge --x 0.5 --y 0.5 --mass 0.4
    fieldctl sweep --ticks 500 --export receipts.jsonl
    fieldctl redistribute LOVE=0.4 FEAR=0.1 CURIOSITY=0.2 TRUTH=0.2 BEAUTY=0.1
"""

import json
import logging
import math
import sys
from typing import Any, Dict, List, Optional, Tuple

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from receipts import StopRule
from wavefield import (
    AttractorName,
    FieldRuntime,
    Position,
    PRESETS,
    converge_to_fixpoint,
    create_field,
    create_seed,
    default_attractors,
    generate_combined_stream,
    harvest,
    load_config,
    stream_moves_toward_attractor,
)
from wavefield.constants import DEFAULT_SEED_MASS, DEFAULT_SEED_X, DEFAULT_SEED_Y

console = Console()


# =============================================================================
# OUTPUT HELPERS
# =============================================================================

def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    console.print(f"[yellow]⚠[/yellow] {message}")


def _emit_json(payload: Dict[str, Any]) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def _fail(output: str, message: str) -> None:
    if output == "json":
        click.echo(json.dumps({"error": message}))
    else:
        print_error(message)
    sys.exit(2)


def _parse_assignments(pairs: Tuple[str, ...]) -> Dict[str, float]:
    """NAME=VALUE pairs -> {NAME: float(VALUE)}."""
    mapping = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep:
            raise click.BadParameter(f"expected NAME=VALUE, got {pair!r}")
        try:
            mapping[name.strip().upper()] = float(value)
        except ValueError:
            raise click.BadParameter(f"not a number: {value!r}")
    return mapping


# =============================================================================
# CLI GROUP
# =============================================================================

@click.group()
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="JSON file of FieldConfig overrides")
@click.option("--preset", type=click.Choice(sorted(PRESETS)), default="default",
              help="Named configuration preset (ignored with --config)")
@click.option("--verbose", "-v", count=True, help="-v for INFO, -vv for DEBUG")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], preset: str, verbose: int) -> None:
    """Wave field lifecycle engine."""
    level = logging.WARNING if verbose == 0 else logging.INFO if verbose == 1 else logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config(config_path) if config_path else PRESETS[preset]
    except (StopRule, ValueError, TypeError) as e:
        raise click.ClickException(f"Invalid config: {e}")


# --- harvest ---

@cli.command("harvest")
@click.option("--x", "x", type=float, default=DEFAULT_SEED_X, help="Seed axis-A")
@click.option("--y", "y", type=float, default=DEFAULT_SEED_Y, help="Seed axis-B")
@click.option("--mass", type=float, default=DEFAULT_SEED_MASS, help="Seed mass in [0, 1]")
@click.option("--origin", default="cli", help="Origin label for the seed")
@click.option("--count", "-n", type=int, default=1, help="Seeds to harvest in sequence")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
@click.pass_context
def harvest_cmd(ctx: click.Context, x: float, y: float, mass: float, origin: str,
                count: int, output: str) -> None:
    """Harvest seeds against a fresh field, threading the field through."""
    config = ctx.obj["config"]
    field = create_field()
    rows: List[Dict[str, Any]] = []
    try:
        for _ in range(count):
            seed = create_seed(origin=origin, position=Position(x, y), mass=mass)
            result = harvest(seed, field, config)
            field = result.field
            rows.append(result.receipt)
    except StopRule as e:
        _fail(output, str(e))

    if output == "json":
        _emit_json({"harvests": rows, "field": field.metrics()})
        return

    table = Table(title="Harvest")
    table.add_column("Wave", style="cyan")
    table.add_column("Status")
    table.add_column("Decon", justify="right")
    table.add_column("Synth", justify="right")
    table.add_column("Mass", justify="right")
    table.add_column("Landmark")
    for r in rows:
        status = f"[green]{r['status']}[/green]" if r["crystallized"] else f"[yellow]{r['status']}[/yellow]"
        table.add_row(r["wave_id"], status, str(r["deconstruction_iterations"]),
                      str(r["synthesis_iterations"]), f"{r['mass_after']:.4f}",
                      r["landmark_id"] or "-")
    console.print(table)
    metrics = field.metrics()
    console.print(Panel(
        f"density:   {metrics['density']:.4f}\n"
        f"phase:     {metrics['phase']}\n"
        f"landmarks: {metrics['landmark_count']}",
        title="[bold]Field[/bold]",
        border_style="green",
    ))


# --- converge ---

@cli.command("converge")
@click.option("--x", "x", type=float, default=0.5, help="Seed axis-A")
@click.option("--y", "y", type=float, default=0.5, help="Seed axis-B")
@click.option("--mass", type=float, default=0.4, help="Seed mass in [0, 1]")
@click.option("--landmarks", type=int, default=2, help="Default seeds crystallized first")
@click.option("--max-iterations", type=int, default=None, help="Harvest bound")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
@click.pass_context
def converge_cmd(ctx: click.Context, x: float, y: float, mass: float, landmarks: int,
                 max_iterations: Optional[int], output: str) -> None:
    """Iterate harvest on one seed until it reaches a fixpoint."""
    config = ctx.obj["config"]
    try:
        field = create_field()
        for _ in range(landmarks):
            field = harvest(create_seed(origin="warmup"), field, config).field
        seed = create_seed(origin="cli", position=Position(x, y), mass=mass)
        report = converge_to_fixpoint(seed, field, max_iterations, config)
    except StopRule as e:
        _fail(output, str(e))

    # First step has no predecessor; its infinite delta is emitted as null
    steps = [{"mass": s.mass, "delta": s.delta if math.isfinite(s.delta) else None,
              "status": s.wave.status.value}
             for s in report.history]
    if output == "json":
        _emit_json({
            "converged": report.converged,
            "iterations": report.iterations,
            "history": steps,
            "field": report.final_field.metrics(),
        })
        return

    table = Table(title="Convergence")
    table.add_column("Step", justify="right")
    table.add_column("Status")
    table.add_column("Mass", justify="right")
    table.add_column("Delta", justify="right")
    for i, step in enumerate(steps):
        delta = "-" if step["delta"] is None else f"{step['delta']:.4f}"
        table.add_row(str(i), step["status"], f"{step['mass']:.4f}", delta)
    console.print(table)
    if report.converged:
        print_success(f"Converged after {report.iterations} harvests")
    else:
        print_warning(f"No fixpoint within {report.iterations} harvests")


# --- sweep ---

@cli.command("sweep")
@click.option("--ticks", type=int, default=400, help="Ticks to run")
@click.option("--export", "export_path", type=click.Path(dir_okay=False),
              help="Write the receipt ledger as JSONL")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
@click.pass_context
def sweep_cmd(ctx: click.Context, ticks: int, export_path: Optional[str], output: str) -> None:
    """Run the runtime heartbeat and list the phase changes it produces."""
    runtime = FieldRuntime(ctx.obj["config"])
    runtime.run(ticks)
    changes = [r for r in runtime.receipts if r["receipt_type"] == "runtime_tick"]
    written = runtime.export_receipts(export_path) if export_path else 0

    if output == "json":
        _emit_json({
            "metrics": runtime.metrics(),
            "phase_changes": changes,
            "ledger_root": runtime.ledger_root(),
            "exported": written,
        })
        return

    table = Table(title=f"Phase changes over {ticks} ticks")
    table.add_column("Tick", justify="right")
    table.add_column("t (ms)", justify="right")
    table.add_column("Density", justify="right")
    table.add_column("Transition")
    for r in changes:
        table.add_row(str(r["tick"]), str(r["elapsed_ms"]), f"{r['density']:.4f}",
                      f"{r['from_phase']} → {r['to_phase']}")
    console.print(table)
    console.print(f"[dim]ledger root:[/dim] {runtime.ledger_root()[:32]}...")
    if export_path:
        print_success(f"Exported {written} receipts to {export_path}")


# --- unfold ---

@cli.command("unfold")
@click.option("--strength", type=float, default=0.5, help="Strength of every default attractor")
@click.option("--depth", type=int, default=10, help="Events per stream")
@click.option("--attractor", "names", multiple=True,
              type=click.Choice([n.value for n in AttractorName], case_sensitive=False),
              help="Restrict to these attractors")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
@click.pass_context
def unfold_cmd(ctx: click.Context, strength: float, depth: int, names: Tuple[str, ...],
               output: str) -> None:
    """Generate event streams from the default attractors."""
    config = ctx.obj["config"]
    try:
        attractors = default_attractors(strength)
    except StopRule as e:
        _fail(output, str(e))
    wanted = {n.upper() for n in names}
    if wanted:
        attractors = tuple(a for a in attractors if a.name.value in wanted)
    field = create_field(attractors)
    streams = generate_combined_stream(field, attractors, depth, config.activation_threshold)
    by_name = {a.name: a for a in attractors}

    if output == "json":
        _emit_json({
            "streams": {
                name.value: [e.to_dict() for e in events] for name, events in streams
            },
        })
        return

    table = Table(title="Unfold")
    table.add_column("Attractor", style="cyan")
    table.add_column("Events", justify="right")
    table.add_column("First strength", justify="right")
    table.add_column("Toward")
    for name, events in streams:
        toward = stream_moves_toward_attractor(Position(0.0, 0.0), by_name[name], events)
        table.add_row(name.value, str(len(events)),
                      f"{events[0].strength:.4f}" if events else "-",
                      "yes" if toward else "no")
    console.print(table)


# --- redistribute ---

@cli.command("redistribute")
@click.argument("assignments", nargs=-1, required=True)
@click.option("--strength", type=float, default=0.2, help="Granted strength per default attractor")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
@click.pass_context
def redistribute_cmd(ctx: click.Context, assignments: Tuple[str, ...], strength: float,
                     output: str) -> None:
    """Redistribute default attractor strengths: NAME=VALUE for every attractor."""
    mapping = _parse_assignments(assignments)
    try:
        runtime = FieldRuntime(ctx.obj["config"], default_attractors(strength))
    except StopRule as e:
        _fail(output, str(e))
    accepted = runtime.redistribute(mapping)
    receipt = runtime.receipts[-1]

    if output == "json":
        _emit_json({"accepted": accepted, "receipt": receipt})
    elif accepted:
        print_success(f"Redistributed budget {runtime.budget:.2f}")
    else:
        print_error(f"Rejected: {receipt['reason']}")
    if not accepted:
        sys.exit(1)


def main() -> int:
    """Entry point for the fieldctl console script."""
    try:
        cli(standalone_mode=False)
        return 0
    except click.ClickException as e:
        e.show()
        return 2
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 0


if __name__ == "__main__":
    sys.exit(main())
