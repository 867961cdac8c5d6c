"""
Command-line interface for layerpath.

Provides commands for program generation, path inspection and
configuration listing.
"""

from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from layerpath import __version__
from layerpath.core.config import ConfigManager, JobConfig, PrinterConfig, load_job
from layerpath.core.exceptions import LayerPathError
from layerpath.core.logging import configure_logging
from layerpath.pipeline import GenerationJob, Pipeline, job_from_config
from layerpath.postprocessor.dialects import Dialect, InterpolationMode
from layerpath.slicing.analysis import path_length
from layerpath.slicing.sampler import FrameSampler

console = Console(stderr=True)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config-dir",
    type=click.Path(path_type=Path),
    default="config",
    help="Configuration directory",
)
@click.option("--log-level", default="WARNING", help="Log level (DEBUG, INFO, WARNING, ...)")
@click.option("--json-logs", is_flag=True, help="Emit JSON log lines")
@click.pass_context
def main(ctx: click.Context, config_dir: Path, log_level: str, json_logs: bool) -> None:
    """layerpath - Toolpath generation for layer-based printing."""
    configure_logging(level=log_level, json_output=json_logs)
    ctx.ensure_object(dict)
    ctx.obj["config_dir"] = config_dir


def _load(ctx: click.Context, job_ref: str, printer_ref: Optional[str]) -> GenerationJob:
    """Resolve a job name or file, plus its printer, into a GenerationJob."""
    job_path = Path(job_ref)
    config_mgr: Optional[ConfigManager] = None

    if job_path.suffix in (".yaml", ".yml") and job_path.exists():
        job: JobConfig = load_job(job_path)
        base_dir = job_path.parent
    else:
        config_mgr = ConfigManager(ctx.obj["config_dir"])
        job = config_mgr.get_job(job_ref)
        base_dir = config_mgr.config_dir

    if printer_ref is not None:
        job = job.model_copy(update={"printer": printer_ref})
    if config_mgr is None and isinstance(job.printer, str):
        config_mgr = ConfigManager(ctx.obj["config_dir"])

    printer: Optional[PrinterConfig] = (
        config_mgr.resolve_printer(job) if config_mgr is not None else job.printer
    )
    return job_from_config(job, printer, base_dir=base_dir)


# =============================================================================
# Generation Commands
# =============================================================================


@main.command("generate")
@click.argument("job_ref", metavar="JOB")
@click.option("--printer", "-p", help="Override printer configuration")
@click.option("--output", "-o", type=click.Path(path_type=Path), help="Output file (default: stdout)")
@click.option(
    "--dialect",
    type=click.Choice([d.value for d in Dialect], case_sensitive=False),
    help="Override the printer dialect",
)
@click.option(
    "--interpolation",
    type=click.Choice([m.value for m in InterpolationMode], case_sensitive=False),
    help="Override the interpolation mode",
)
@click.pass_context
def generate(
    ctx: click.Context,
    job_ref: str,
    printer: Optional[str],
    output: Optional[Path],
    dialect: Optional[str],
    interpolation: Optional[str],
) -> None:
    """Generate the motion program of a job (name or YAML file)."""
    try:
        job = _load(ctx, job_ref, printer)
        if dialect:
            job.dialect = Dialect(dialect)
        if interpolation:
            job.mode = InterpolationMode(interpolation)

        result = Pipeline().execute(job)

        if output is None:
            click.echo(result.text, nl=False)
        else:
            output.write_text(result.text)
            console.print(
                f"[green]✓[/green] Wrote {len(result.program)} instructions "
                f"({result.path.layer_count} layers) to {output}"
            )
    except LayerPathError as e:
        console.print(f"[red]✗[/red] Failed to generate program: {e}")
        raise SystemExit(1)


@main.command("inspect")
@click.argument("job_ref", metavar="JOB")
@click.pass_context
def inspect_job(ctx: click.Context, job_ref: str) -> None:
    """Show the sampled layer structure of a job."""
    try:
        job = _load(ctx, job_ref, None)
        sampler = FrameSampler(job.sampling, job.transition, job.transition_settings)
        path = sampler.sample(job.layers)

        table = Table(title=f"Sampled path ({job.transition.value} transitions)")
        table.add_column("Layer", style="cyan")
        table.add_column("Height")
        table.add_column("Closed")
        table.add_column("Frames")
        table.add_column("Transition frames")
        table.add_column("Seam")

        for span, layer in zip(path.spans, path.layers):
            table.add_row(
                str(span.layer_index),
                f"{layer.height:.3f}",
                "✓" if layer.closed else "-",
                str(span.count),
                str(span.transition_count),
                str(span.seam_index),
            )

        console.print(table)
        console.print(f"Total frames: {path.total}, path length: {path_length(path):.3f} mm")
    except LayerPathError as e:
        console.print(f"[red]✗[/red] Failed to inspect job: {e}")
        raise SystemExit(1)


# =============================================================================
# Configuration Commands
# =============================================================================


@main.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command("list-jobs")
@click.pass_context
def config_list_jobs(ctx: click.Context) -> None:
    """List available job configurations."""
    try:
        config_mgr = ConfigManager(ctx.obj["config_dir"])
        jobs = config_mgr.list_jobs()

        if not jobs:
            console.print("[yellow]No job configurations found.[/yellow]")
            return

        table = Table(title="Available Jobs")
        table.add_column("Name", style="cyan")
        table.add_column("Printer")
        table.add_column("Transition")
        table.add_column("Channels")

        for name in jobs:
            job = config_mgr.get_job(name)
            printer = job.printer if isinstance(job.printer, str) else getattr(job.printer, "name", "-")
            table.add_row(
                name,
                printer or "-",
                job.transition.type,
                ", ".join(c.prefix for c in job.channels) or "-",
            )

        console.print(table)

    except LayerPathError as e:
        console.print(f"[red]✗[/red] Failed to list jobs: {e}")
        raise SystemExit(1)


@config.command("list-printers")
@click.pass_context
def config_list_printers(ctx: click.Context) -> None:
    """List available printer configurations."""
    try:
        config_mgr = ConfigManager(ctx.obj["config_dir"])
        printers = config_mgr.list_printers()

        if not printers:
            console.print("[yellow]No printer configurations found.[/yellow]")
            return

        table = Table(title="Available Printers")
        table.add_column("Name", style="cyan")
        table.add_column("Dialect")
        table.add_column("Interpolation")

        for name in printers:
            printer = config_mgr.get_printer(name)
            table.add_row(name, printer.dialect, printer.interpolation)

        console.print(table)

    except LayerPathError as e:
        console.print(f"[red]✗[/red] Failed to list printers: {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
