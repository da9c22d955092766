"""Thin CLI wrapper for uistage.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules. Invoked without a
subcommand, the full build-and-stage pipeline runs.
"""

import json
import logging
from pathlib import Path
from typing import Annotated, Any

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from uistage import __version__
from uistage.config import Settings, get_settings, print_settings_json

app = typer.Typer(
    name="uistage",
    help="Build the front-end project and stage its artifacts for packaging",
)
console = Console()
err_console = Console(stderr=True)


def configure_logging(level: str) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _print_json(data: Any) -> None:
    console.print(
        json.dumps(data, indent=2),
        soft_wrap=True,
        markup=False,
        highlight=False,
    )


def _load_settings(ctx: typer.Context, **overrides: Any) -> Settings:
    config_path = ctx.obj.get("config_path") if ctx.obj else None
    try:
        settings = get_settings(config_path, **overrides)
    except (ValueError, OSError, yaml.YAMLError) as e:
        err_console.print(f"[red]Invalid configuration: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None
    configure_logging(settings.log_level)
    return settings


def _run(
    ctx: typer.Context,
    json_output: bool = False,
    skip_install: bool = False,
    **overrides: Any,
) -> None:
    from uistage.pipeline import result_to_dict, run_pipeline

    settings = _load_settings(ctx, **overrides)
    result = run_pipeline(settings, skip_install=skip_install)

    if json_output:
        _print_json(result_to_dict(result))
    elif result.success:
        console.print(
            f"[green]Staged {len(result.staged_files)} file(s) "
            f"into {result.target_dir}[/green]"
        )
        for command in result.commands:
            console.print(
                f"  {command.command} ({command.duration:.1f}s)", markup=False
            )
        if result.pruned_files:
            console.print(f"  Pruned: {len(result.pruned_files)} file(s)")

    if not result.success:
        err_console.print(f"[red]{escape(result.error_message or '')}[/red]")
        exit_code = result.exit_code or 1
        raise typer.Exit(code=exit_code if exit_code > 0 else 1)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"uistage version {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="YAML config file"),
    ] = None,
) -> None:
    """Build the front-end project and stage its artifacts for packaging."""
    ctx.obj = {"config_path": config_path}
    if ctx.invoked_subcommand is None:
        _run(ctx)


@app.command()
def run(
    ctx: typer.Context,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output the pipeline result as JSON"),
    ] = False,
    skip_install: Annotated[
        bool,
        typer.Option("--skip-install", help="Do not run the install command"),
    ] = False,
    legacy_clear_check: Annotated[
        bool | None,
        typer.Option(
            "--legacy-clear-check/--no-legacy-clear-check",
            help="Reproduce the literal-wildcard target check",
        ),
    ] = None,
    project_dir: Annotated[
        Path | None,
        typer.Option("--project-dir", "-p", help="Front-end project directory"),
    ] = None,
    target_dir: Annotated[
        Path | None,
        typer.Option(
            "--target-dir",
            "-t",
            help="Target staging directory, relative to the project directory",
        ),
    ] = None,
) -> None:
    """Install, build, prune and stage."""
    _run(
        ctx,
        json_output=json_output,
        skip_install=skip_install,
        legacy_clear_check=legacy_clear_check,
        project_dir=project_dir,
        target_dir=target_dir,
    )


@app.command()
def prune(
    ctx: typer.Context,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", "-n", help="Only list the files to prune"),
    ] = False,
) -> None:
    """Delete generated files matching the prune patterns from the build output."""
    from uistage.errors import PipelineError
    from uistage.prune import prune_build_output

    settings = _load_settings(ctx)
    build_dir = settings.resolved_build_dir()

    try:
        pruned = prune_build_output(build_dir, settings.prune_patterns, dry_run=dry_run)
    except PipelineError as e:
        err_console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    prefix = "Would prune" if dry_run else "Pruned"
    if not pruned:
        console.print("[yellow]No files to prune[/yellow]")
        return
    console.print(f"[bold]{prefix} {len(pruned)} file(s):[/bold]")
    for rel_path in pruned:
        console.print(f"  - {rel_path}", markup=False)


@app.command()
def verify(
    ctx: typer.Context,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Compare the target directory against the build output."""
    from dataclasses import asdict

    from uistage.errors import PipelineError
    from uistage.staging import verify_staged

    settings = _load_settings(ctx)

    try:
        report = verify_staged(
            settings.resolved_build_dir(),
            settings.resolved_target_dir(),
            settings.staged_entries,
        )
    except PipelineError as e:
        err_console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    if json_output:
        _print_json({**asdict(report), "ok": report.ok})
    elif report.ok:
        console.print("[green]✓ Target matches build output[/green]")
    else:
        console.print("[red]Target differs from build output:[/red]")
        for label, paths in (
            ("Missing", report.missing),
            ("Mismatched", report.mismatched),
            ("Unexpected", report.unexpected),
        ):
            for rel_path in paths:
                console.print(f"  {label}: {rel_path}", markup=False)

    if not report.ok:
        raise typer.Exit(code=1)


@app.command()
def config(
    ctx: typer.Context,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = _load_settings(ctx)
    if json_output:
        console.print(print_settings_json(settings), soft_wrap=True, markup=False)
        return

    overlay_display = str(settings.overlay_dir) if settings.overlay_dir else "(none)"
    log_file_display = str(settings.log_file) if settings.log_file else "(terminal)"
    console.print("[bold]Effective Configuration:[/bold]")
    console.print()
    console.print("[bold]Paths:[/bold]")
    console.print(f"  Project directory:   {settings.project_dir}", markup=False)
    console.print(f"  Build directory:     {settings.build_dir}", markup=False)
    console.print(f"  Target directory:    {settings.target_dir}", markup=False)
    console.print(f"  Overlay directory:   {overlay_display}", markup=False)
    console.print()
    console.print("[bold]Commands:[/bold]")
    console.print(f"  Package manager:     {settings.package_manager}", markup=False)
    console.print(
        f"  Install arguments:   {' '.join(settings.install_args) or '(none)'}",
        markup=False,
    )
    console.print(
        f"  Build arguments:     {' '.join(settings.build_args) or '(none)'}",
        markup=False,
    )
    console.print()
    console.print("[bold]Staging:[/bold]")
    console.print(
        f"  Prune patterns:      {', '.join(settings.prune_patterns)}", markup=False
    )
    console.print(
        f"  Staged entries:      {', '.join(settings.staged_entries)}", markup=False
    )
    console.print(f"  Legacy clear check:  {settings.legacy_clear_check}")
    console.print()
    console.print("[bold]Timeouts (seconds):[/bold]")
    console.print(f"  Install timeout:     {settings.install_timeout or 'none'}")
    console.print(f"  Build timeout:       {settings.build_timeout or 'none'}")
    console.print()
    console.print("[bold]Logging:[/bold]")
    console.print(f"  Log level:           {settings.log_level}")
    console.print(f"  Log file:            {log_file_display}", markup=False)


if __name__ == "__main__":
    app()
