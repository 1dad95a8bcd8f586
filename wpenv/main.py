"""
wpenv — CLI entrypoint.

Usage:
    wpenv --help
    wpenv init --plugin
    wpenv start --xdebug
    wpenv config validate
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from wpenv import __version__
from wpenv.core.observability.logging_config import resolve_level, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="wpenv")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--project",
    "-p",
    "project_path",
    type=click.Path(file_okay=False),
    default=None,
    help="Project directory (default: nearest directory with .wpenv.yml, else cwd).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    project_path: str | None,
) -> None:
    """wpenv — local WordPress development environments."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug

    if project_path:
        ctx.obj["project_path"] = Path(project_path).resolve()
    else:
        from wpenv.core.config.loader import find_project_dir

        ctx.obj["project_path"] = find_project_dir() or Path.cwd()

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        quiet_third_party=not debug,
    )


# ── init ─────────────────────────────────────────────────────────


@cli.command()
@click.option("--plugin", "kind", flag_value="plugin", help="Map the project as a plugin.")
@click.option("--mu-plugin", "kind", flag_value="mu-plugin", help="Map the project as an mu-plugin.")
@click.option("--theme", "kind", flag_value="theme", help="Map the project as a theme.")
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing .wpenv.yml.")
@click.pass_context
def init(ctx: click.Context, kind: str | None, force: bool) -> None:
    """Create a starter .wpenv.yml in the project directory."""
    from wpenv.core.config.loader import init_config
    from wpenv.core.errors import ConfigError

    project_path: Path = ctx.obj["project_path"]

    try:
        path = init_config(project_path, kind, force=force)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        if not force:
            click.echo("   Use --force to overwrite.")
        sys.exit(1)

    click.secho(f"✅ Created {path}", fg="green", bold=True)
    if kind:
        click.echo(f"   Mapped as {kind}")
    click.echo("   Edit it, then run 'wpenv start'.")


# ── config ───────────────────────────────────────────────────────


@cli.group()
def config() -> None:
    """Project configuration commands."""


@config.command("validate")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_validate(ctx: click.Context, as_json: bool) -> None:
    """Validate .wpenv.yml merged with its overlays."""
    from wpenv.core.use_cases.config_check import check_config

    result = check_config(ctx.obj["project_path"])

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)
        return

    if result.valid:
        assert result.config is not None  # guaranteed when valid
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   Project: {result.config.project_name}")
        click.echo(f"   Hostname: {result.config.hostname}")
        click.echo(f"   Mappings: {len(result.config.mappings)}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)


@config.command("show")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_show(ctx: click.Context, as_json: bool) -> None:
    """Show the resolved configuration (credentials masked)."""
    import yaml

    from wpenv.core.config.loader import mask_config, resolve
    from wpenv.core.errors import ConfigError

    try:
        resolved = resolve(ctx.obj["project_path"])
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    data = mask_config(resolved)
    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    click.secho(f"\n📋 {resolved.project_name}", fg="cyan", bold=True)
    click.echo(f"   Root: {resolved.project_root}")
    click.echo()
    click.echo(yaml.safe_dump(data, sort_keys=False, default_flow_style=False))


# ── Register sub-commands from wpenv/ui/cli/ ─────────────────────

from wpenv.ui.cli.credentials import credentials  # noqa: E402
from wpenv.ui.cli.environment import (  # noqa: E402
    destroy,
    logs,
    shell,
    start,
    stop,
    update,
    watch_jobs,
    wp,
)

cli.add_command(start)
cli.add_command(stop)
cli.add_command(destroy)
cli.add_command(update)
cli.add_command(logs)
cli.add_command(shell)
cli.add_command(wp)
cli.add_command(watch_jobs)
cli.add_command(credentials)


if __name__ == "__main__":
    cli()
