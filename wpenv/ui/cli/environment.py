"""
CLI commands for the environment lifecycle.

Thin wrappers over ``wpenv.core.use_cases.environment`` and
``wpenv.core.services.job_watcher``.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from wpenv.core.errors import ConfigValidationError, WpenvError


def _store(ctx: click.Context):
    """Credential store from the context (tests inject one), else the default."""
    store = ctx.obj.get("store")
    if store is None:
        from wpenv.adapters.vault import get_default_store

        store = get_default_store()
        ctx.obj["store"] = store
    return store


def _fail(e: WpenvError) -> None:
    if isinstance(e, ConfigValidationError):
        click.secho("❌ Configuration validation failed:", fg="red", bold=True)
        for err in e.errors:
            click.echo(f"   • {err}")
    else:
        click.secho(f"❌ {e}", fg="red")
    sys.exit(1)


def _not_found() -> None:
    click.secho("⚠️  No environment found.", fg="yellow")
    click.echo("   Run 'wpenv start' to create one.")


# ── start / stop / destroy / update ────────────────────────────────


@click.command()
@click.option("--xdebug", is_flag=True, help="Enable Xdebug.")
@click.option("--no-s3", "no_s3", is_flag=True, help="Disable the S3 proxy service.")
@click.option("--no-redis", "no_redis", is_flag=True, help="Disable the Redis service.")
@click.pass_context
def start(ctx: click.Context, xdebug: bool, no_s3: bool, no_redis: bool) -> None:
    """Generate docker-compose.yml and start the environment."""
    from wpenv.core.use_cases.environment import runtime_overrides, start_environment

    quiet = ctx.obj.get("quiet", False)
    if not quiet:
        click.secho("🚀 Starting environment...", fg="blue")

    try:
        result = start_environment(
            ctx.obj["project_path"],
            _store(ctx),
            overrides=runtime_overrides(xdebug=xdebug, proxy=not no_s3, cache=not no_redis),
            passthrough=not quiet,
        )
    except WpenvError as e:
        _fail(e)
        return

    click.secho("\n✅ Environment started", fg="green", bold=True)
    click.echo(f"   Project:  {result.project_name}")
    click.echo(f"   Services: {', '.join(result.services)}")
    click.echo(f"   Site:     https://{result.hostname}")
    if not quiet:
        click.echo()
        click.secho("⚠️  Make sure /etc/hosts contains:", fg="yellow")
        click.echo(f"   127.0.0.1 {result.hostname}")


@click.command()
@click.pass_context
def stop(ctx: click.Context) -> None:
    """Stop the environment's containers (data is kept)."""
    from wpenv.core.use_cases.environment import stop_environment

    try:
        result = stop_environment(
            ctx.obj["project_path"], passthrough=not ctx.obj.get("quiet", False),
        )
    except WpenvError as e:
        _fail(e)
        return

    if not result.found:
        _not_found()
        return
    click.secho(f"✅ Stopped {result.project_name}", fg="green")


@click.command()
@click.option("--force", "-f", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_context
def destroy(ctx: click.Context, force: bool) -> None:
    """Remove containers, network and volumes (the database is lost)."""
    from wpenv.core.config.loader import resolve
    from wpenv.core.use_cases.environment import destroy_environment

    project_path: Path = ctx.obj["project_path"]

    if not force:
        try:
            name = resolve(project_path).project_name
        except WpenvError as e:
            _fail(e)
            return
        click.secho(
            f"⚠️  This will delete all containers and volumes for '{name}', "
            "including the database.",
            fg="yellow",
        )
        if not click.confirm("Continue?", default=False):
            click.echo("Cancelled.")
            return

    try:
        result = destroy_environment(
            project_path, passthrough=not ctx.obj.get("quiet", False),
        )
    except WpenvError as e:
        _fail(e)
        return

    if not result.found:
        _not_found()
        return
    click.secho(f"✅ Destroyed {result.project_name}", fg="green")


@click.command()
@click.option("--all", "pull_all", is_flag=True, help="Pull every image, not just WordPress.")
@click.option(
    "--preserve-wpbuild",
    "preserve_build",
    is_flag=True,
    help="Keep the WordPress build volume (core files are not refreshed).",
)
@click.pass_context
def update(ctx: click.Context, pull_all: bool, preserve_build: bool) -> None:
    """Pull fresh images and recreate containers (database kept)."""
    from wpenv.core.use_cases.environment import update_environment

    try:
        result = update_environment(
            ctx.obj["project_path"],
            _store(ctx),
            pull_all=pull_all,
            preserve_build=preserve_build,
            passthrough=not ctx.obj.get("quiet", False),
        )
    except WpenvError as e:
        _fail(e)
        return

    if not result.found:
        _not_found()
        return

    for warning in result.warnings:
        click.secho(f"⚠️  {warning}", fg="yellow")
    click.secho("\n✅ Update complete", fg="green", bold=True)
    if preserve_build:
        click.echo("   WordPress build volume preserved; core files not refreshed.")
    elif result.build_volume_removed:
        click.echo("   WordPress core refreshed from the new image.")
    click.echo("   Database and mapped code preserved.")
    click.echo(f"   Site: https://{result.hostname}")


# ── logs / shell / wp ──────────────────────────────────────────────


@click.command()
@click.option("--follow", "-f", is_flag=True, help="Follow log output.")
@click.option("--service", "-s", default=None, help="Only this service (wordpress, db, redis, ...).")
@click.pass_context
def logs(ctx: click.Context, follow: bool, service: str | None) -> None:
    """Show container logs."""
    from wpenv.core.use_cases.environment import show_logs

    try:
        code = show_logs(ctx.obj["project_path"], follow=follow, service=service)
    except WpenvError as e:
        _fail(e)
        return
    if code == -1:
        _not_found()


@click.command()
@click.pass_context
def shell(ctx: click.Context) -> None:
    """Open an interactive bash shell in the WordPress container."""
    from wpenv.core.use_cases.environment import run_in_wordpress

    try:
        code = run_in_wordpress(ctx.obj["project_path"], "/bin/bash")
    except WpenvError as e:
        _fail(e)
        return
    if code == -1:
        _not_found()
    elif code != 0:
        click.secho(f"⚠️  Shell exited with code {code}", fg="yellow")


@click.command(context_settings={"ignore_unknown_options": True})
@click.argument("args", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_context
def wp(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Run a WP-CLI command in the WordPress container."""
    from wpenv.core.use_cases.environment import run_in_wordpress

    try:
        code = run_in_wordpress(ctx.obj["project_path"], "wp", *args, tty=sys.stdin.isatty())
    except WpenvError as e:
        _fail(e)
        return
    if code == -1:
        _not_found()
        sys.exit(1)
    if code:
        sys.exit(code)


# ── watch-jobs ─────────────────────────────────────────────────────


@click.command("watch-jobs")
@click.option("--interval", "-i", type=int, default=None, help="Seconds between polls (min 10).")
@click.pass_context
def watch_jobs(ctx: click.Context, interval: int | None) -> None:
    """Process site-manager jobs periodically until interrupted."""
    from wpenv.core.config.loader import resolve
    from wpenv.core.services.docker_common import require_docker
    from wpenv.core.services.job_watcher import JobRun, JobWatcher, resolve_interval

    quiet = ctx.obj.get("quiet", False)

    try:
        config = resolve(ctx.obj["project_path"])
        seconds = resolve_interval(interval, config.job_watch_interval)
        if not config.compose_path.is_file():
            _not_found()
            return
        require_docker()
    except WpenvError as e:
        _fail(e)
        return

    def report(job: JobRun) -> None:
        if quiet:
            return
        if job.processed:
            click.secho("✓ Processing jobs:", fg="green")
            click.echo(job.output)
        elif job.ok:
            click.secho("No jobs found.", fg="bright_black")
        else:
            click.secho(f"❌ {job.error or 'Job processing failed'}", fg="red")

    watcher = JobWatcher(config, interval=seconds, on_run=report)
    if not watcher.container_running():
        click.secho("⚠️  WordPress container is not running.", fg="yellow")
        click.echo("   Run 'wpenv start' first, then try again.")
        return

    click.secho("🔍 Watching for site-manager jobs...", fg="cyan")
    click.echo(f"   Interval: {seconds}s")
    click.echo(f"   Project:  {config.project_name}")
    click.echo("\nPress Ctrl+C to stop\n")

    try:
        watcher.run()
    except KeyboardInterrupt:
        watcher.stop()
        click.secho("\n👋 Stopped job watcher", fg="cyan")
