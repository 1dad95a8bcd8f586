"""
Environment use cases — start, stop, destroy and update a project.

Each use case resolves the project configuration fresh, talks to
``docker compose`` through the shared runners and returns an
``EnvironmentResult``.  Errors from the taxonomy propagate to the
caller; credentials only ever reach compose through a staged env file
that is purged when the call returns.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from wpenv.adapters.vault.base import CredentialStore
from wpenv.core.config.loader import resolve
from wpenv.core.models.project import ResolvedConfig
from wpenv.core.services.compose_generate import (
    APP_SERVICE,
    compile_topology,
    volume_names,
    write_compose_file,
)
from wpenv.core.services.credential_channel import staged_credentials
from wpenv.core.services.credentials import check_required, collect_credentials
from wpenv.core.services.docker_common import (
    check_result,
    compose_base_args,
    require_docker,
    run_compose,
    run_docker,
)

logger = logging.getLogger(__name__)


@dataclass
class EnvironmentResult:
    """Outcome of an environment operation."""

    action: str
    project_name: str
    found: bool = True
    hostname: str | None = None
    compose_path: Path | None = None
    services: list[str] = field(default_factory=list)
    credential_count: int = 0
    build_volume_removed: bool = False
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "project_name": self.project_name,
            "found": self.found,
            "hostname": self.hostname,
            "compose_path": str(self.compose_path) if self.compose_path else None,
            "services": self.services,
            "credential_count": self.credential_count,
            "build_volume_removed": self.build_volume_removed,
            "warnings": self.warnings,
        }


def runtime_overrides(
    *,
    xdebug: bool = False,
    proxy: bool = True,
    cache: bool = True,
) -> dict[str, Any]:
    """Translate start flags into a runtime configuration layer."""
    overrides: dict[str, Any] = {}
    if xdebug:
        overrides["env"] = {"XDEBUG": True}
    services: dict[str, bool] = {}
    if not proxy:
        services["proxy"] = False
    if not cache:
        services["cache"] = False
    if services:
        overrides["services"] = services
    return overrides


# ── Helpers ─────────────────────────────────────────────────────


def _up(
    config: ResolvedConfig,
    store: CredentialStore,
    *,
    passthrough: bool,
) -> int:
    """Collect credentials, stage them and run ``up -d``.  Returns the count."""
    credentials = collect_credentials(config, store)
    check_required(config, credentials)

    with staged_credentials(credentials, config.state_dir) as env_file:
        result = run_compose(
            *compose_base_args(config, env_file=env_file),
            "up", "-d",
            cwd=config.state_dir,
            capture=not passthrough,
        )
    check_result(result, "start containers")
    return len(credentials)


def _existing(project_path: Path | None, action: str) -> tuple[ResolvedConfig, EnvironmentResult]:
    config = resolve(project_path)
    result = EnvironmentResult(
        action=action,
        project_name=config.project_name,
        hostname=config.hostname,
        compose_path=config.compose_path,
    )
    if not config.compose_path.is_file():
        logger.info("No environment found for '%s'", config.project_name)
        result.found = False
    return config, result


# ── Use cases ───────────────────────────────────────────────────


def start_environment(
    project_path: Path | None,
    store: CredentialStore,
    *,
    overrides: dict[str, Any] | None = None,
    hint: str | None = None,
    passthrough: bool = False,
) -> EnvironmentResult:
    """Generate the compose descriptor and bring the environment up.

    Raises:
        ConfigValidationError: Configuration is invalid; nothing written.
        OrchestratorError: Docker is not running or ``up`` failed.
        MissingCredentialError: Required credentials are absent.
    """
    config = resolve(project_path, hint=hint, overrides=overrides)
    compose_path = write_compose_file(config)
    require_docker()

    count = _up(config, store, passthrough=passthrough)
    services = list(compile_topology(config).services)
    logger.info("Started '%s' (%s)", config.project_name, ", ".join(services))

    return EnvironmentResult(
        action="start",
        project_name=config.project_name,
        hostname=config.hostname,
        compose_path=compose_path,
        services=services,
        credential_count=count,
    )


def stop_environment(project_path: Path | None, *, passthrough: bool = False) -> EnvironmentResult:
    """Stop containers, keeping them and their volumes."""
    config, result = _existing(project_path, "stop")
    if not result.found:
        return result

    require_docker()
    proc = run_compose(
        *compose_base_args(config), "stop",
        cwd=config.state_dir, capture=not passthrough,
    )
    check_result(proc, "stop containers")
    logger.info("Stopped '%s'", config.project_name)
    return result


def destroy_environment(project_path: Path | None, *, passthrough: bool = False) -> EnvironmentResult:
    """Remove containers, network and named volumes (``down -v``)."""
    config, result = _existing(project_path, "destroy")
    if not result.found:
        return result

    require_docker()
    proc = run_compose(
        *compose_base_args(config), "down", "-v",
        cwd=config.state_dir, capture=not passthrough,
    )
    check_result(proc, "destroy environment")
    logger.info("Destroyed '%s' including volumes", config.project_name)
    return result


def update_environment(
    project_path: Path | None,
    store: CredentialStore,
    *,
    pull_all: bool = False,
    preserve_build: bool = False,
    passthrough: bool = False,
) -> EnvironmentResult:
    """Pull fresh images and recreate the containers.

    The database volume is always kept.  The build volume is removed
    so WordPress core comes fresh from the new image, unless
    *preserve_build* is set.
    """
    config, result = _existing(project_path, "update")
    if not result.found:
        return result

    write_compose_file(config)
    require_docker()
    base = compose_base_args(config)

    pull_args = ["pull"] if pull_all else ["pull", APP_SERVICE]
    proc = run_compose(*base, *pull_args, cwd=config.state_dir, capture=not passthrough)
    check_result(proc, "pull images")

    proc = run_compose(*base, "down", cwd=config.state_dir, capture=not passthrough)
    check_result(proc, "stop containers")

    if not preserve_build:
        _, build_volume = volume_names(config.project_name)
        removed = run_docker("volume", "rm", build_volume)
        if removed.returncode == 0:
            result.build_volume_removed = True
            logger.info("Removed volume %s", build_volume)
        else:
            result.warnings.append(
                f"Volume {build_volume} not found (will be created fresh)"
            )

    result.credential_count = _up(config, store, passthrough=passthrough)
    result.services = list(compile_topology(config).services)
    return result


def compose_exec_args(config: ResolvedConfig, *command: str, tty: bool = True) -> list[str]:
    """Arguments for ``docker compose exec`` in the WordPress container."""
    args = [*compose_base_args(config), "exec"]
    if not tty:
        args.append("-T")
    return [*args, APP_SERVICE, *command]


def run_in_wordpress(
    project_path: Path | None,
    *command: str,
    tty: bool = True,
) -> int:
    """Run a command interactively in the WordPress container.

    Returns the command's exit code, or -1 when there is no environment.
    """
    config, result = _existing(project_path, "exec")
    if not result.found:
        return -1
    require_docker()
    proc = run_compose(
        *compose_exec_args(config, *command, tty=tty),
        cwd=config.state_dir,
        timeout=None,
        capture=False,
    )
    return proc.returncode


def show_logs(
    project_path: Path | None,
    *,
    follow: bool = False,
    service: str | None = None,
) -> int:
    """Stream container logs to the terminal; returns the exit code."""
    config, result = _existing(project_path, "logs")
    if not result.found:
        return -1
    require_docker()
    args = [*compose_base_args(config), "logs"]
    if follow:
        args.append("-f")
    if service:
        args.append(service)
    proc = run_compose(*args, cwd=config.state_dir, timeout=None, capture=False)
    return proc.returncode
