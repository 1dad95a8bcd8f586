"""Docker shared helpers — low-level command runners.

Every docker call goes through ``run_docker`` or ``run_compose``, which
invoke the CLI from an argument list (never a shell).  Captured runs
return the ``CompletedProcess``; passthrough runs (``capture=False``)
let docker compose write progress straight to the terminal.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from wpenv.core.errors import OrchestratorError
from wpenv.core.models.project import ResolvedConfig

logger = logging.getLogger(__name__)


# ── Runners ────────────────────────────────────────────────────────


def run_docker(
    *args: str,
    cwd: Path | None = None,
    timeout: int | None = 60,
    capture: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Run a docker command and return the result.

    Raises:
        OrchestratorError: The docker CLI is missing or timed out.
    """
    cmd = ["docker", *args]
    logger.debug("Running: %s", " ".join(cmd))
    try:
        return subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            capture_output=capture,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise OrchestratorError("docker CLI not found on PATH") from e
    except subprocess.TimeoutExpired as e:
        raise OrchestratorError(f"docker {args[0]} timed out after {timeout}s") from e


def run_compose(
    *args: str,
    cwd: Path | None = None,
    timeout: int | None = 600,
    capture: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Run a docker compose command and return the result."""
    return run_docker("compose", *args, cwd=cwd, timeout=timeout, capture=capture)


# ── Helpers ────────────────────────────────────────────────────────


def docker_running(timeout: int = 15) -> bool:
    """True if the docker daemon answers ``docker info``."""
    try:
        result = run_docker("info", timeout=timeout)
    except OrchestratorError as e:
        logger.debug("docker info failed: %s", e)
        return False
    return result.returncode == 0


def require_docker() -> None:
    """Raise OrchestratorError unless the docker daemon is reachable."""
    if not docker_running():
        raise OrchestratorError(
            "Docker is not running. Please start Docker Desktop and try again."
        )


def compose_base_args(
    config: ResolvedConfig,
    compose_path: Path | None = None,
    env_file: Path | None = None,
) -> list[str]:
    """Leading ``docker compose`` arguments for a project.

    The compose project name is always the sanitized identity.
    """
    args = ["-p", config.project_name]
    if env_file is not None:
        args += ["--env-file", str(env_file)]
    args += ["-f", str(compose_path or config.compose_path)]
    return args


def check_result(
    result: subprocess.CompletedProcess[str],
    action: str,
) -> subprocess.CompletedProcess[str]:
    """Raise OrchestratorError if a compose call exited non-zero."""
    if result.returncode != 0:
        detail = (result.stderr or "").strip()
        message = f"Failed to {action} (exit {result.returncode})"
        if detail:
            message += f": {detail}"
        raise OrchestratorError(message)
    return result
