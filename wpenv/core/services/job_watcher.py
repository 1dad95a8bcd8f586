"""
Job watcher — periodically run site-manager job processing.

Mirrors the production scheduler for local development: every
*interval* seconds, ``wp site-manager process-jobs`` runs inside the
WordPress container.  The loop is single-threaded and cooperative; the
next poll is armed only after the previous call has returned, and
``stop()`` wakes the wait so the loop exits promptly.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from wpenv.core.errors import ConfigError, OrchestratorError
from wpenv.core.models.project import ResolvedConfig
from wpenv.core.services.compose_generate import APP_SERVICE
from wpenv.core.services.docker_common import compose_base_args, run_compose

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 60
MIN_INTERVAL = 10

JOB_COMMAND = ("wp", "site-manager", "process-jobs")


def resolve_interval(cli_interval: int | None, config_interval: int | None) -> int:
    """Pick the poll interval: CLI option, then config, then default.

    Raises:
        ConfigError: The CLI interval is below the minimum.
    """
    if cli_interval is not None:
        if cli_interval < MIN_INTERVAL:
            raise ConfigError(f"Invalid interval. Minimum is {MIN_INTERVAL} seconds.")
        return cli_interval
    if config_interval:
        if config_interval < MIN_INTERVAL:
            logger.warning(
                "Config interval too low (%ss). Using minimum: %ss",
                config_interval, MIN_INTERVAL,
            )
            return MIN_INTERVAL
        return config_interval
    return DEFAULT_INTERVAL


@dataclass
class JobRun:
    """Outcome of one job-processing call."""

    ok: bool
    output: str = ""
    error: str = ""

    @property
    def processed(self) -> bool:
        """True if the call ran and reported any jobs."""
        return self.ok and bool(self.output)


class JobWatcher:
    """Poll loop that processes site-manager jobs for one project."""

    def __init__(
        self,
        config: ResolvedConfig,
        interval: int = DEFAULT_INTERVAL,
        on_run: Callable[[JobRun], None] | None = None,
        timeout: int = 300,
    ):
        self.config = config
        self.interval = interval
        self.on_run = on_run
        self.timeout = timeout
        self._stop = threading.Event()
        self.iterations = 0

    def container_running(self) -> bool:
        """True if the WordPress service is in the running state."""
        try:
            result = run_compose(
                *compose_base_args(self.config),
                "ps", "--status", "running", "--services",
                cwd=self.config.state_dir,
                timeout=30,
            )
        except OrchestratorError as e:
            logger.debug("Status check failed: %s", e)
            return False
        return result.returncode == 0 and APP_SERVICE in result.stdout.split()

    def run_once(self) -> JobRun:
        """Process pending jobs once."""
        try:
            result = run_compose(
                *compose_base_args(self.config),
                "exec", "-T", APP_SERVICE, *JOB_COMMAND,
                cwd=self.config.state_dir,
                timeout=self.timeout,
            )
        except OrchestratorError as e:
            return JobRun(ok=False, error=str(e))

        if result.returncode != 0:
            error = (result.stderr or "").strip()
            if "container" in error or "not running" in error:
                logger.warning("Container not running, waiting")
            else:
                logger.error("Job processing failed: %s", error)
            return JobRun(ok=False, error=error)

        output = (result.stdout or "").strip()
        if output:
            logger.info("Processed jobs for '%s'", self.config.project_name)
        else:
            logger.debug("No jobs found")
        return JobRun(ok=True, output=output)

    def run(self, max_iterations: int | None = None) -> None:
        """Loop until ``stop()`` is called (or *max_iterations* is reached)."""
        logger.info(
            "Watching jobs for '%s' every %ss",
            self.config.project_name, self.interval,
        )
        while not self._stop.is_set():
            job = self.run_once()
            self.iterations += 1
            if self.on_run is not None:
                self.on_run(job)
            if max_iterations is not None and self.iterations >= max_iterations:
                break
            if self._stop.wait(self.interval):
                break
        logger.info("Job watcher stopped after %d run(s)", self.iterations)

    def stop(self) -> None:
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()


__all__ = [
    "DEFAULT_INTERVAL",
    "JOB_COMMAND",
    "MIN_INTERVAL",
    "JobRun",
    "JobWatcher",
    "resolve_interval",
]
