"""
Tests for the site-manager job watcher.
"""

from __future__ import annotations

import subprocess
import threading
from pathlib import Path

import pytest

from wpenv.core.config.loader import resolve
from wpenv.core.errors import ConfigError
from wpenv.core.services.job_watcher import (
    DEFAULT_INTERVAL,
    MIN_INTERVAL,
    JobRun,
    JobWatcher,
    resolve_interval,
)


class TestResolveInterval:
    """Tests for interval precedence and limits."""

    def test_default(self):
        """No values give the default interval."""
        assert resolve_interval(None, None) == DEFAULT_INTERVAL

    def test_cli_beats_config(self):
        """The CLI value wins over config."""
        assert resolve_interval(30, 120) == 30

    def test_config_used(self):
        """Config is used when no CLI value is given."""
        assert resolve_interval(None, 120) == 120

    def test_config_clamped_to_minimum(self):
        """A config value below the minimum is clamped."""
        assert resolve_interval(None, 3) == MIN_INTERVAL

    def test_cli_below_minimum_rejected(self):
        """A CLI value below the minimum is rejected."""
        with pytest.raises(ConfigError, match="Minimum is 10"):
            resolve_interval(5, None)


@pytest.fixture
def fake_compose(monkeypatch: pytest.MonkeyPatch):
    calls: list[list[str]] = []
    responses: list[subprocess.CompletedProcess[str]] = []

    def run(*args, **kwargs):
        calls.append(list(args))
        if responses:
            return responses.pop(0)
        return subprocess.CompletedProcess(list(args), 0, stdout="", stderr="")

    monkeypatch.setattr("wpenv.core.services.job_watcher.run_compose", run)
    return calls, responses


class TestJobWatcher:
    """Tests for the job watcher loop."""

    def test_run_once_command(self, project_dir: Path, fake_compose):
        """run_once execs the process-jobs command in wordpress."""
        calls, responses = fake_compose
        responses.append(subprocess.CompletedProcess([], 0, stdout="Processed 2 jobs\n", stderr=""))

        job = JobWatcher(resolve(project_dir)).run_once()

        assert job == JobRun(ok=True, output="Processed 2 jobs")
        assert job.processed
        assert calls[0][:2] == ["-p", "my-plugin"]
        assert calls[0][-6:] == ["exec", "-T", "wordpress", "wp", "site-manager", "process-jobs"]

    def test_run_once_no_jobs(self, project_dir: Path, fake_compose):
        """Empty output means nothing was processed."""
        job = JobWatcher(resolve(project_dir)).run_once()
        assert job.ok and not job.processed

    def test_run_once_failure(self, project_dir: Path, fake_compose):
        """A failing exec is reported, not raised."""
        _, responses = fake_compose
        responses.append(subprocess.CompletedProcess([], 1, stdout="", stderr="service not running"))
        job = JobWatcher(resolve(project_dir)).run_once()
        assert job.ok is False
        assert "not running" in job.error

    def test_container_running(self, project_dir: Path, fake_compose):
        """Running check looks for the wordpress service."""
        calls, responses = fake_compose
        responses.append(subprocess.CompletedProcess([], 0, stdout="db\nwordpress\n", stderr=""))
        assert JobWatcher(resolve(project_dir)).container_running() is True
        assert calls[0][-4:] == ["ps", "--status", "running", "--services"]

    def test_container_not_running(self, project_dir: Path, fake_compose):
        """A missing wordpress service means not running."""
        _, responses = fake_compose
        responses.append(subprocess.CompletedProcess([], 0, stdout="db\n", stderr=""))
        assert JobWatcher(resolve(project_dir)).container_running() is False

    def test_max_iterations(self, project_dir: Path, fake_compose):
        """The loop stops after max_iterations runs."""
        calls, _ = fake_compose
        runs: list[JobRun] = []
        watcher = JobWatcher(resolve(project_dir), interval=0, on_run=runs.append)
        watcher.run(max_iterations=3)
        assert len(calls) == 3
        assert len(runs) == 3

    def test_stop_wakes_the_wait(self, project_dir: Path, fake_compose):
        """stop() interrupts a long wait."""
        watcher = JobWatcher(resolve(project_dir), interval=3600)
        thread = threading.Thread(target=watcher.run)
        thread.start()
        watcher.stop()
        thread.join(timeout=5)
        assert not thread.is_alive()
        assert watcher.stopped
        assert watcher.iterations <= 1
