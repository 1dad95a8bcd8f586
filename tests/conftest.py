"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

import subprocess
import textwrap
from pathlib import Path

import pytest

from wpenv.adapters.vault import MemoryStore

REQUIRED_CREDENTIALS = {
    "WORDPRESS_DB_PASSWORD": "db-pass",
    "DB_ROOT_PASSWORD": "root-pass",
    "S3_UPLOADS_ACCESS_KEY_ID": "AKIAEXAMPLE",
    "S3_UPLOADS_SECRET_ACCESS_KEY": "s3-secret-value",
    "SP_ENTITY_ID": "https://sp.example.edu",
    "IDP_ENTITY_ID": "https://idp.example.edu",
}


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """An empty project directory with a stable name."""
    path = tmp_path / "my-plugin"
    path.mkdir()
    return path


@pytest.fixture
def write_config(project_dir: Path):
    """Write a .wpenv.yml (dedented) into the project directory."""

    def _write(content: str) -> Path:
        path = project_dir / ".wpenv.yml"
        path.write_text(textwrap.dedent(content), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def memory_store() -> MemoryStore:
    """A credential store seeded with every required credential."""
    return MemoryStore(dict(REQUIRED_CREDENTIALS))


class ComposeRecorder:
    """Stand-in for docker runners: records argv and returns canned results."""

    def __init__(self):
        self.calls: list[list[str]] = []
        self.returncodes: dict[str, int] = {}
        self.stdout: dict[str, str] = {}
        self.stderr: dict[str, str] = {}
        self.env_files: list[tuple[Path, str, int]] = []

    def _subcommand(self, args: tuple[str, ...]) -> str:
        # First positional after the -p/--env-file/-f options
        skip = False
        for arg in args:
            if skip:
                skip = False
                continue
            if arg in ("-p", "--env-file", "-f"):
                skip = True
                continue
            return arg
        return ""

    def __call__(self, *args: str, **kwargs) -> subprocess.CompletedProcess[str]:
        self.calls.append(list(args))
        if "--env-file" in args:
            env_path = Path(args[args.index("--env-file") + 1])
            self.env_files.append(
                (env_path, env_path.read_text(), env_path.stat().st_mode & 0o777)
            )
        sub = self._subcommand(args)
        return subprocess.CompletedProcess(
            list(args),
            self.returncodes.get(sub, 0),
            stdout=self.stdout.get(sub, ""),
            stderr=self.stderr.get(sub, ""),
        )

    def subcommands(self) -> list[str]:
        return [self._subcommand(tuple(c)) for c in self.calls]


@pytest.fixture
def compose(monkeypatch: pytest.MonkeyPatch) -> ComposeRecorder:
    """Patch docker invocation in the environment use cases."""
    recorder = ComposeRecorder()
    docker_calls: list[list[str]] = []

    def fake_docker(*args: str, **kwargs) -> subprocess.CompletedProcess[str]:
        docker_calls.append(list(args))
        return subprocess.CompletedProcess(
            list(args), recorder.returncodes.get("volume", 0), stdout="", stderr=""
        )

    recorder.docker_calls = docker_calls  # type: ignore[attr-defined]
    monkeypatch.setattr("wpenv.core.use_cases.environment.run_compose", recorder)
    monkeypatch.setattr("wpenv.core.use_cases.environment.run_docker", fake_docker)
    monkeypatch.setattr("wpenv.core.use_cases.environment.require_docker", lambda: None)
    return recorder
