"""
Tests for the environment use cases — docker compose is patched out.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from wpenv.adapters.vault import MemoryStore
from wpenv.core.errors import (
    ConfigValidationError,
    MissingCredentialError,
    OrchestratorError,
)
from wpenv.core.use_cases.environment import (
    compose_exec_args,
    destroy_environment,
    runtime_overrides,
    start_environment,
    stop_environment,
    update_environment,
)


class TestRuntimeOverrides:
    """Tests for runtime flag overrides."""

    def test_none(self):
        """No flags give no overrides."""
        assert runtime_overrides() == {}

    def test_all_flags(self):
        """Flags map to env and service overrides."""
        assert runtime_overrides(xdebug=True, proxy=False, cache=False) == {
            "env": {"XDEBUG": True},
            "services": {"proxy": False, "cache": False},
        }


class TestStartEnvironment:
    """Tests for starting an environment."""

    def test_happy_path(self, project_dir: Path, memory_store: MemoryStore, compose):
        """start writes the descriptor and runs compose up."""
        result = start_environment(project_dir, memory_store)

        assert result.project_name == "my-plugin"
        assert result.compose_path.is_file()
        assert result.services == ["db", "wordpress", "redis", "s3proxy", "shibboleth"]
        assert result.credential_count == 6

        (call,) = compose.calls
        assert call[:2] == ["-p", "my-plugin"]
        assert call[-2:] == ["up", "-d"]
        assert call[call.index("-f") + 1] == str(result.compose_path)

    def test_credentials_reach_compose_only_via_env_file(
        self, project_dir: Path, memory_store: MemoryStore, compose,
    ):
        """Credentials travel only through the staged env file."""
        result = start_environment(project_dir, memory_store)

        (env_path, content, mode) = compose.env_files[0]
        assert mode == 0o600
        assert env_path.parent == result.compose_path.parent
        assert 'DB_ROOT_PASSWORD="root-pass"' in content
        assert not env_path.exists()
        assert "root-pass" not in result.compose_path.read_text()
        assert all("root-pass" not in arg for arg in compose.calls[0])

    def test_env_file_removed_when_compose_fails(
        self, project_dir: Path, memory_store: MemoryStore, compose,
    ):
        """The env file is purged when compose fails."""
        compose.returncodes["up"] = 1
        compose.stderr["up"] = "port is already allocated"

        with pytest.raises(OrchestratorError, match="port is already allocated"):
            start_environment(project_dir, memory_store)

        env_path = compose.env_files[0][0]
        assert not env_path.exists()
        leftovers = [p.name for p in env_path.parent.iterdir()]
        assert leftovers == ["docker-compose.yml"]

    def test_overlay_credentials_used(self, project_dir: Path, compose):
        """Overlay credentials satisfy the required set."""
        (project_dir / ".env.local").write_text(
            "WORDPRESS_DB_PASSWORD=a\nDB_ROOT_PASSWORD=b\n"
        )
        store = MemoryStore()
        overrides = runtime_overrides(proxy=False)
        overrides["services"]["federatedAuth"] = False

        result = start_environment(project_dir, store, overrides=overrides)
        assert result.services == ["db", "wordpress", "redis"]
        assert 'DB_ROOT_PASSWORD="b"' in compose.env_files[0][1]

    def test_missing_credentials(self, project_dir: Path, compose):
        """Missing credentials stop start before compose runs."""
        with pytest.raises(MissingCredentialError) as exc_info:
            start_environment(project_dir, MemoryStore({"WORDPRESS_DB_PASSWORD": "x"}))
        assert "DB_ROOT_PASSWORD" in exc_info.value.missing
        assert compose.calls == []

    def test_invalid_config_writes_nothing(self, project_dir: Path, write_config, memory_store, compose):
        """Invalid config writes no descriptor."""
        write_config("""\
            ports:
              http: 99999
        """)
        with pytest.raises(ConfigValidationError) as exc_info:
            start_environment(project_dir, memory_store)
        assert exc_info.value.errors == ["Invalid port for http: 99999"]
        assert not (project_dir / ".wpenv" / "docker-compose.yml").exists()
        assert compose.calls == []

    def test_docker_not_running(self, project_dir: Path, memory_store, monkeypatch: pytest.MonkeyPatch):
        """A stopped docker daemon is reported."""
        monkeypatch.setattr(
            "wpenv.core.services.docker_common.docker_running", lambda timeout=15: False,
        )
        with pytest.raises(OrchestratorError, match="Docker is not running"):
            start_environment(project_dir, memory_store)


class TestStopAndDestroy:
    """Tests for stop and destroy."""

    def test_stop_without_environment(self, project_dir: Path, compose):
        """stop without a descriptor does nothing."""
        result = stop_environment(project_dir)
        assert result.found is False
        assert compose.calls == []

    def test_stop(self, project_dir: Path, memory_store, compose):
        """stop runs compose stop without credentials."""
        start_environment(project_dir, memory_store)
        result = stop_environment(project_dir)
        assert result.found is True
        assert compose.calls[-1][-1] == "stop"
        assert "--env-file" not in compose.calls[-1]

    def test_destroy_removes_volumes(self, project_dir: Path, memory_store, compose):
        """destroy runs compose down -v."""
        start_environment(project_dir, memory_store)
        destroy_environment(project_dir)
        assert compose.calls[-1][-2:] == ["down", "-v"]


class TestUpdateEnvironment:
    """Tests for updating an environment."""

    def test_default_refreshes_build_volume(self, project_dir: Path, memory_store, compose):
        """Default update pulls wordpress and drops the build volume."""
        start_environment(project_dir, memory_store)
        compose.calls.clear()

        result = update_environment(project_dir, memory_store)

        assert compose.subcommands() == ["pull", "down", "up"]
        assert compose.calls[0][-1] == "wordpress"
        assert "-v" not in compose.calls[1]
        assert compose.docker_calls == [["volume", "rm", "my-plugin_build"]]
        assert result.build_volume_removed is True

    def test_pull_all_and_preserve(self, project_dir: Path, memory_store, compose):
        """pull_all pulls every image; preserve_build keeps the volume."""
        start_environment(project_dir, memory_store)
        compose.calls.clear()

        result = update_environment(project_dir, memory_store, pull_all=True, preserve_build=True)

        assert compose.calls[0][-1] == "pull"
        assert compose.docker_calls == []
        assert result.build_volume_removed is False

    def test_missing_build_volume_is_a_warning(self, project_dir: Path, memory_store, compose):
        """A failed volume removal becomes a warning."""
        start_environment(project_dir, memory_store)
        compose.returncodes["volume"] = 1

        result = update_environment(project_dir, memory_store)
        assert result.build_volume_removed is False
        assert result.warnings


class TestComposeExecArgs:
    """Tests for exec argument building."""

    def test_non_interactive(self, project_dir: Path):
        """Non-TTY exec passes -T."""
        from wpenv.core.config.loader import resolve

        args = compose_exec_args(resolve(project_dir), "wp", "plugin", "list", tty=False)
        assert args[-6:] == ["exec", "-T", "wordpress", "wp", "plugin", "list"]
