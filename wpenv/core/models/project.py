"""
Project model — the resolved description of one local environment.

Loaded from .wpenv.yml and layered over built-in defaults, this is the
single record every downstream step (validation, compose compilation,
credential staging) reads from.

Field names are snake_case in Python; the descriptor file uses the
camelCase aliases (``projectName``, ``federatedAuth``, ...).  Both forms
are accepted on input.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_IMAGE = "ghcr.io/bu-ist/bu-wp-docker-mod_shib:arm64-latest"
DEFAULT_HOSTNAME = "wordpress.local"

# Well-known file names, relative to the project directory
CONFIG_FILE_NAME = ".wpenv.yml"
ENV_FILE_NAME = ".env.local"
STATE_DIR_NAME = ".wpenv"
COMPOSE_FILE_NAME = "docker-compose.yml"


def _default_ports() -> dict[str, Any]:
    return {"http": 80, "https": 443, "db": 3306, "cache": 6379}


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ServiceToggles(_CamelModel):
    """Optional companion services, each enabled by default."""

    cache: bool = True
    proxy: bool = True
    federated_auth: bool = Field(default=True, alias="federatedAuth")


class VolumeMapping(_CamelModel):
    """A bind mount from the project tree into the WordPress container.

    Both sides are optional at parse time so the validator can report
    a half-filled mapping instead of the parser rejecting the file.
    """

    local: str | None = None
    container: str | None = None
    comment: str | None = None


class ProjectConfig(_CamelModel):
    """Fully merged project configuration."""

    project_name: str | None = Field(default=None, alias="projectName")
    image: str | None = DEFAULT_IMAGE
    hostname: str | None = DEFAULT_HOSTNAME
    multisite: bool = True
    services: ServiceToggles = Field(default_factory=ServiceToggles)
    ports: dict[str, Any] = Field(default_factory=_default_ports)
    mappings: list[VolumeMapping] = Field(default_factory=list)
    env: dict[str, Any] = Field(default_factory=dict)
    credentials: dict[str, str] = Field(default_factory=dict, repr=False)
    job_watch_interval: int | None = Field(default=None, alias="jobWatchInterval")


class _PartialToggles(_CamelModel):
    cache: bool | None = None
    proxy: bool | None = None
    federated_auth: bool | None = Field(default=None, alias="federatedAuth")


class ConfigLayer(_CamelModel):
    """One partial configuration source (file, overlay, runtime options).

    Every field is optional; ``model_dump(exclude_unset=True)`` yields
    only what the source actually set, which is what the merge consumes.
    """

    project_name: str | None = Field(default=None, alias="projectName")
    image: str | None = None
    hostname: str | None = None
    multisite: bool | None = None
    services: _PartialToggles | None = None
    ports: dict[str, Any] | None = None
    mappings: list[VolumeMapping] | None = None
    env: dict[str, Any] | None = None
    credentials: dict[str, str] | None = None
    job_watch_interval: int | None = Field(default=None, alias="jobWatchInterval")


class ResolvedConfig(ProjectConfig):
    """A ProjectConfig bound to a project directory with a final identity."""

    project_name: str = Field(alias="projectName")
    project_root: Path
    config_file: Path | None = None

    @property
    def state_dir(self) -> Path:
        """Per-project directory holding generated artifacts."""
        return self.project_root / STATE_DIR_NAME

    @property
    def compose_path(self) -> Path:
        """Well-known location of the generated compose descriptor."""
        return self.state_dir / COMPOSE_FILE_NAME

    def resolve_local(self, local: str) -> Path:
        """Resolve a mapping's local side against the project root."""
        path = Path(local).expanduser()
        if not path.is_absolute():
            path = self.project_root / path
        return path.resolve()
