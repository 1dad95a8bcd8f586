"""
Configuration loader — resolves .wpenv.yml into a ResolvedConfig.

This is the primary entry point for loading project configuration.
Sources are layered, lowest precedence first:

    built-in defaults  <  .wpenv.yml  <  .env.local overlay  <  runtime options

Each source is parsed into a typed ``ConfigLayer`` and only the keys it
actually sets are merged.  The project identity is derived (when no
layer names one) and always sanitized.  Validation is a separate step
that runs on the fully merged record.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from wpenv.core.config.env_file import read_env_file
from wpenv.core.errors import (
    ConfigError,
    ConfigIOError,
    ConfigParseError,
    ConfigValidationError,
)
from wpenv.core.models.project import (
    CONFIG_FILE_NAME,
    COMPOSE_FILE_NAME,
    ENV_FILE_NAME,
    STATE_DIR_NAME,
    ConfigLayer,
    ProjectConfig,
    ResolvedConfig,
)

logger = logging.getLogger(__name__)

__all__ = [
    "COMPOSE_FILE_NAME",
    "CONFIG_FILE_NAME",
    "ENV_FILE_NAME",
    "PROJECT_KINDS",
    "STATE_DIR_NAME",
    "ConfigError",
    "deep_merge",
    "find_project_dir",
    "init_config",
    "mask_config",
    "require_valid",
    "resolve",
    "sanitize_project_name",
    "scaffold_config",
    "validate_config",
]

# Project kind → wp-content subdirectory for the scaffolded mapping
PROJECT_KINDS = {
    "plugin": "plugins",
    "mu-plugin": "mu-plugins",
    "theme": "themes",
}

_INVALID_NAME_CHARS = re.compile(r"[^a-z0-9_-]")
_EDGE_DASHES = re.compile(r"^-+|-+$")

MASK = "***MASKED***"


# ── Identity ────────────────────────────────────────────────────


def sanitize_project_name(name: str) -> str:
    """Normalize a project name into a docker-safe identity.

    Lowercase, every character outside ``[a-z0-9_-]`` becomes ``-``,
    leading and trailing dashes are stripped.

    >>> sanitize_project_name("My Custom Plugin")
    'my-custom-plugin'
    >>> sanitize_project_name("@Company/Plugin")
    'company-plugin'
    """
    lowered = name.lower()
    replaced = _INVALID_NAME_CHARS.sub("-", lowered)
    return _EDGE_DASHES.sub("", replaced)


def project_name_from_path(project_path: Path) -> str:
    """Final path segment of the project directory."""
    return Path(project_path).resolve().name


# ── Merge ───────────────────────────────────────────────────────


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge *override* onto *base*, returning a new dict.

    Mappings merge key by key; any other override value (scalars and
    lists alike) replaces the base value wholesale.
    """
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _layer_data(layer: ConfigLayer) -> dict[str, Any]:
    return layer.model_dump(exclude_unset=True)


# ── Sources ─────────────────────────────────────────────────────


def find_project_dir(start_dir: Path | None = None) -> Path | None:
    """Search for .wpenv.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        The directory containing .wpenv.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        if (current / CONFIG_FILE_NAME).is_file():
            return current
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_file_layer(config_path: Path) -> ConfigLayer | None:
    """Parse the descriptor file into a layer, or None if it is absent.

    Raises:
        ConfigIOError: The file exists but cannot be read.
        ConfigParseError: The file is not a well-formed descriptor.
    """
    if not config_path.exists():
        return None

    logger.debug("Loading project config from %s", config_path)

    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigIOError(f"Cannot read {config_path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        location = ""
        mark = getattr(e, "problem_mark", None)
        if mark is not None:
            location = f" (line {mark.line + 1}, column {mark.column + 1})"
        raise ConfigParseError(f"Invalid YAML in {config_path}{location}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigParseError(
            f"Expected a mapping in {config_path}, got {type(data).__name__}"
        )

    try:
        return ConfigLayer.model_validate(data)
    except ValidationError as e:
        raise ConfigParseError(f"Invalid project configuration in {config_path}: {e}") from e


def load_overlay_layer(env_path: Path) -> ConfigLayer | None:
    """Turn the .env.local overlay into a credentials-only layer."""
    values = read_env_file(env_path)
    if not values:
        return None
    return ConfigLayer(credentials=values)


def scaffold_config(project_path: Path, kind: str | None = None) -> dict[str, Any]:
    """Build the starter descriptor for a project directory.

    Args:
        project_path: The project directory.
        kind: ``plugin``, ``mu-plugin``, ``theme`` or None for a
            generic placeholder mapping.

    Returns:
        A plain dict in descriptor (camelCase) form.
    """
    name = sanitize_project_name(project_name_from_path(project_path))
    defaults = ProjectConfig().model_dump(by_alias=True, exclude={"credentials"})

    if kind is not None and kind not in PROJECT_KINDS:
        raise ConfigError(
            f"Unknown project kind '{kind}'. Valid: {', '.join(PROJECT_KINDS)}"
        )

    if kind:
        mapping = {
            "local": "./",
            "container": f"/var/www/html/wp-content/{PROJECT_KINDS[kind]}/{name}",
        }
    else:
        mapping = {
            "local": "./",
            "container": "/var/www/html/wp-content/plugins/my-plugin",
            "comment": "Map current directory to a plugin location",
        }

    scaffold = dict(defaults)
    scaffold.pop("jobWatchInterval", None)
    scaffold["projectName"] = name
    scaffold["hostname"] = f"{name}.local"
    scaffold["mappings"] = [mapping]
    scaffold["env"] = {"WP_DEBUG": True, "XDEBUG": False}
    return scaffold


def init_config(project_path: Path, kind: str | None = None, *, force: bool = False) -> Path:
    """Write a starter .wpenv.yml into *project_path*.

    Raises:
        ConfigError: If the file already exists and *force* is not set.
    """
    config_path = Path(project_path) / CONFIG_FILE_NAME
    if config_path.exists() and not force:
        raise ConfigError(f"Configuration file already exists: {config_path}")

    scaffold = scaffold_config(project_path, kind)
    content = yaml.safe_dump(scaffold, sort_keys=False, default_flow_style=False)
    config_path.write_text(content, encoding="utf-8")
    logger.info("Created %s for project '%s'", config_path, scaffold["projectName"])
    return config_path


# ── Resolve ─────────────────────────────────────────────────────


def resolve(
    project_path: Path | None = None,
    *,
    hint: str | None = None,
    overrides: dict[str, Any] | None = None,
) -> ResolvedConfig:
    """Load, merge and identify the configuration for a project.

    Args:
        project_path: Project directory (default: cwd).
        hint: Project kind used to scaffold the file layer when no
            descriptor file exists (``plugin``, ``mu-plugin``, ``theme``).
        overrides: Runtime options, highest precedence (descriptor form).

    Returns:
        The merged, identified configuration.  Not yet validated.

    Raises:
        ConfigParseError: The descriptor file is malformed.
        ConfigIOError: A configuration file is unreadable.
    """
    root = Path(project_path or Path.cwd()).resolve()
    config_path = root / CONFIG_FILE_NAME

    layers: list[ConfigLayer] = []

    file_layer = load_file_layer(config_path)
    if file_layer is None and hint:
        file_layer = ConfigLayer.model_validate(scaffold_config(root, hint))
    if file_layer is not None:
        layers.append(file_layer)

    overlay = load_overlay_layer(root / ENV_FILE_NAME)
    if overlay is not None:
        layers.append(overlay)

    if overrides:
        try:
            layers.append(ConfigLayer.model_validate(overrides))
        except ValidationError as e:
            raise ConfigParseError(f"Invalid runtime options: {e}") from e

    merged = ProjectConfig().model_dump()
    for layer in layers:
        merged = deep_merge(merged, _layer_data(layer))

    name = merged.get("project_name") or project_name_from_path(root)
    merged["project_name"] = sanitize_project_name(name)

    try:
        config = ResolvedConfig.model_validate(
            {
                **merged,
                "project_root": root,
                "config_file": config_path if config_path.exists() else None,
            }
        )
    except ValidationError as e:
        raise ConfigParseError(f"Invalid project configuration: {e}") from e

    logger.info(
        "Resolved project '%s' (%d layer(s), %d mapping(s))",
        config.project_name,
        len(layers) + 1,
        len(config.mappings),
    )
    return config


# ── Validate ────────────────────────────────────────────────────


def _valid_port(port: Any) -> bool:
    return isinstance(port, int) and not isinstance(port, bool) and 1 <= port <= 65535


def validate_config(config: ResolvedConfig) -> list[str]:
    """Check the merged configuration; return one message per problem.

    Never raises.  An empty list means the configuration is usable.
    """
    errors: list[str] = []

    if not config.image:
        errors.append("Missing required field: image")

    if not config.hostname:
        errors.append("Missing required field: hostname")

    for index, mapping in enumerate(config.mappings):
        if not mapping.local or not mapping.container:
            errors.append(f"Mapping {index} missing required fields (local, container)")
        if mapping.local and not config.resolve_local(mapping.local).exists():
            errors.append(f"Mapping {index}: local path does not exist: {mapping.local}")

    if not config.project_name:
        errors.append("Project name is empty after sanitization")

    for service, port in config.ports.items():
        if not _valid_port(port):
            errors.append(f"Invalid port for {service}: {port}")

    return errors


def require_valid(config: ResolvedConfig) -> None:
    """Raise ConfigValidationError if *config* has any problems."""
    errors = validate_config(config)
    if errors:
        logger.debug("Validation failed with %d error(s)", len(errors))
        raise ConfigValidationError(errors)


# ── Display ─────────────────────────────────────────────────────


def mask_config(config: ProjectConfig) -> dict[str, Any]:
    """Descriptor-form dump with credential values masked."""
    data = config.model_dump(mode="json", by_alias=True)
    data["credentials"] = {key: MASK for key in sorted(config.credentials)}
    return data
