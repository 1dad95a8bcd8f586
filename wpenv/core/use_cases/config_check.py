"""
Config check use case — validate .wpenv.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from wpenv.core.config.loader import ConfigError, resolve, validate_config
from wpenv.core.models.project import ResolvedConfig


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: ResolvedConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "project_name": self.config.project_name if self.config else None,
            "mapping_count": len(self.config.mappings) if self.config else 0,
        }


def check_config(project_path: Path | None = None) -> ConfigCheckResult:
    """Resolve the project configuration and report issues.

    Parse and I/O errors become entries in ``errors``; nothing raises.
    """
    result = ConfigCheckResult()

    try:
        config = resolve(project_path)
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    result.config = config
    result.config_path = config.config_file

    if config.config_file is None:
        result.warnings.append(
            "No .wpenv.yml found; built-in defaults are in use. Run 'wpenv init'."
        )

    if not config.mappings:
        result.warnings.append("No mappings defined. No local code will be mounted.")

    result.errors.extend(validate_config(config))
    result.valid = len(result.errors) == 0
    return result
