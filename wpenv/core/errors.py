"""
Error taxonomy — every failure the core can surface to a caller.

Config and credential errors are fatal for the operation that raised
them.  The CLI layer catches ``WpenvError`` subclasses, prints them and
exits non-zero; nothing in the core downgrades them silently.
"""

from __future__ import annotations


class WpenvError(Exception):
    """Base class for all wpenv errors."""


# ── Configuration ───────────────────────────────────────────────


class ConfigError(WpenvError):
    """Raised when project configuration cannot be used."""


class ConfigParseError(ConfigError):
    """The descriptor file exists but is not well-formed."""


class ConfigIOError(ConfigError):
    """A configuration file exists but cannot be read."""


class ConfigValidationError(ConfigError):
    """The merged configuration failed validation.

    Carries the full list of field-level problems so callers can
    report all of them at once.
    """

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        lines = "\n".join(f"  - {e}" for e in self.errors)
        super().__init__(f"Configuration validation failed:\n{lines}")


# ── Credentials ─────────────────────────────────────────────────


class VaultError(WpenvError):
    """A credential store operation failed."""


class UnsupportedPlatformError(VaultError):
    """The credential store is not available on this platform."""


class InvalidKeyError(VaultError):
    """The credential key is not in the registry."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Invalid credential key: {key}")


class CredentialFileError(WpenvError):
    """A credentials import file could not be parsed."""


class MissingCredentialError(WpenvError):
    """Required credentials are absent from both overlay and vault."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        keys = ", ".join(self.missing)
        super().__init__(
            f"Missing required credentials: {keys}. "
            "Store them with 'wpenv credentials set <KEY>' "
            "or add them to .env.local."
        )


# ── Orchestrator ────────────────────────────────────────────────


class OrchestratorError(WpenvError):
    """Docker is unavailable or a docker compose call failed."""
