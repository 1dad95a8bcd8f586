"""
Credential injection channel — a short-lived env file for docker compose.

Credentials reach ``docker compose`` through ``--env-file`` rather than
the process environment or command line, so they never show up in a
process listing.  The file is created owner-only (mkstemp is 0600)
inside the project state directory immediately before the compose call
and removed immediately after, whether or not the call succeeded.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path

from wpenv.core.persistence.state_file import ensure_state_dir

logger = logging.getLogger(__name__)


def escape_env_value(value: str) -> str:
    """Escape a value for a double-quoted env-file entry."""
    return (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("$", "\\$")
    )


def render_env(credentials: Mapping[str, str]) -> str:
    """Env-file body: ``KEY="value"`` lines sorted by key, empties skipped."""
    lines = [
        f'{key}="{escape_env_value(value)}"'
        for key, value in sorted(credentials.items())
        if value
    ]
    return "\n".join(lines) + "\n" if lines else ""


def stage(credentials: Mapping[str, str], directory: Path) -> Path:
    """Write *credentials* to a fresh owner-only file in *directory*.

    Returns:
        Path of the staged file.  The caller owns it and must ``purge``.
    """
    ensure_state_dir(directory)
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".env.", suffix=".tmp")
    path = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(render_env(credentials))
    except Exception:
        path.unlink(missing_ok=True)
        raise
    logger.debug("Staged %d credential(s) in %s", len(credentials), path.name)
    return path


def purge(path: Path | None) -> None:
    """Remove a staged file.  Safe to call twice or on a missing file."""
    if path is None:
        return
    try:
        Path(path).unlink()
        logger.debug("Purged %s", path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Failed to remove credential file %s: %s", path, e)


@contextmanager
def staged_credentials(
    credentials: Mapping[str, str],
    directory: Path,
) -> Iterator[Path | None]:
    """Stage *credentials* for the duration of the block.

    Yields None when there is nothing to stage.  The file is purged on
    exit, including when the block raises.
    """
    if not any(credentials.values()):
        yield None
        return

    path = stage(credentials, directory)
    try:
        yield path
    finally:
        purge(path)
