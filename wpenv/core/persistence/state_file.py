"""
State file persistence — atomic writes into the per-project state dir.

Generated artifacts live in ``<project>/.wpenv/``.  Writes are atomic
(write to temp file, then rename) so a crash mid-write never leaves a
truncated descriptor behind for docker compose to pick up.

There is no locking: two invocations against the same project both
write, and the last rename wins.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def ensure_state_dir(state_dir: Path) -> Path:
    """Create the state directory if absent and return it."""
    if not state_dir.is_dir():
        state_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("Created state directory %s", state_dir)
    return state_dir


def write_text_atomic(path: Path, content: str) -> Path:
    """Write *content* to *path* atomically.

    Uses write-to-temp-then-rename to prevent partial files.

    Args:
        path: Target path; its parent directory is created if needed.
        content: Full file content.

    Returns:
        The written path.
    """
    ensure_state_dir(path.parent)

    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.name}_",
            suffix=".tmp",
        )
        tmp = Path(tmp_path)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            tmp.replace(path)
            logger.debug("Wrote %s (%d bytes)", path, len(content))
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
    except Exception as e:
        logger.error("Failed to write %s: %s", path, e)
        raise

    return path
