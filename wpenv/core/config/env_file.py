"""
Local secrets overlay — reads .env.local style key=value files.

Supports the subset of dotenv syntax people actually write by hand:
comments, blank lines, an optional ``export`` prefix, single or double
quotes, and quoted values that continue over several lines (PEM keys
and certificates pasted in verbatim).
"""

from __future__ import annotations

import logging
from pathlib import Path

from wpenv.core.errors import ConfigIOError

logger = logging.getLogger(__name__)

_DOUBLE_QUOTE_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", '"': '"', "\\": "\\", "$": "$"}


def read_env_file(env_path: Path) -> dict[str, str]:
    """Read key=value pairs from an env file.

    Returns an empty dict when the file does not exist.

    Raises:
        ConfigIOError: If the file exists but cannot be read.
    """
    if not env_path.is_file():
        return {}
    try:
        content = env_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigIOError(f"Cannot read {env_path}: {e}") from e

    values = parse_env_text(content)
    logger.debug("Loaded %d entries from %s", len(values), env_path)
    return values


def parse_env_text(content: str) -> dict[str, str]:
    """Parse env-file text into a dict (later keys win)."""
    values: dict[str, str] = {}
    lines = content.splitlines()
    i = 0
    while i < len(lines):
        line = lines[i].strip()
        i += 1
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()

        key, _, raw = line.partition("=")
        key = key.strip()
        raw = raw.strip()
        if not key:
            continue

        quote = raw[:1]
        if quote in ('"', "'"):
            body = raw[1:]
            # Multi-line: keep consuming until a line closes the quote
            end = _closing_index(body, quote)
            while end < 0 and i < len(lines):
                body += "\n" + lines[i]
                i += 1
                end = _closing_index(body, quote)
            if end >= 0:
                # Anything after the closing quote is a comment
                body = body[:end]
            else:
                logger.warning("Unterminated quoted value for %s", key)
            values[key] = _unescape(body) if quote == '"' else body
        else:
            if " #" in raw:
                raw = raw[: raw.index(" #")].rstrip()
            values[key] = raw
    return values


def _closing_index(body: str, quote: str) -> int:
    """Index of the first unescaped *quote* in *body*, or -1."""
    escaped = False
    for idx, ch in enumerate(body):
        if escaped:
            escaped = False
        elif ch == "\\" and quote == '"':
            escaped = True
        elif ch == quote:
            return idx
    return -1


def _unescape(value: str) -> str:
    out: list[str] = []
    chars = iter(value)
    for ch in chars:
        if ch == "\\":
            nxt = next(chars, "")
            out.append(_DOUBLE_QUOTE_ESCAPES.get(nxt, "\\" + nxt))
        else:
            out.append(ch)
    return "".join(out)
