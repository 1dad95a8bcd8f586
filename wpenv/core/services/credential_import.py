"""
Credential bulk import — load a JSON export into the credential store.

Expected file shape::

    {
      "version": "1.0",
      "source": "team-vault",
      "exported": "2025-01-31T12:00:00Z",
      "credentials": {"WORDPRESS_DB_PASSWORD": "...", ...}
    }

Entries are filtered against the credential registry; anything not
accepted is reported back with a reason rather than failing the import.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from wpenv.adapters.vault.base import CredentialStore
from wpenv.core.errors import CredentialFileError
from wpenv.core.models.credential import (
    ImportMetadata,
    ImportResult,
    RejectedCredential,
    is_valid_key,
)

logger = logging.getLogger(__name__)

REASON_UNKNOWN_KEY = "unknown credential key"
REASON_INVALID_VALUE = "empty or invalid value"


def parse_credentials_file(path: Path) -> ImportResult:
    """Parse and filter a credentials export file.

    Raises:
        CredentialFileError: Missing file, invalid JSON, or no
            ``credentials`` object.
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise CredentialFileError(f"File not found: {path}") from e
    except OSError as e:
        raise CredentialFileError(f"Failed to read file: {e}") from e

    try:
        data: Any = json.loads(content)
    except json.JSONDecodeError as e:
        raise CredentialFileError(f"Invalid JSON format: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("credentials"), dict):
        raise CredentialFileError(
            'Invalid credentials file format: missing "credentials" object'
        )

    result = ImportResult(
        metadata=ImportMetadata(
            version=str(data.get("version") or "unknown"),
            source=str(data.get("source") or "unknown"),
            exported=data.get("exported") or None,
        ),
    )

    for key, value in data["credentials"].items():
        if not is_valid_key(key):
            result.rejected.append(RejectedCredential(key=key, reason=REASON_UNKNOWN_KEY))
        elif not isinstance(value, str) or not value.strip():
            result.rejected.append(RejectedCredential(key=key, reason=REASON_INVALID_VALUE))
        else:
            result.accepted[key] = value

    logger.debug(
        "Parsed %s: %d accepted, %d rejected",
        path, len(result.accepted), len(result.rejected),
    )
    return result


def import_credentials(
    store: CredentialStore,
    result: ImportResult,
    *,
    overwrite: bool = False,
) -> dict[str, list[str]]:
    """Store accepted credentials.

    Existing keys are skipped unless *overwrite* is set.

    Returns:
        ``{"imported": [...], "skipped": [...]}`` key lists.
    """
    imported: list[str] = []
    skipped: list[str] = []

    for key, value in result.accepted.items():
        if not overwrite and store.has(key):
            skipped.append(key)
            continue
        store.set(key, value)
        imported.append(key)

    logger.info("Imported %d credential(s), skipped %d", len(imported), len(skipped))
    return {"imported": imported, "skipped": skipped}
