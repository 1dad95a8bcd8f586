"""
Credential store base — the contract every vault backend implements.

Backends only provide four primitives (``_read``, ``_write``,
``_remove``, ``_exists``) plus ``is_available``.  Key validation,
platform gating, legacy hex decoding and the tolerant status calls
live here so every backend behaves the same.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod

from wpenv.core.errors import InvalidKeyError, UnsupportedPlatformError, VaultError
from wpenv.core.models.credential import CREDENTIAL_KEYS, is_multiline, is_valid_key

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")


def decode_legacy_hex(key: str, value: str) -> str:
    """Decode a hex-encoded multi-line value written by older releases.

    Values that do not look like hex pass through unchanged, as do
    values that look like hex but do not decode to UTF-8.
    """
    if not is_multiline(key):
        return value
    if len(value) % 2 != 0 or not _HEX_RE.match(value):
        return value
    try:
        return bytes.fromhex(value).decode("utf-8")
    except UnicodeDecodeError:
        logger.warning("Stored value for %s looks hex-encoded but does not decode", key)
        return value


class CredentialStore(ABC):
    """Abstract base class for credential stores.

    Mutating calls (``set``, ``get``, ``delete``, ``clear``) raise on an
    unsupported platform or an unknown key.  Status calls (``has``,
    ``list``, ``load_all``) never raise.
    """

    name: str = "base"

    # ── Backend primitives ──────────────────────────────────────

    @abstractmethod
    def is_available(self) -> bool:
        """Check whether the backing store can be used here.

        Should be fast and never raise.
        """

    @abstractmethod
    def _read(self, key: str) -> str | None:
        """Return the raw stored value, or None if absent."""

    @abstractmethod
    def _write(self, key: str, value: str) -> None:
        """Create or replace the stored value."""

    @abstractmethod
    def _remove(self, key: str) -> bool:
        """Delete the stored value; return False if it was absent."""

    def _exists(self, key: str) -> bool:
        return self._read(key) is not None

    # ── Guards ──────────────────────────────────────────────────

    def _require(self, key: str | None = None) -> None:
        if not self.is_available():
            raise UnsupportedPlatformError(
                f"Credential store '{self.name}' is not available on this platform"
            )
        if key is not None and not is_valid_key(key):
            raise InvalidKeyError(key)

    # ── Public API ──────────────────────────────────────────────

    def set(self, key: str, value: str) -> None:
        """Store *value* under *key*, replacing any previous value."""
        self._require(key)
        self._write(key, value)
        logger.info("Stored credential %s", key)

    def get(self, key: str) -> str | None:
        """Return the value for *key*, or None if it is not stored."""
        self._require(key)
        value = self._read(key)
        if value is None:
            return None
        return decode_legacy_hex(key, value)

    def has(self, key: str) -> bool:
        if not is_valid_key(key) or not self.is_available():
            return False
        try:
            return self._exists(key)
        except VaultError as e:
            logger.debug("Existence check for %s failed: %s", key, e)
            return False

    def delete(self, key: str) -> bool:
        """Remove *key*; return False if nothing was stored."""
        self._require(key)
        removed = self._remove(key)
        if removed:
            logger.info("Deleted credential %s", key)
        return removed

    def list(self) -> list[str]:
        """Registered keys that currently have a stored value."""
        if not self.is_available():
            return []
        return [key for key in CREDENTIAL_KEYS if self.has(key)]

    def clear(self) -> int:
        """Delete every registered key; return how many were removed.

        Individual failures are logged and skipped.
        """
        self._require()
        removed = 0
        for key in CREDENTIAL_KEYS:
            try:
                if self._remove(key):
                    removed += 1
            except VaultError as e:
                logger.warning("Failed to delete %s: %s", key, e)
        logger.info("Cleared %d credential(s)", removed)
        return removed

    def load_all(self) -> dict[str, str]:
        """Every stored credential, decoded.  Unreadable keys are skipped."""
        values: dict[str, str] = {}
        if not self.is_available():
            logger.debug("Credential store '%s' unavailable, nothing loaded", self.name)
            return values
        for key in CREDENTIAL_KEYS:
            try:
                value = self._read(key)
            except VaultError as e:
                logger.warning("Failed to read %s: %s", key, e)
                continue
            if value is not None:
                values[key] = decode_legacy_hex(key, value)
        return values
