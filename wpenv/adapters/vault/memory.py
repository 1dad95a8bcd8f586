"""
In-memory credential store — test double and keychain-less fallback.

Selected with ``WPENV_VAULT=memory``.  Values live only for the life
of the process.
"""

from __future__ import annotations

from wpenv.adapters.vault.base import CredentialStore


class MemoryStore(CredentialStore):
    """Dict-backed credential store.

    Can be seeded with initial values and toggled unavailable to
    exercise the unsupported-platform paths.
    """

    name = "memory"

    def __init__(self, values: dict[str, str] | None = None, available: bool = True):
        self._values: dict[str, str] = dict(values or {})
        self._available = available

    def is_available(self) -> bool:
        return self._available

    def _read(self, key: str) -> str | None:
        return self._values.get(key)

    def _write(self, key: str, value: str) -> None:
        self._values[key] = value

    def _remove(self, key: str) -> bool:
        return self._values.pop(key, None) is not None
