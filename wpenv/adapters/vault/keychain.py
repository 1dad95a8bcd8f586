"""
macOS Keychain backend — generic passwords via the ``security`` tool.

Every credential is a generic password with service ``wpenv`` and the
credential key as the account name.  Commands are run from an argument
list, never through a shell.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys

from wpenv.adapters.vault.base import CredentialStore
from wpenv.core.errors import VaultError

logger = logging.getLogger(__name__)

SERVICE_NAME = "wpenv"
_NOT_FOUND = "could not be found"


class KeychainStore(CredentialStore):
    """Credential store backed by the macOS login keychain."""

    name = "keychain"

    def __init__(self, service: str = SERVICE_NAME, timeout: int = 10):
        self.service = service
        self.timeout = timeout

    def is_available(self) -> bool:
        return sys.platform == "darwin" and shutil.which("security") is not None

    def _security(self, *args: str) -> subprocess.CompletedProcess[str]:
        try:
            return subprocess.run(
                ["security", *args],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise VaultError(f"security {args[0]} failed: {e}") from e

    def _read(self, key: str) -> str | None:
        result = self._security(
            "find-generic-password", "-s", self.service, "-a", key, "-w",
        )
        if result.returncode == 0:
            return result.stdout.rstrip("\n")
        if _NOT_FOUND in result.stderr or result.returncode == 44:
            return None
        raise VaultError(f"Failed to read {key} from keychain: {result.stderr.strip()}")

    def _write(self, key: str, value: str) -> None:
        result = self._security(
            "add-generic-password", "-s", self.service, "-a", key, "-w", value, "-U",
        )
        if result.returncode != 0:
            raise VaultError(f"Failed to store {key} in keychain: {result.stderr.strip()}")

    def _remove(self, key: str) -> bool:
        result = self._security(
            "delete-generic-password", "-s", self.service, "-a", key,
        )
        if result.returncode == 0:
            return True
        if _NOT_FOUND in result.stderr or result.returncode == 44:
            return False
        raise VaultError(f"Failed to delete {key} from keychain: {result.stderr.strip()}")
