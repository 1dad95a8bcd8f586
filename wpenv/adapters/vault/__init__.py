"""
Credential vault adapters.

    from wpenv.adapters.vault import get_default_store

    store = get_default_store()
    store.set("WORDPRESS_DB_PASSWORD", "secret")
"""

from __future__ import annotations

import logging
import os

from wpenv.adapters.vault.base import CredentialStore, decode_legacy_hex
from wpenv.adapters.vault.keychain import KeychainStore
from wpenv.adapters.vault.memory import MemoryStore
from wpenv.core.errors import VaultError

logger = logging.getLogger(__name__)

VAULT_ENV_VAR = "WPENV_VAULT"

_BACKENDS: dict[str, type[CredentialStore]] = {
    "keychain": KeychainStore,
    "memory": MemoryStore,
}


def get_default_store() -> CredentialStore:
    """Instantiate the backend named by ``WPENV_VAULT`` (default: keychain).

    Raises:
        VaultError: If the variable names an unknown backend.
    """
    backend = os.environ.get(VAULT_ENV_VAR, "keychain").strip().lower() or "keychain"
    cls = _BACKENDS.get(backend)
    if cls is None:
        raise VaultError(
            f"Unknown credential store '{backend}'. Valid: {', '.join(_BACKENDS)}"
        )
    logger.debug("Using credential store '%s'", backend)
    return cls()


__all__ = [
    "CredentialStore",
    "KeychainStore",
    "MemoryStore",
    "VAULT_ENV_VAR",
    "decode_legacy_hex",
    "get_default_store",
]
