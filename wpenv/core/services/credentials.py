"""
Credential resolution — which secrets a project needs, and where from.

Values come from the credential store, overlaid by the project's
``.env.local`` entries (already merged into ``config.credentials``).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from wpenv.adapters.vault.base import CredentialStore
from wpenv.core.errors import MissingCredentialError
from wpenv.core.models.project import ProjectConfig

logger = logging.getLogger(__name__)

_DATABASE_KEYS = ("WORDPRESS_DB_PASSWORD", "DB_ROOT_PASSWORD")
_PROXY_KEYS = ("S3_UPLOADS_ACCESS_KEY_ID", "S3_UPLOADS_SECRET_ACCESS_KEY")
_FEDERATED_AUTH_KEYS = ("SP_ENTITY_ID", "IDP_ENTITY_ID")


def required_credentials(config: ProjectConfig) -> list[str]:
    """Keys that must have a value before the environment can start."""
    keys = list(_DATABASE_KEYS)
    if config.services.proxy:
        keys.extend(_PROXY_KEYS)
    if config.services.federated_auth:
        keys.extend(_FEDERATED_AUTH_KEYS)
    return keys


def collect_credentials(config: ProjectConfig, store: CredentialStore) -> dict[str, str]:
    """Merge stored credentials with the project overlay (overlay wins)."""
    values = store.load_all()
    from_store = len(values)
    values.update({k: v for k, v in config.credentials.items() if v})
    logger.debug(
        "Collected %d credential(s) (%d from store, %d from overlay)",
        len(values), from_store, len(config.credentials),
    )
    return values


def check_required(config: ProjectConfig, available: Mapping[str, str]) -> None:
    """Raise MissingCredentialError naming every required key without a value."""
    missing = [key for key in required_credentials(config) if not available.get(key)]
    if missing:
        raise MissingCredentialError(missing)
