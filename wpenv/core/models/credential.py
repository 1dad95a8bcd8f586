"""
Credential registry — the fixed set of secrets wpenv knows about.

Keys double as the environment variable names the WordPress image and
its companion services read, so the compose descriptor can reference
them as ``${KEY}`` placeholders and the injection channel can supply
the values.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# ── Registry ────────────────────────────────────────────────────

CREDENTIAL_GROUPS: dict[str, tuple[str, ...]] = {
    "database": (
        "WORDPRESS_DB_PASSWORD",
        "DB_ROOT_PASSWORD",
    ),
    "federated_auth": (
        "SP_ENTITY_ID",
        "IDP_ENTITY_ID",
        "SHIB_IDP_LOGOUT",
        "SHIB_SP_KEY",
        "SHIB_SP_CERT",
    ),
    "object_storage": (
        "S3_UPLOADS_BUCKET",
        "S3_UPLOADS_REGION",
        "S3_UPLOADS_ACCESS_KEY_ID",
        "S3_UPLOADS_SECRET_ACCESS_KEY",
        "S3_ACCESS_RULES_TABLE",
    ),
    "analytics": (
        "OLAP",
        "OLAP_ACCT_NBR",
        "OLAP_REGION",
    ),
}

CREDENTIAL_KEYS: tuple[str, ...] = tuple(
    key for keys in CREDENTIAL_GROUPS.values() for key in keys
)

# PEM material: may contain newlines, older releases stored it hex-encoded
MULTILINE_CREDENTIALS: frozenset[str] = frozenset({"SHIB_SP_KEY", "SHIB_SP_CERT"})

CREDENTIAL_DESCRIPTIONS: dict[str, str] = {
    "WORDPRESS_DB_PASSWORD": "WordPress database password",
    "DB_ROOT_PASSWORD": "Database root password",
    "SP_ENTITY_ID": "Shibboleth Service Provider entity ID",
    "IDP_ENTITY_ID": "Shibboleth Identity Provider entity ID",
    "SHIB_IDP_LOGOUT": "Shibboleth IdP logout URL",
    "SHIB_SP_KEY": "Shibboleth Service Provider private key (multiline)",
    "SHIB_SP_CERT": "Shibboleth Service Provider certificate (multiline)",
    "S3_UPLOADS_BUCKET": "S3 bucket name",
    "S3_UPLOADS_REGION": "S3 region (e.g. us-east-1)",
    "S3_UPLOADS_ACCESS_KEY_ID": "AWS access key ID",
    "S3_UPLOADS_SECRET_ACCESS_KEY": "AWS secret access key",
    "S3_ACCESS_RULES_TABLE": "S3 access rules table name",
    "OLAP": "S3 Object Lambda access point name",
    "OLAP_ACCT_NBR": "S3 Object Lambda account number",
    "OLAP_REGION": "S3 Object Lambda region",
}


def is_valid_key(key: str) -> bool:
    """True if *key* is in the credential registry."""
    return key in CREDENTIAL_KEYS


def is_multiline(key: str) -> bool:
    """True if *key* may hold multi-line (PEM) content."""
    return key in MULTILINE_CREDENTIALS


def group_of(key: str) -> str | None:
    """Return the functional group a key belongs to, or None."""
    for group, keys in CREDENTIAL_GROUPS.items():
        if key in keys:
            return group
    return None


# ── Records ─────────────────────────────────────────────────────


class CredentialRecord(BaseModel):
    """A single credential value with its classification."""

    key: str
    value: str = Field(repr=False)
    multiline: bool = False

    @classmethod
    def for_key(cls, key: str, value: str) -> CredentialRecord:
        return cls(key=key, value=value, multiline=is_multiline(key))


class RejectedCredential(BaseModel):
    """An import entry that was not accepted, with the reason."""

    key: str
    reason: str


class ImportMetadata(BaseModel):
    """Provenance recorded in a credentials export file."""

    version: str = "unknown"
    source: str = "unknown"
    exported: str | None = None


class ImportResult(BaseModel):
    """Outcome of parsing a credentials import file."""

    accepted: dict[str, str] = Field(default_factory=dict, repr=False)
    rejected: list[RejectedCredential] = Field(default_factory=list)
    metadata: ImportMetadata = Field(default_factory=ImportMetadata)

    def by_group(self) -> dict[str, list[str]]:
        """Accepted keys grouped by registry group, in registry order."""
        grouped: dict[str, list[str]] = {}
        for group, keys in CREDENTIAL_GROUPS.items():
            present = [k for k in keys if k in self.accepted]
            if present:
                grouped[group] = present
        return grouped
