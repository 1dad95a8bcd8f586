"""
Domain models — Pydantic types for wpenv.

All models are re-exported here for convenient access:

    from wpenv.core.models import ProjectConfig, ResolvedConfig, TopologyDescriptor
"""

from wpenv.core.models.credential import (
    CredentialRecord,
    ImportMetadata,
    ImportResult,
    RejectedCredential,
)
from wpenv.core.models.project import (
    ConfigLayer,
    ProjectConfig,
    ResolvedConfig,
    ServiceToggles,
    VolumeMapping,
)
from wpenv.core.models.topology import (
    NetworkSpec,
    ServiceSpec,
    TopologyDescriptor,
    VolumeSpec,
)

__all__ = [
    # project.py
    "ConfigLayer",
    # credential.py
    "CredentialRecord",
    "ImportMetadata",
    "ImportResult",
    # topology.py
    "NetworkSpec",
    "ProjectConfig",
    "RejectedCredential",
    "ResolvedConfig",
    "ServiceSpec",
    "ServiceToggles",
    "TopologyDescriptor",
    "VolumeMapping",
    "VolumeSpec",
]
