"""
Topology models — the compiled compose descriptor as typed data.

A TopologyDescriptor is pure data: it owns no resources and is
rebuilt from the ResolvedConfig on every invocation.  ``to_compose()``
produces the plain mapping that is serialized to docker-compose.yml.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ServiceSpec(BaseModel):
    """One compose service entry.

    Field order here is the key order in the generated YAML.
    """

    image: str
    restart: str = "always"
    command: list[str] = Field(default_factory=list)
    depends_on: list[str] = Field(default_factory=list)
    ports: list[str] = Field(default_factory=list)
    hostname: str | None = None
    environment: dict[str, str] = Field(default_factory=dict)
    volumes: list[str] = Field(default_factory=list)
    networks: list[str] = Field(default_factory=list)

    def to_compose(self) -> dict[str, Any]:
        """Compose mapping with unset and empty fields dropped."""
        data = self.model_dump(exclude_none=True)
        return {k: v for k, v in data.items() if v != [] and v != {}}


class VolumeSpec(BaseModel):
    """A named volume with an explicit, unprefixed name."""

    name: str


class NetworkSpec(BaseModel):
    driver: str = "bridge"


class TopologyDescriptor(BaseModel):
    """Services, networks and named volumes for one project identity."""

    services: dict[str, ServiceSpec] = Field(default_factory=dict)
    networks: dict[str, NetworkSpec] = Field(default_factory=dict)
    volumes: dict[str, VolumeSpec] = Field(default_factory=dict)

    def to_compose(self) -> dict[str, Any]:
        return {
            "services": {name: svc.to_compose() for name, svc in self.services.items()},
            "networks": {name: net.model_dump() for name, net in self.networks.items()},
            "volumes": {name: vol.model_dump() for name, vol in self.volumes.items()},
        }

    def volume_names(self) -> list[str]:
        """Final names of all named volumes, as docker will see them."""
        return [vol.name for vol in self.volumes.values()]
