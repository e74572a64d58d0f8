"""Managed resource records held by the resource store."""

from enum import Enum
from typing import Dict, NamedTuple

from pydantic import BaseModel


class ResourceKind(str, Enum):
    CONFIG_MAP = "ConfigMap"
    PLACEMENT = "Placement"
    ADDON_TEMPLATE = "AddOnTemplate"
    CLUSTER_MANAGEMENT_ADDON = "ClusterManagementAddOn"


CLUSTER_SCOPED_KINDS = frozenset({
    ResourceKind.ADDON_TEMPLATE,
    ResourceKind.CLUSTER_MANAGEMENT_ADDON,
})


class ResourceKey(NamedTuple):
    kind: ResourceKind
    namespace: str                          # "" for cluster-scoped kinds
    name: str

    @classmethod
    def of(cls, kind: ResourceKind, name: str, namespace: str = "") -> "ResourceKey":
        if kind in CLUSTER_SCOPED_KINDS:
            namespace = ""
        return cls(kind, namespace, name)

    def __str__(self) -> str:
        if self.namespace:
            return f"{self.kind.value}/{self.namespace}/{self.name}"
        return f"{self.kind.value}/{self.name}"


class ManagedResource(BaseModel):
    """A record in the resource store. Identity fields never change after creation."""

    kind: ResourceKind
    name: str
    namespace: str = ""
    labels: Dict[str, str] = {}
    annotations: Dict[str, str] = {}
    spec: dict = {}
    data: Dict[str, str] = {}
    resource_version: int = 0

    @property
    def key(self) -> ResourceKey:
        return ResourceKey.of(self.kind, self.name, self.namespace)
