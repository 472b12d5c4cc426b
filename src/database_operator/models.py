"""Core data models for the Database operator.

Defines the schemas for:
- Cluster state and status conditions
- Resource configuration variants (dedicated, shared, serverless)
- Typed views over the Database, Storage and StatefulSet manifests
- Tenant provisioning requests
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

TENANT_PATH_FORMAT = "/{domain}/{name}"

# --- Enums ---


class ClusterState(enum.StrEnum):
    PROVISIONING = "Provisioning"
    INITIALIZING = "Initializing"
    READY = "Ready"


class ConditionStatus(enum.StrEnum):
    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


class ConfigurationError(Exception):
    """Raised when a Database does not set exactly one resource variant."""


class _Manifest(BaseModel):
    """Base for views over camelCase Kubernetes manifests."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# --- Status ---


class Condition(_Manifest):
    """A single status condition, serialized the Kubernetes way."""

    type: str
    status: ConditionStatus = ConditionStatus.UNKNOWN
    reason: str = ""
    message: str = ""
    last_transition_time: datetime | None = Field(default=None, alias="lastTransitionTime")


class DatabaseStatus(_Manifest):
    state: str = ""
    conditions: list[Condition] = Field(default_factory=list)


# --- References & metadata ---


class NamespacedName(BaseModel):
    """Key of a namespaced object."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class ObjectReference(_Manifest):
    """Reference to another object. An empty namespace means "same as the referrer"."""

    name: str
    namespace: str = ""

    def resolve(self, default_namespace: str) -> NamespacedName:
        return NamespacedName(namespace=self.namespace or default_namespace, name=self.name)


class ObjectMeta(_Manifest):
    name: str
    namespace: str = ""
    uid: str = ""
    resource_version: str = Field(default="", alias="resourceVersion")
    labels: dict[str, str] = Field(default_factory=dict)


# --- Resource configuration ---


class StorageUnit(_Manifest):
    unit_kind: str = Field(alias="unitKind")
    count: int = Field(ge=0)


class DedicatedResources(_Manifest):
    """Database with its own storage groups and its own compute nodes."""

    storage_units: list[StorageUnit] = Field(default_factory=list, alias="storageUnits")


class SharedResources(_Manifest):
    """Database whose storage groups can be shared by serverless databases."""

    storage_units: list[StorageUnit] = Field(default_factory=list, alias="storageUnits")


class ServerlessResources(_Manifest):
    """Database without compute nodes, hosted inside a shared database."""

    shared_database_ref: ObjectReference = Field(alias="sharedDatabaseRef")


ResourceConfig = DedicatedResources | SharedResources | ServerlessResources


class DatabaseSpec(_Manifest):
    storage_cluster_ref: ObjectReference = Field(alias="storageClusterRef")
    nodes: int = Field(default=0, ge=0)
    domain: str = "Root"
    resources: DedicatedResources | None = None
    shared_resources: SharedResources | None = Field(default=None, alias="sharedResources")
    serverless_resources: ServerlessResources | None = Field(
        default=None, alias="serverlessResources",
    )

    def resource_config(self) -> ResourceConfig:
        """Return the single populated resource variant.

        Raises ConfigurationError when none or more than one is set.
        """
        variants = [
            v for v in (self.resources, self.shared_resources, self.serverless_resources)
            if v is not None
        ]
        if len(variants) != 1:
            raise ConfigurationError(
                "incorrect database resources configuration, must be one of: "
                f"resources, sharedResources, serverlessResources (got {len(variants)})"
            )
        return variants[0]

    @property
    def is_serverless(self) -> bool:
        return self.serverless_resources is not None


# --- Object views ---


class Database(_Manifest):
    """Typed view of a Database custom resource."""

    api_version: str = Field(default="ydb.tech/v1alpha1", alias="apiVersion")
    kind: str = "Database"
    metadata: ObjectMeta
    spec: DatabaseSpec
    status: DatabaseStatus = Field(default_factory=DatabaseStatus)

    @property
    def key(self) -> NamespacedName:
        return NamespacedName(namespace=self.metadata.namespace, name=self.metadata.name)

    @property
    def path(self) -> str:
        return TENANT_PATH_FORMAT.format(domain=self.spec.domain, name=self.metadata.name)


class TLSConfiguration(_Manifest):
    enabled: bool = False


class GRPCService(_Manifest):
    tls: TLSConfiguration = Field(default_factory=TLSConfiguration)


class StorageServices(_Manifest):
    grpc: GRPCService = Field(default_factory=GRPCService)


class StorageSpec(_Manifest):
    service: StorageServices = Field(default_factory=StorageServices)


class StorageStatus(_Manifest):
    state: str = ""


class Storage(_Manifest):
    """Typed view of the storage cluster a Database depends on."""

    api_version: str = Field(default="ydb.tech/v1alpha1", alias="apiVersion")
    kind: str = "Storage"
    metadata: ObjectMeta
    spec: StorageSpec = Field(default_factory=StorageSpec)
    status: StorageStatus = Field(default_factory=StorageStatus)

    @property
    def tls_enabled(self) -> bool:
        return self.spec.service.grpc.tls.enabled


class StatefulSetStatus(_Manifest):
    replicas: int = 0
    ready_replicas: int = Field(default=0, alias="readyReplicas")


class StatefulSet(_Manifest):
    """The compute workload of a non-serverless Database."""

    metadata: ObjectMeta
    status: StatefulSetStatus = Field(default_factory=StatefulSetStatus)


# --- Tenant ---


class TenantRequest(BaseModel):
    """Everything needed to create a tenant inside the storage cluster."""

    storage_endpoint: str
    path: str
    storage_units: list[StorageUnit] = Field(default_factory=list)
    shared: bool = False
    shared_database_path: str = ""
    use_secure_channel: bool = False


def manifest_key(manifest: dict[str, Any]) -> NamespacedName:
    """Extract the namespaced name from a raw manifest."""
    metadata = manifest.get("metadata") or {}
    return NamespacedName(
        namespace=metadata.get("namespace", ""),
        name=metadata.get("name", ""),
    )
