"""DatabaseAggregate: the per-pass view threaded through the reconciler.

Combines the Database's desired spec (read-only), a working copy of its
status (mutated by the steps, persisted only by StatusPersistStep) and
the Storage observed by DependencyWaitStep.  One aggregate lives for one
pass and is never shared.
"""

from __future__ import annotations

import copy
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from database_operator.builders import BuilderFactory, ResourceBuilder, no_builders
from database_operator.conditions import TENANT_INITIALIZED, is_condition_true
from database_operator.config import OperatorConfig
from database_operator.models import (
    ClusterState,
    Database,
    DatabaseSpec,
    DatabaseStatus,
    NamespacedName,
    Storage,
)


@dataclass
class DatabaseAggregate:
    database: Database
    status: DatabaseStatus
    builders: Sequence[ResourceBuilder] = ()
    config: OperatorConfig = field(default_factory=OperatorConfig)
    storage: Storage | None = None

    @classmethod
    def from_manifest(
        cls,
        manifest: dict[str, Any],
        builder_factory: BuilderFactory = no_builders,
        config: OperatorConfig | None = None,
    ) -> DatabaseAggregate:
        database = Database.model_validate(copy.deepcopy(manifest))
        aggregate = cls(
            database=database,
            status=database.status.model_copy(deep=True),
            builders=tuple(builder_factory(database)),
            config=config or OperatorConfig(),
        )
        aggregate.set_status_on_first_reconcile()
        return aggregate

    def set_status_on_first_reconcile(self) -> None:
        if not self.status.state:
            self.status.state = ClusterState.PROVISIONING

    @property
    def spec(self) -> DatabaseSpec:
        return self.database.spec

    @property
    def key(self) -> NamespacedName:
        return self.database.key

    @property
    def path(self) -> str:
        return self.database.path

    @property
    def storage_key(self) -> NamespacedName:
        return self.spec.storage_cluster_ref.resolve(self.database.metadata.namespace)

    @property
    def tenant_initialized(self) -> bool:
        return is_condition_true(self.status.conditions, TENANT_INITIALIZED)

    def storage_endpoint(self) -> str:
        """gRPC endpoint of the attached storage cluster."""
        if self.storage is None:
            raise ValueError(f"No storage cluster attached to Database {self.key}")
        meta = self.storage.metadata
        return (
            f"{meta.name}-grpc.{meta.namespace}.svc."
            f"{self.config.cluster_domain}:{self.config.grpc_port}"
        )
