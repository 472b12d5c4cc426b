"""Tenant provisioning: announce, then create.

Two steps, run only while ``TenantInitialized`` is not True:

1. StatusInitStep marks the Database as Initializing and records an
   in-progress condition.  If that changes anything it persists and
   halts, so the announcement is observable before any action.
2. TenantCreationStep resolves a TenantRequest from the resource
   variant and asks the provisioning service to create the tenant.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from database_operator.conditions import (
    REASON_COMPLETED,
    REASON_IN_PROGRESS,
    TENANT_INITIALIZED,
    find_condition,
    set_condition,
)
from database_operator.config import RequeueDelays
from database_operator.events import EventRecorder, EventType
from database_operator.models import (
    ClusterState,
    Condition,
    ConditionStatus,
    ConfigurationError,
    Database,
    DedicatedResources,
    ServerlessResources,
    SharedResources,
    TenantRequest,
)
from database_operator.reconciler.base import CONTINUE, Halt, Step, StepResult, halt
from database_operator.reconciler.status import StatusPersistStep
from database_operator.store.base import NotFoundError

if TYPE_CHECKING:
    from database_operator.aggregate import DatabaseAggregate
    from database_operator.store.base import ObjectStore
    from database_operator.tenant import TenantProvisioningService

logger = logging.getLogger(__name__)


class StatusInitStep(Step):
    name = "set-initial-status"

    def __init__(
        self,
        store: ObjectStore,
        recorder: EventRecorder,
        delays: RequeueDelays | None = None,
        persist: StatusPersistStep | None = None,
    ) -> None:
        super().__init__(store, recorder, delays)
        self._persist = persist or StatusPersistStep(self._store, self._recorder, self._delays)

    def run(self, aggregate: DatabaseAggregate) -> StepResult:
        changed = False
        if find_condition(aggregate.status.conditions, TENANT_INITIALIZED) is None:
            set_condition(aggregate.status.conditions, Condition(
                type=TENANT_INITIALIZED,
                status=ConditionStatus.FALSE,
                reason=REASON_IN_PROGRESS,
                message="Tenant creation in progress",
            ))
            changed = True
        if aggregate.status.state != ClusterState.INITIALIZING:
            aggregate.status.state = ClusterState.INITIALIZING
            changed = True

        if changed:
            return self._persist.run(aggregate)
        return CONTINUE


class TenantCreationStep(Step):
    """Creates the tenant exactly once and records the outcome."""

    name = "create-tenant"

    def __init__(
        self,
        store: ObjectStore,
        recorder: EventRecorder,
        tenants: TenantProvisioningService,
        delays: RequeueDelays | None = None,
        persist: StatusPersistStep | None = None,
    ) -> None:
        super().__init__(store, recorder, delays)
        self._tenants = tenants
        self._persist = persist or StatusPersistStep(self._store, self._recorder, self._delays)

    def run(self, aggregate: DatabaseAggregate) -> StepResult:
        request = self._resolve_request(aggregate)
        if isinstance(request, Halt):
            return request

        try:
            self._tenants.create(request)
        except Exception as exc:
            logger.warning("Tenant %s creation failed: %s", request.path, exc)
            self._event(
                aggregate, EventType.WARNING, "InitializingFailed",
                f"Error creating tenant {request.path}: {exc}",
            )
            return halt(self._delays.tenant_creation, exc)

        self._event(
            aggregate, EventType.NORMAL, "Initialized",
            f"Tenant {request.path} created",
        )
        set_condition(aggregate.status.conditions, Condition(
            type=TENANT_INITIALIZED,
            status=ConditionStatus.TRUE,
            reason=REASON_COMPLETED,
            message="Tenant creation is complete",
        ))
        return self._persist.run(aggregate)

    def _resolve_request(self, aggregate: DatabaseAggregate) -> TenantRequest | Halt:
        try:
            variant = aggregate.spec.resource_config()
        except ConfigurationError as exc:
            self._event(aggregate, EventType.WARNING, "ControllerError", str(exc))
            return halt(self._delays.default, exc)

        shared_database_path = ""
        if isinstance(variant, ServerlessResources):
            resolved = self._shared_database_path(aggregate, variant)
            if isinstance(resolved, Halt):
                return resolved
            shared_database_path = resolved

        storage_units = (
            variant.storage_units
            if isinstance(variant, DedicatedResources | SharedResources)
            else []
        )
        return TenantRequest(
            storage_endpoint=aggregate.storage_endpoint(),
            path=aggregate.path,
            storage_units=storage_units,
            shared=isinstance(variant, SharedResources),
            shared_database_path=shared_database_path,
            use_secure_channel=aggregate.storage is not None and aggregate.storage.tls_enabled,
        )

    def _shared_database_path(
        self,
        aggregate: DatabaseAggregate,
        variant: ServerlessResources,
    ) -> str | Halt:
        key = variant.shared_database_ref.resolve(aggregate.database.metadata.namespace)
        try:
            shared = Database.model_validate(self._store.get("Database", key))
        except NotFoundError:
            self._event(
                aggregate, EventType.WARNING, "Pending",
                f"Database ({key}) not found.",
            )
            return halt(self._delays.shared_database_await)
        except Exception as exc:
            self._event(
                aggregate, EventType.WARNING, "Pending",
                f"Failed to get Database ({key}) resource, error: {exc}",
            )
            return halt(self._delays.shared_database_await, exc)

        if shared.status.state != ClusterState.READY:
            self._event(
                aggregate, EventType.WARNING, "Pending",
                f"Referenced shared Database ({key}) in a bad state: "
                f"{shared.status.state} != {ClusterState.READY}",
            )
            return halt(self._delays.shared_database_await)

        return shared.path
