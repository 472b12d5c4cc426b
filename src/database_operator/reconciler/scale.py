"""ScaleWaitStep: wait for the compute workload and derive Ready."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from database_operator.config import RequeueDelays
from database_operator.events import EventRecorder, EventType
from database_operator.models import ClusterState, StatefulSet
from database_operator.reconciler.base import CONTINUE, Step, StepResult, halt
from database_operator.reconciler.status import StatusPersistStep
from database_operator.store.base import NotFoundError

if TYPE_CHECKING:
    from database_operator.aggregate import DatabaseAggregate
    from database_operator.store.base import ObjectStore

logger = logging.getLogger(__name__)


class ScaleWaitStep(Step):
    """Compares the StatefulSet's replicas with ``spec.nodes``.

    Serverless databases have no workload of their own and skip the
    replica check, but still move to Ready once the tenant exists.
    """

    name = "wait-for-scale"

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
        if not aggregate.spec.is_serverless:
            try:
                workload = StatefulSet.model_validate(
                    self._store.get("StatefulSet", aggregate.key),
                )
            except NotFoundError:
                logger.info("StatefulSet %s not found yet", aggregate.key)
                return halt(self._delays.default)
            except Exception as exc:
                self._event(
                    aggregate, EventType.NORMAL, "Syncing",
                    f"Failed to get StatefulSets: {exc}",
                )
                return halt(self._delays.default, exc)

            if workload.status.replicas != aggregate.spec.nodes:
                self._event(
                    aggregate, EventType.NORMAL, "Provisioning",
                    "Waiting for number of running pods to match expected: "
                    f"{workload.status.replicas} != {aggregate.spec.nodes}",
                )
                aggregate.status.state = ClusterState.PROVISIONING
                persisted = self._persist.run(aggregate)
                if persisted.directive.error is not None:
                    return persisted
                return halt(self._delays.default)

        if aggregate.status.state != ClusterState.READY and aggregate.tenant_initialized:
            self._event(
                aggregate, EventType.NORMAL, "ResourcesReady",
                "Resource are ready and DB is initialized",
            )
            aggregate.status.state = ClusterState.READY
            return self._persist.run(aggregate)

        return CONTINUE
