"""DependencyWaitStep: gate on the referenced storage cluster."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from database_operator.events import EventType
from database_operator.models import ClusterState, Storage
from database_operator.reconciler.base import CONTINUE, Step, StepResult, halt
from database_operator.store.base import NotFoundError

if TYPE_CHECKING:
    from database_operator.aggregate import DatabaseAggregate

logger = logging.getLogger(__name__)


class DependencyWaitStep(Step):
    """Halts until the referenced Storage exists and reports Ready.

    Missing or unhealthy storage is an expected wait and carries no
    error; any other fetch failure is propagated.
    """

    name = "wait-for-storage"

    def run(self, aggregate: DatabaseAggregate) -> StepResult:
        key = aggregate.storage_key
        try:
            storage = Storage.model_validate(self._store.get("Storage", key))
        except NotFoundError:
            self._event(
                aggregate, EventType.WARNING, "Pending",
                f"Storage ({key}) not found.",
            )
            return halt(self._delays.storage_await)
        except Exception as exc:
            self._event(
                aggregate, EventType.WARNING, "Pending",
                f"Failed to get Storage ({key}) resource, error: {exc}",
            )
            return halt(self._delays.storage_await, exc)

        if storage.status.state != ClusterState.READY:
            logger.info("Storage %s is %r, waiting", key, storage.status.state)
            self._event(
                aggregate, EventType.WARNING, "Pending",
                f"Referenced storage cluster ({key}) in a bad state: "
                f"{storage.status.state} != {ClusterState.READY}",
            )
            return halt(self._delays.storage_await)

        aggregate.storage = storage
        return CONTINUE
