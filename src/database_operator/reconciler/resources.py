"""ResourceSyncStep: create or update every managed sub-resource."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from database_operator.builders import ResourceBuilder, set_controller_reference
from database_operator.events import EventType
from database_operator.models import manifest_key
from database_operator.reconciler.base import CONTINUE, Step, StepResult, halt
from database_operator.store.base import OperationResult, create_or_update_ignore_status

if TYPE_CHECKING:
    from database_operator.aggregate import DatabaseAggregate

logger = logging.getLogger(__name__)


class ResourceSyncStep(Step):
    """Drives the aggregate's builders, in order, to create-or-update outcomes.

    Fails fast: the first builder or store error halts the pass and the
    next pass starts over from the storage check.
    """

    name = "sync-resources"

    def run(self, aggregate: DatabaseAggregate) -> StepResult:
        for builder in aggregate.builders:
            try:
                target = builder.placeholder(aggregate)
            except Exception as exc:
                self._event(
                    aggregate, EventType.WARNING, "ProvisioningFailed",
                    f"Failed building resources: {exc}",
                )
                return halt(self._delays.default, exc)
            description = self._describe(target)

            try:
                result = create_or_update_ignore_status(
                    self._store, target, self._mutator(aggregate, builder),
                )
            except Exception as exc:
                self._event(
                    aggregate, EventType.WARNING, "ProvisioningFailed",
                    f"{description}, failed to sync, error: {exc}",
                )
                return halt(self._delays.default, exc)

            if result in (OperationResult.CREATED, OperationResult.UPDATED):
                self._event(
                    aggregate, EventType.NORMAL, "Provisioning",
                    f"{description}, changed, result: {result}",
                )
            logger.debug("%s: %s", description, result)

        logger.info("resource sync complete for %s", aggregate.key)
        return CONTINUE

    def _mutator(self, aggregate: DatabaseAggregate, builder: ResourceBuilder) -> Any:
        def mutate(target: dict[str, Any]) -> None:
            builder.build(target)
            set_controller_reference(aggregate.database, target)

        return mutate

    @staticmethod
    def _describe(target: dict[str, Any]) -> str:
        key = manifest_key(target)
        return f"Resource: {target.get('kind')}, Namespace: {key.namespace}, Name: {key.name}"
