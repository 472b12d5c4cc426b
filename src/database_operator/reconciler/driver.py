"""ReconciliationDriver: one level-triggered pass over a Database.

The driver loads the Database, builds the per-pass aggregate and runs
the steps in a fixed order, stopping at the first halt:

  1. Check the resource variant (exactly one must be set)
  2. Wait for the referenced Storage to be Ready
  3. Create or update the managed sub-resources
  4. Wait for the workload to scale, derive Ready
  5. Announce tenant initialization   (only until TenantInitialized)
  6. Create the tenant                (only until TenantInitialized)

It never raises for expected failures: every outcome is a WaitDirective
with an optional error for the caller's scheduler.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from database_operator.aggregate import DatabaseAggregate
from database_operator.builders import BuilderFactory, no_builders
from database_operator.config import OperatorConfig
from database_operator.events import EventRecorder, EventType
from database_operator.models import ConfigurationError, NamespacedName
from database_operator.reconciler.base import Halt, Step, StepResult, WaitDirective, halt
from database_operator.reconciler.dependency import DependencyWaitStep
from database_operator.reconciler.resources import ResourceSyncStep
from database_operator.reconciler.scale import ScaleWaitStep
from database_operator.reconciler.status import StatusPersistStep
from database_operator.reconciler.tenant import StatusInitStep, TenantCreationStep
from database_operator.store.base import NotFoundError, ObjectStore
from database_operator.tenant import TenantProvisioningService

logger = logging.getLogger(__name__)


class ReconciliationDriver:
    """Composes the reconciliation steps into a short-circuiting pipeline."""

    def __init__(
        self,
        store: ObjectStore,
        recorder: EventRecorder,
        tenants: TenantProvisioningService,
        config: OperatorConfig | None = None,
        builder_factory: BuilderFactory = no_builders,
    ) -> None:
        self._store = store
        self._recorder = recorder
        self._config = config or OperatorConfig()
        self._builder_factory = builder_factory

        delays = self._config.requeue_delays
        persist = StatusPersistStep(store, recorder, delays)
        self._delays = delays
        self._steps: Sequence[Step] = (
            DependencyWaitStep(store, recorder, delays),
            ResourceSyncStep(store, recorder, delays),
            ScaleWaitStep(store, recorder, delays, persist=persist),
        )
        self._tenant_steps: Sequence[Step] = (
            StatusInitStep(store, recorder, delays, persist=persist),
            TenantCreationStep(store, recorder, tenants, delays, persist=persist),
        )

    def reconcile(self, key: NamespacedName) -> WaitDirective:
        """Load the Database at *key* and run one pass over it."""
        try:
            manifest = self._store.get("Database", key)
        except NotFoundError:
            logger.info("Database %s not found, nothing to reconcile", key)
            return WaitDirective.done()
        except Exception as exc:
            logger.warning("Failed to load Database %s: %s", key, exc)
            return WaitDirective(requeue_after=self._delays.default, error=exc)

        try:
            aggregate = DatabaseAggregate.from_manifest(
                manifest, self._builder_factory, self._config,
            )
        except Exception as exc:
            logger.warning("Failed to parse Database %s: %s", key, exc)
            return WaitDirective(requeue_after=self._delays.default, error=exc)

        return self.run(aggregate)

    def run(self, aggregate: DatabaseAggregate) -> WaitDirective:
        """Run the pipeline over *aggregate* and return the caller's directive."""
        logger.info("reconciling Database %s", aggregate.key)

        checked = self._check_resource_config(aggregate)
        if checked is not None:
            return checked.directive

        for step in self._steps:
            result = self._run_step(step, aggregate)
            if isinstance(result, Halt):
                return result.directive

        if not aggregate.tenant_initialized:
            for step in self._tenant_steps:
                result = self._run_step(step, aggregate)
                if isinstance(result, Halt):
                    return result.directive

        logger.info("Database %s converged", aggregate.key)
        return WaitDirective.done()

    def _check_resource_config(self, aggregate: DatabaseAggregate) -> Halt | None:
        try:
            aggregate.spec.resource_config()
        except ConfigurationError as exc:
            self._recorder.record(
                aggregate.database, EventType.WARNING, "ControllerError", str(exc),
            )
            return halt(self._delays.default, exc)
        return None

    def _run_step(self, step: Step, aggregate: DatabaseAggregate) -> StepResult:
        logger.info("running step %s", step.name)
        try:
            result = step.run(aggregate)
        except Exception as exc:
            logger.exception("Step %s failed unexpectedly for %s", step.name, aggregate.key)
            return halt(self._delays.default, exc)

        if isinstance(result, Halt):
            directive = result.directive
            logger.info(
                "step %s halted %s: requeue_after=%s error=%s",
                step.name, aggregate.key, directive.requeue_after, directive.error,
            )
        return result
