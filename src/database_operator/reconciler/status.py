"""StatusPersistStep: the only writer of Database status."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from database_operator.events import EventType
from database_operator.reconciler.base import Halt, Step, halt

if TYPE_CHECKING:
    from database_operator.aggregate import DatabaseAggregate

logger = logging.getLogger(__name__)


class StatusPersistStep(Step):
    """Writes the aggregate's state and conditions onto a fresh copy of the Database.

    The Database is re-read right before the write so unrelated fields
    changed by other actors survive; only ``status.state`` and
    ``status.conditions`` are replaced.  Always halts: a successful write
    asks for a quick re-observe, a failed one for the default delay.
    """

    name = "persist-status"

    def run(self, aggregate: DatabaseAggregate) -> Halt:
        try:
            fresh = self._store.get(aggregate.database.kind, aggregate.key)
        except Exception as exc:
            logger.warning(
                "Failed fetching Database %s before status update: %s", aggregate.key, exc,
            )
            self._event(
                aggregate, EventType.WARNING, "ControllerError",
                "Failed fetching CR before status update",
            )
            return halt(self._delays.default, exc)

        status = fresh.get("status") or {}
        fresh["status"] = status
        status["state"] = str(aggregate.status.state)
        status["conditions"] = [
            c.model_dump(mode="json", by_alias=True) for c in aggregate.status.conditions
        ]

        try:
            self._store.update_status(fresh)
        except Exception as exc:
            logger.warning("Failed setting status of Database %s: %s", aggregate.key, exc)
            self._event(
                aggregate, EventType.WARNING, "ControllerError",
                f"failed setting status: {exc}",
            )
            return halt(self._delays.default, exc)

        logger.debug(
            "Persisted status of %s: state=%s", aggregate.key, aggregate.status.state,
        )
        return halt(self._delays.status_update)
