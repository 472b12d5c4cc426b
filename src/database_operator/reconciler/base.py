"""Step outcomes and the shared step base class.

Every step returns either ``CONTINUE`` or a ``Halt`` carrying the
``WaitDirective`` handed back to the caller.  A directive holds the
retry-after delay and, when the halt was caused by a failure, the error.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, ClassVar

from database_operator.config import RequeueDelays
from database_operator.events import EventRecorder, EventType

if TYPE_CHECKING:
    from database_operator.aggregate import DatabaseAggregate
    from database_operator.store.base import ObjectStore


@dataclass(frozen=True)
class WaitDirective:
    """What the caller should do after a pass."""

    requeue_after: timedelta | None = None
    error: Exception | None = None

    @classmethod
    def done(cls) -> WaitDirective:
        """Fully converged, no requeue requested."""
        return cls()

    @property
    def requeue(self) -> bool:
        return self.requeue_after is not None or self.error is not None


@dataclass(frozen=True)
class Continue:
    """Proceed to the next step."""


@dataclass(frozen=True)
class Halt:
    """Stop the pipeline and hand *directive* to the caller."""

    directive: WaitDirective


StepResult = Continue | Halt

CONTINUE = Continue()


def halt(after: timedelta, error: Exception | None = None) -> Halt:
    return Halt(WaitDirective(requeue_after=after, error=error))


class Step:
    """Base class for pipeline steps.

    Subclasses implement ``run(aggregate) -> StepResult``.
    """

    name: ClassVar[str] = "step"

    def __init__(
        self,
        store: ObjectStore,
        recorder: EventRecorder,
        delays: RequeueDelays | None = None,
    ) -> None:
        self._store = store
        self._recorder = recorder
        self._delays = delays or RequeueDelays()

    def run(self, aggregate: DatabaseAggregate) -> StepResult:
        raise NotImplementedError

    def _event(
        self,
        aggregate: DatabaseAggregate,
        event_type: EventType,
        reason: str,
        message: str,
    ) -> None:
        self._recorder.record(aggregate.database, event_type, reason, message)
