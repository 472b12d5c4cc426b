"""Event recorders.

Events are fire-and-forget notifications attached to a Database.  A
recorder must never raise into the reconciler: delivery failures are
logged and dropped.

Built-in recorders:
- RecordingEventRecorder: keeps events in memory (tests, simulations)
- LoggingEventRecorder: writes events to the ``logging`` tree
- KubernetesEventRecorder: creates ``core/v1`` Events (requires the k8s extra)

Custom recorders just need a ``record(subject, event_type, reason, message)``
method.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

from database_operator.models import Database, NamespacedName

logger = logging.getLogger(__name__)


class EventType(enum.StrEnum):
    NORMAL = "Normal"
    WARNING = "Warning"


@runtime_checkable
class EventRecorder(Protocol):
    """Protocol for event recorders."""

    def record(
        self,
        subject: Database,
        event_type: EventType,
        reason: str,
        message: str,
    ) -> None:
        """Record a single event about *subject*."""
        ...


@dataclass(frozen=True)
class RecordedEvent:
    subject: NamespacedName
    event_type: EventType
    reason: str
    message: str


class RecordingEventRecorder:
    """Keeps every event in ``events``, oldest first."""

    def __init__(self) -> None:
        self.events: list[RecordedEvent] = []

    def record(
        self,
        subject: Database,
        event_type: EventType,
        reason: str,
        message: str,
    ) -> None:
        self.events.append(RecordedEvent(subject.key, event_type, reason, message))

    def reasons(self, event_type: EventType | None = None) -> list[str]:
        return [
            e.reason for e in self.events
            if event_type is None or e.event_type == event_type
        ]

    def clear(self) -> None:
        self.events.clear()


class LoggingEventRecorder:
    """Writes events to a logger: Warning events at WARNING, the rest at INFO."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def record(
        self,
        subject: Database,
        event_type: EventType,
        reason: str,
        message: str,
    ) -> None:
        level = logging.WARNING if event_type == EventType.WARNING else logging.INFO
        self._log.log(level, "[%s] %s %s: %s", subject.key, event_type, reason, message)


class KubernetesEventRecorder:
    """Creates ``core/v1`` Events through the kubernetes Python client.

    Requires: ``pip install database-operator[k8s]``
    """

    def __init__(self, api_client: Any, component: str = "database-operator") -> None:
        self._api_client = api_client
        self._component = component

    def record(
        self,
        subject: Database,
        event_type: EventType,
        reason: str,
        message: str,
    ) -> None:
        try:
            from kubernetes import client

            core = client.CoreV1Api(self._api_client)
            core.create_namespaced_event(
                namespace=subject.metadata.namespace,
                body=self._build_event(subject, event_type, reason, message),
            )
        except Exception:
            logger.warning(
                "Failed to record %s event %s for %s", event_type, reason, subject.key,
                exc_info=True,
            )

    def _build_event(
        self,
        subject: Database,
        event_type: EventType,
        reason: str,
        message: str,
    ) -> dict[str, Any]:
        now = datetime.now(tz=UTC).isoformat()
        return {
            "apiVersion": "v1",
            "kind": "Event",
            "metadata": {
                "generateName": f"{subject.metadata.name}.",
                "namespace": subject.metadata.namespace,
            },
            "involvedObject": {
                "apiVersion": subject.api_version,
                "kind": subject.kind,
                "name": subject.metadata.name,
                "namespace": subject.metadata.namespace,
                "uid": subject.metadata.uid,
                "resourceVersion": subject.metadata.resource_version,
            },
            "reason": reason,
            "message": message,
            "type": str(event_type),
            "source": {"component": self._component},
            "firstTimestamp": now,
            "lastTimestamp": now,
            "count": 1,
        }
