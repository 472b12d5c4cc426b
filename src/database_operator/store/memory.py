"""In-memory ObjectStore.

Mimics the API server semantics the reconciler relies on: uid and
resourceVersion assignment, optimistic concurrency on writes, and a
status sub-resource that ``update()`` never touches.  Every write is
appended to ``journal`` so callers can assert on mutations.
"""

from __future__ import annotations

import copy
import threading
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from database_operator.models import NamespacedName, manifest_key
from database_operator.store.base import ConflictError, NotFoundError, ObjectStoreError


@dataclass(frozen=True)
class JournalEntry:
    verb: str
    kind: str
    key: NamespacedName


class InMemoryObjectStore:
    """Thread-safe, dict-backed ObjectStore."""

    def __init__(self, objects: Iterable[dict[str, Any]] | None = None) -> None:
        self._lock = threading.Lock()
        self._objects: dict[tuple[str, NamespacedName], dict[str, Any]] = {}
        self._version = 0
        self.journal: list[JournalEntry] = []
        for obj in objects or []:
            self.seed(obj)

    def seed(self, obj: dict[str, Any]) -> None:
        """Insert *obj* as-is (status included) without journaling it."""
        with self._lock:
            stored = copy.deepcopy(obj)
            self._stamp(stored, new=True)
            self._objects[(stored["kind"], manifest_key(stored))] = stored

    def get(self, kind: str, key: NamespacedName) -> dict[str, Any]:
        with self._lock:
            stored = self._objects.get((kind, key))
            if stored is None:
                raise NotFoundError(kind, key)
            return copy.deepcopy(stored)

    def create(self, obj: dict[str, Any]) -> dict[str, Any]:
        kind, key = self._identity(obj)
        with self._lock:
            if (kind, key) in self._objects:
                raise ConflictError(f"{kind} {key} already exists")
            stored = copy.deepcopy(obj)
            self._stamp(stored, new=True)
            self._objects[(kind, key)] = stored
            self.journal.append(JournalEntry("create", kind, key))
            return copy.deepcopy(stored)

    def update(self, obj: dict[str, Any]) -> dict[str, Any]:
        kind, key = self._identity(obj)
        with self._lock:
            current = self._current(kind, key, obj)
            stored = copy.deepcopy(obj)
            if "status" in current:
                stored["status"] = copy.deepcopy(current["status"])
            else:
                stored.pop("status", None)
            self._stamp(stored, new=False, previous=current)
            self._objects[(kind, key)] = stored
            self.journal.append(JournalEntry("update", kind, key))
            return copy.deepcopy(stored)

    def update_status(self, obj: dict[str, Any]) -> dict[str, Any]:
        kind, key = self._identity(obj)
        with self._lock:
            current = self._current(kind, key, obj)
            stored = copy.deepcopy(current)
            stored["status"] = copy.deepcopy(obj.get("status") or {})
            self._stamp(stored, new=False, previous=current)
            self._objects[(kind, key)] = stored
            self.journal.append(JournalEntry("update_status", kind, key))
            return copy.deepcopy(stored)

    def writes(self, kind: str | None = None) -> list[JournalEntry]:
        return [e for e in self.journal if kind is None or e.kind == kind]

    # --- Private ---

    def _identity(self, obj: dict[str, Any]) -> tuple[str, NamespacedName]:
        kind = obj.get("kind")
        key = manifest_key(obj)
        if not kind or not key.name:
            raise ObjectStoreError("object must carry kind and metadata.name")
        return kind, key

    def _current(
        self, kind: str, key: NamespacedName, obj: dict[str, Any],
    ) -> dict[str, Any]:
        current = self._objects.get((kind, key))
        if current is None:
            raise NotFoundError(kind, key)
        sent = (obj.get("metadata") or {}).get("resourceVersion")
        if sent and sent != current["metadata"]["resourceVersion"]:
            raise ConflictError(
                f"{kind} {key} was modified concurrently "
                f"(resourceVersion {sent} != {current['metadata']['resourceVersion']})"
            )
        return current

    def _stamp(
        self,
        obj: dict[str, Any],
        new: bool,
        previous: dict[str, Any] | None = None,
    ) -> None:
        self._version += 1
        metadata = obj.setdefault("metadata", {})
        if new:
            metadata.setdefault("uid", uuid.uuid4().hex)
        elif previous is not None:
            metadata["uid"] = previous["metadata"]["uid"]
        metadata["resourceVersion"] = str(self._version)
