"""ObjectStore protocol and the create-or-update helper.

The ObjectStore protocol defines how the reconciler reads and writes
cluster objects.  Objects travel as plain Kubernetes-style manifests
(``dict`` with ``apiVersion``, ``kind``, ``metadata``, ``spec``,
``status``).  Any object with ``get()``, ``create()``, ``update()`` and
``update_status()`` methods satisfies the protocol.
"""

from __future__ import annotations

import copy
import enum
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from database_operator.models import NamespacedName, manifest_key


class ObjectStoreError(Exception):
    """Raised when the object store cannot complete a request."""


class NotFoundError(ObjectStoreError):
    """Raised when the requested object does not exist."""

    def __init__(self, kind: str, key: NamespacedName) -> None:
        super().__init__(f"{kind} {key} not found")
        self.kind = kind
        self.key = key


class ConflictError(ObjectStoreError):
    """Raised when a write is based on a stale resourceVersion."""


class OperationResult(enum.StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@runtime_checkable
class StatusWriter(Protocol):
    """Writes the status sub-resource of an object."""

    def update_status(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Replace the object's status. Raises ConflictError on a stale write."""
        ...


@runtime_checkable
class ObjectStore(StatusWriter, Protocol):
    """Protocol for the cluster object store."""

    def get(self, kind: str, key: NamespacedName) -> dict[str, Any]:
        """Return a fresh copy of the object. Raises NotFoundError."""
        ...

    def create(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Create the object and return the stored copy."""
        ...

    def update(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Replace everything but the status sub-resource."""
        ...


MutateFn = Callable[[dict[str, Any]], None]


def _without_status(obj: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in obj.items() if k != "status"}


def create_or_update_ignore_status(
    store: ObjectStore,
    obj: dict[str, Any],
    mutate: MutateFn,
) -> OperationResult:
    """Create *obj* or bring the live copy in line with it.

    *obj* is a placeholder carrying at least ``kind`` and
    ``metadata.name``/``metadata.namespace``.  When the object exists the
    placeholder is overwritten with the live state before *mutate* runs,
    so builders always mutate what is actually stored.  Status changes
    made by *mutate* are discarded on update.
    """
    kind = obj["kind"]
    key = manifest_key(obj)

    try:
        existing = store.get(kind, key)
    except NotFoundError:
        mutate(obj)
        _check_identity(obj, kind, key)
        store.create(obj)
        return OperationResult.CREATED

    obj.clear()
    obj.update(copy.deepcopy(existing))
    mutate(obj)
    _check_identity(obj, kind, key)

    if _without_status(obj) == _without_status(existing):
        return OperationResult.UNCHANGED

    if "status" in existing:
        obj["status"] = copy.deepcopy(existing["status"])
    else:
        obj.pop("status", None)
    store.update(obj)
    return OperationResult.UPDATED


def _check_identity(obj: dict[str, Any], kind: str, key: NamespacedName) -> None:
    if obj.get("kind") != kind or manifest_key(obj) != key:
        raise ObjectStoreError(
            f"mutate must not change the identity of {kind} {key}"
        )
