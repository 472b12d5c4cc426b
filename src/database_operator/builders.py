"""ResourceBuilder protocol and owner-reference handling.

A builder owns one managed sub-resource of a Database (a StatefulSet, a
Service, a ConfigMap...).  ``placeholder()`` names the object; ``build()``
writes the desired state into whatever is currently stored.  Concrete
builders live outside this package.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from database_operator.models import Database

if TYPE_CHECKING:
    from database_operator.aggregate import DatabaseAggregate


class BuildError(Exception):
    """Raised when a builder cannot produce its resource."""


class AlreadyOwnedError(BuildError):
    """Raised when the target is already controlled by another object."""


@runtime_checkable
class ResourceBuilder(Protocol):
    """Protocol for managed sub-resource builders."""

    def placeholder(self, aggregate: DatabaseAggregate) -> dict[str, Any]:
        """Return a skeleton with ``apiVersion``, ``kind`` and ``metadata`` set."""
        ...

    def build(self, target: dict[str, Any]) -> None:
        """Mutate *target* into the desired state. Raises BuildError."""
        ...


BuilderFactory = Callable[[Database], Sequence[ResourceBuilder]]


def no_builders(database: Database) -> Sequence[ResourceBuilder]:
    return ()


def set_controller_reference(owner: Database, target: dict[str, Any]) -> None:
    """Mark *owner* as the controller of *target* for garbage collection.

    Idempotent: an existing reference to the same owner is refreshed in place.
    """
    metadata = target.setdefault("metadata", {})
    namespace = metadata.get("namespace", "")
    if namespace and namespace != owner.metadata.namespace:
        raise BuildError(
            f"cross-namespace owner references are disallowed: owner "
            f"{owner.key} cannot control an object in namespace {namespace}"
        )

    ref = {
        "apiVersion": owner.api_version,
        "kind": owner.kind,
        "name": owner.metadata.name,
        "uid": owner.metadata.uid,
        "controller": True,
        "blockOwnerDeletion": True,
    }

    refs: list[dict[str, Any]] = metadata.setdefault("ownerReferences", [])
    for i, existing in enumerate(refs):
        if existing.get("controller") and existing.get("uid") != owner.metadata.uid:
            raise AlreadyOwnedError(
                f"{target.get('kind')} {metadata.get('name')} is already controlled by "
                f"{existing.get('kind')} {existing.get('name')}"
            )
        if existing.get("uid") == owner.metadata.uid:
            refs[i] = ref
            return
    refs.append(ref)
