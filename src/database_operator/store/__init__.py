"""Object store backends: in-memory and Kubernetes."""

from database_operator.store.base import (
    ConflictError,
    NotFoundError,
    ObjectStore,
    ObjectStoreError,
    OperationResult,
    StatusWriter,
    create_or_update_ignore_status,
)
from database_operator.store.memory import InMemoryObjectStore

__all__ = [
    "ConflictError",
    "create_or_update_ignore_status",
    "InMemoryObjectStore",
    "NotFoundError",
    "ObjectStore",
    "ObjectStoreError",
    "OperationResult",
    "StatusWriter",
]
