"""database-operator: reconciliation control loop for managed Database resources."""

__version__ = "0.4.0"

# Optional adapter imports (don't crash if optional deps are missing)
import contextlib

from database_operator.aggregate import DatabaseAggregate
from database_operator.builders import (
    AlreadyOwnedError,
    BuildError,
    ResourceBuilder,
    set_controller_reference,
)
from database_operator.config import OperatorConfig, RequeueDelays, find_config, load_config
from database_operator.events import (
    EventRecorder,
    EventType,
    LoggingEventRecorder,
    RecordingEventRecorder,
)
from database_operator.models import (
    ClusterState,
    Condition,
    ConditionStatus,
    ConfigurationError,
    Database,
    DatabaseSpec,
    DatabaseStatus,
    NamespacedName,
    Storage,
    TenantRequest,
)
from database_operator.reconciler import ReconciliationDriver, WaitDirective
from database_operator.store import (
    ConflictError,
    InMemoryObjectStore,
    NotFoundError,
    ObjectStore,
    ObjectStoreError,
    OperationResult,
)
from database_operator.tenant import (
    DryRunTenantService,
    ProvisioningError,
    TenantProvisioningService,
)

with contextlib.suppress(ImportError):
    from database_operator.store.k8s_store import KubernetesObjectStore

__all__ = [
    "AlreadyOwnedError",
    "BuildError",
    "ClusterState",
    "Condition",
    "ConditionStatus",
    "ConfigurationError",
    "ConflictError",
    "Database",
    "DatabaseAggregate",
    "DatabaseSpec",
    "DatabaseStatus",
    "DryRunTenantService",
    "EventRecorder",
    "EventType",
    "find_config",
    "InMemoryObjectStore",
    "KubernetesObjectStore",
    "load_config",
    "LoggingEventRecorder",
    "NamespacedName",
    "NotFoundError",
    "ObjectStore",
    "ObjectStoreError",
    "OperationResult",
    "OperatorConfig",
    "ProvisioningError",
    "ReconciliationDriver",
    "RecordingEventRecorder",
    "RequeueDelays",
    "ResourceBuilder",
    "set_controller_reference",
    "Storage",
    "TenantProvisioningService",
    "TenantRequest",
    "WaitDirective",
    "__version__",
]
