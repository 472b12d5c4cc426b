"""Reconciliation pipeline for Database resources.

Steps: DependencyWaitStep, ResourceSyncStep, ScaleWaitStep,
StatusInitStep, TenantCreationStep, StatusPersistStep.
"""

from database_operator.reconciler.base import (
    CONTINUE,
    Continue,
    Halt,
    Step,
    StepResult,
    WaitDirective,
    halt,
)
from database_operator.reconciler.dependency import DependencyWaitStep
from database_operator.reconciler.driver import ReconciliationDriver
from database_operator.reconciler.resources import ResourceSyncStep
from database_operator.reconciler.scale import ScaleWaitStep
from database_operator.reconciler.status import StatusPersistStep
from database_operator.reconciler.tenant import StatusInitStep, TenantCreationStep

__all__ = [
    "CONTINUE",
    "Continue",
    "DependencyWaitStep",
    "halt",
    "Halt",
    "ReconciliationDriver",
    "ResourceSyncStep",
    "ScaleWaitStep",
    "StatusInitStep",
    "StatusPersistStep",
    "Step",
    "StepResult",
    "TenantCreationStep",
    "WaitDirective",
]
