"""Helpers for status condition lists.

Follows the Kubernetes convention: a condition's ``lastTransitionTime``
only moves when its status changes, while reason and message are always
refreshed.
"""

from __future__ import annotations

from datetime import UTC, datetime

from database_operator.models import Condition, ConditionStatus

TENANT_INITIALIZED = "TenantInitialized"
REASON_IN_PROGRESS = "InProgress"
REASON_COMPLETED = "Completed"


def find_condition(conditions: list[Condition], condition_type: str) -> Condition | None:
    for cond in conditions:
        if cond.type == condition_type:
            return cond
    return None


def is_condition_true(conditions: list[Condition], condition_type: str) -> bool:
    cond = find_condition(conditions, condition_type)
    return cond is not None and cond.status == ConditionStatus.TRUE


def set_condition(
    conditions: list[Condition],
    new: Condition,
    now: datetime | None = None,
) -> bool:
    """Insert or update *new* in place. Returns True if anything changed."""
    now = now or datetime.now(tz=UTC)
    existing = find_condition(conditions, new.type)
    if existing is None:
        conditions.append(new.model_copy(update={
            "last_transition_time": new.last_transition_time or now,
        }))
        return True

    changed = False
    if existing.status != new.status:
        existing.status = new.status
        existing.last_transition_time = new.last_transition_time or now
        changed = True
    if existing.reason != new.reason:
        existing.reason = new.reason
        changed = True
    if existing.message != new.message:
        existing.message = new.message
        changed = True
    return changed
