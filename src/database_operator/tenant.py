"""Tenant provisioning protocol and built-in DryRunTenantService.

The TenantProvisioningService protocol defines how a logical tenant is
created inside the storage cluster.  Implementations must be idempotent:
the reconciler retries ``create()`` on the next pass after any failure.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from database_operator.models import TenantRequest

logger = logging.getLogger(__name__)


class ProvisioningError(Exception):
    """Raised when a tenant cannot be created."""


@runtime_checkable
class TenantProvisioningService(Protocol):
    """Protocol for tenant provisioning backends."""

    def create(self, request: TenantRequest) -> None:
        """Create the tenant described by *request*. Raises ProvisioningError."""
        ...


class DryRunTenantService:
    """Service that records requests without touching a cluster.

    Useful for simulations and tests.  Set ``fail_with`` to make every
    ``create()`` raise it.
    """

    def __init__(self, fail_with: Exception | None = None) -> None:
        self.requests: list[TenantRequest] = []
        self.fail_with = fail_with

    def create(self, request: TenantRequest) -> None:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        logger.info(
            "[dry-run] Would create tenant %s on %s (shared=%s)",
            request.path, request.storage_endpoint, request.shared,
        )
