"""Shared manifest factories for reconciler tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

NAMESPACE = "ydb"


def database_manifest(
    name: str = "testdb",
    namespace: str = NAMESPACE,
    nodes: int = 3,
    variant: str | None = "dedicated",
    state: str = "",
    conditions: list[dict[str, Any]] | None = None,
    storage: str = "storage",
    shared_database: str = "shared",
    extra_variant: str | None = None,
) -> dict[str, Any]:
    spec: dict[str, Any] = {
        "storageClusterRef": {"name": storage},
        "nodes": nodes,
        "domain": "Root",
    }
    units = [{"unitKind": "ssd", "count": 1}]
    for v in (variant, extra_variant):
        if v == "dedicated":
            spec["resources"] = {"storageUnits": units}
        elif v == "shared":
            spec["sharedResources"] = {"storageUnits": units}
        elif v == "serverless":
            spec["serverlessResources"] = {"sharedDatabaseRef": {"name": shared_database}}

    manifest: dict[str, Any] = {
        "apiVersion": "ydb.tech/v1alpha1",
        "kind": "Database",
        "metadata": {"name": name, "namespace": namespace, "labels": {"team": "core"}},
        "spec": spec,
    }
    if state or conditions:
        manifest["status"] = {"state": state, "conditions": conditions or []}
    return manifest


def storage_manifest(
    name: str = "storage",
    namespace: str = NAMESPACE,
    state: str = "Ready",
    tls: bool = False,
) -> dict[str, Any]:
    return {
        "apiVersion": "ydb.tech/v1alpha1",
        "kind": "Storage",
        "metadata": {"name": name, "namespace": namespace},
        "spec": {"service": {"grpc": {"tls": {"enabled": tls}}}},
        "status": {"state": state},
    }


def statefulset_manifest(
    name: str = "testdb",
    namespace: str = NAMESPACE,
    replicas: int = 3,
) -> dict[str, Any]:
    return {
        "apiVersion": "apps/v1",
        "kind": "StatefulSet",
        "metadata": {"name": name, "namespace": namespace},
        "spec": {"replicas": replicas},
        "status": {"replicas": replicas},
    }


def tenant_initialized(status: str = "True") -> dict[str, Any]:
    return {
        "type": "TenantInitialized",
        "status": status,
        "reason": "Completed" if status == "True" else "InProgress",
        "message": "",
        "lastTransitionTime": "2025-06-15T12:00:00Z",
    }


@pytest.fixture()
def make_database() -> Callable[..., dict[str, Any]]:
    return database_manifest


@pytest.fixture()
def make_storage() -> Callable[..., dict[str, Any]]:
    return storage_manifest


@pytest.fixture()
def make_statefulset() -> Callable[..., dict[str, Any]]:
    return statefulset_manifest


@pytest.fixture()
def make_condition() -> Callable[..., dict[str, Any]]:
    return tenant_initialized
