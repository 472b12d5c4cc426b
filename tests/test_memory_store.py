"""Tests for InMemoryObjectStore and create_or_update_ignore_status."""

from __future__ import annotations

from typing import Any

import pytest

from database_operator.models import NamespacedName
from database_operator.store.base import (
    ConflictError,
    NotFoundError,
    ObjectStore,
    ObjectStoreError,
    OperationResult,
    create_or_update_ignore_status,
)
from database_operator.store.memory import InMemoryObjectStore

KEY = NamespacedName(namespace="ydb", name="cfg")


def _config_map(data: dict[str, str] | None = None) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": {"name": "cfg", "namespace": "ydb"},
        "data": data or {"a": "1"},
    }


class TestProtocol:
    def test_satisfies_object_store(self) -> None:
        assert isinstance(InMemoryObjectStore(), ObjectStore)


class TestInMemoryObjectStore:
    def test_get_missing_raises(self) -> None:
        store = InMemoryObjectStore()
        with pytest.raises(NotFoundError) as info:
            store.get("ConfigMap", KEY)
        assert info.value.kind == "ConfigMap"
        assert info.value.key == KEY

    def test_create_assigns_uid_and_version(self) -> None:
        store = InMemoryObjectStore()
        created = store.create(_config_map())
        assert created["metadata"]["uid"]
        assert created["metadata"]["resourceVersion"]
        assert store.get("ConfigMap", KEY)["data"] == {"a": "1"}

    def test_create_existing_conflicts(self) -> None:
        store = InMemoryObjectStore([_config_map()])
        with pytest.raises(ConflictError, match="already exists"):
            store.create(_config_map())

    def test_get_returns_copy(self) -> None:
        store = InMemoryObjectStore([_config_map()])
        store.get("ConfigMap", KEY)["data"]["a"] = "changed"
        assert store.get("ConfigMap", KEY)["data"]["a"] == "1"

    def test_update_preserves_status(self) -> None:
        obj = _config_map()
        obj["status"] = {"phase": "kept"}
        store = InMemoryObjectStore([obj])
        live = store.get("ConfigMap", KEY)
        live["status"] = {"phase": "overwritten"}
        live["data"] = {"a": "2"}
        store.update(live)
        stored = store.get("ConfigMap", KEY)
        assert stored["data"] == {"a": "2"}
        assert stored["status"] == {"phase": "kept"}

    def test_update_stale_version_conflicts(self) -> None:
        store = InMemoryObjectStore([_config_map()])
        first = store.get("ConfigMap", KEY)
        second = store.get("ConfigMap", KEY)
        store.update(first)
        with pytest.raises(ConflictError, match="modified concurrently"):
            store.update(second)

    def test_update_status_only_touches_status(self) -> None:
        store = InMemoryObjectStore([_config_map()])
        live = store.get("ConfigMap", KEY)
        live["data"] = {"a": "ignored"}
        live["status"] = {"state": "Ready"}
        store.update_status(live)
        stored = store.get("ConfigMap", KEY)
        assert stored["data"] == {"a": "1"}
        assert stored["status"] == {"state": "Ready"}

    def test_update_status_stale_conflicts(self) -> None:
        store = InMemoryObjectStore([_config_map()])
        stale = store.get("ConfigMap", KEY)
        store.update_status(store.get("ConfigMap", KEY))
        with pytest.raises(ConflictError):
            store.update_status(stale)

    def test_update_missing_raises(self) -> None:
        with pytest.raises(NotFoundError):
            InMemoryObjectStore().update(_config_map())

    def test_identity_required(self) -> None:
        with pytest.raises(ObjectStoreError, match="kind"):
            InMemoryObjectStore().create({"metadata": {"name": "x"}})

    def test_journal_records_writes_not_seeds(self) -> None:
        store = InMemoryObjectStore([_config_map()])
        assert store.journal == []
        store.update_status(store.get("ConfigMap", KEY))
        assert [(e.verb, e.kind) for e in store.writes()] == [("update_status", "ConfigMap")]
        assert store.writes("Database") == []


class TestCreateOrUpdateIgnoreStatus:
    def test_creates_when_missing(self) -> None:
        store = InMemoryObjectStore()

        def mutate(obj: dict[str, Any]) -> None:
            obj["data"] = {"a": "1"}

        result = create_or_update_ignore_status(store, _config_map({}), mutate)
        assert result == OperationResult.CREATED
        assert store.get("ConfigMap", KEY)["data"] == {"a": "1"}

    def test_unchanged_does_not_write(self) -> None:
        store = InMemoryObjectStore([_config_map()])

        def mutate(obj: dict[str, Any]) -> None:
            obj["data"] = {"a": "1"}

        result = create_or_update_ignore_status(store, _config_map(), mutate)
        assert result == OperationResult.UNCHANGED
        assert store.journal == []

    def test_updates_on_change(self) -> None:
        store = InMemoryObjectStore([_config_map()])

        def mutate(obj: dict[str, Any]) -> None:
            obj["data"]["b"] = "2"

        result = create_or_update_ignore_status(store, _config_map(), mutate)
        assert result == OperationResult.UPDATED
        assert store.get("ConfigMap", KEY)["data"] == {"a": "1", "b": "2"}

    def test_mutate_sees_live_object(self) -> None:
        live = _config_map({"live": "yes"})
        store = InMemoryObjectStore([live])
        seen: list[dict[str, Any]] = []

        def mutate(obj: dict[str, Any]) -> None:
            seen.append(dict(obj["data"]))

        create_or_update_ignore_status(store, _config_map({}), mutate)
        assert seen == [{"live": "yes"}]

    def test_status_only_change_is_unchanged(self) -> None:
        obj = _config_map()
        obj["status"] = {"phase": "a"}
        store = InMemoryObjectStore([obj])

        def mutate(target: dict[str, Any]) -> None:
            target["status"] = {"phase": "b"}

        result = create_or_update_ignore_status(store, _config_map(), mutate)
        assert result == OperationResult.UNCHANGED
        assert store.get("ConfigMap", KEY)["status"] == {"phase": "a"}

    def test_mutate_cannot_rename(self) -> None:
        store = InMemoryObjectStore([_config_map()])

        def mutate(obj: dict[str, Any]) -> None:
            obj["metadata"]["name"] = "other"

        with pytest.raises(ObjectStoreError, match="identity"):
            create_or_update_ignore_status(store, _config_map(), mutate)

    def test_mutate_error_propagates(self) -> None:
        store = InMemoryObjectStore()

        def mutate(obj: dict[str, Any]) -> None:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            create_or_update_ignore_status(store, _config_map(), mutate)
        assert store.journal == []
