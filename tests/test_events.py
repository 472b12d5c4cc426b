"""Tests for the event recorders."""

from __future__ import annotations

import logging
import sys
from unittest.mock import MagicMock, patch

import pytest

from database_operator.events import (
    EventRecorder,
    EventType,
    KubernetesEventRecorder,
    LoggingEventRecorder,
    RecordingEventRecorder,
)
from database_operator.models import Database, NamespacedName


@pytest.fixture()
def database(make_database) -> Database:
    manifest = make_database()
    manifest["metadata"]["uid"] = "uid-1"
    manifest["metadata"]["resourceVersion"] = "42"
    return Database.model_validate(manifest)


class TestProtocol:
    def test_builtin_recorders_satisfy_protocol(self) -> None:
        assert isinstance(RecordingEventRecorder(), EventRecorder)
        assert isinstance(LoggingEventRecorder(), EventRecorder)
        assert isinstance(KubernetesEventRecorder(MagicMock()), EventRecorder)


class TestRecordingEventRecorder:
    def test_records_in_order(self, database: Database) -> None:
        recorder = RecordingEventRecorder()
        recorder.record(database, EventType.NORMAL, "Provisioning", "first")
        recorder.record(database, EventType.WARNING, "Pending", "second")

        assert [e.message for e in recorder.events] == ["first", "second"]
        assert recorder.events[0].subject == NamespacedName(namespace="ydb", name="testdb")
        assert recorder.reasons() == ["Provisioning", "Pending"]
        assert recorder.reasons(EventType.WARNING) == ["Pending"]

    def test_clear(self, database: Database) -> None:
        recorder = RecordingEventRecorder()
        recorder.record(database, EventType.NORMAL, "Initialized", "done")
        recorder.clear()
        assert recorder.events == []


class TestLoggingEventRecorder:
    def test_warning_level(self, database: Database, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="database_operator.events"):
            LoggingEventRecorder().record(database, EventType.WARNING, "Pending", "no storage")
        assert caplog.records[0].levelno == logging.WARNING
        assert "Pending: no storage" in caplog.records[0].getMessage()

    def test_normal_level(self, database: Database, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="database_operator.events"):
            LoggingEventRecorder().record(database, EventType.NORMAL, "Initialized", "ok")
        assert caplog.records[0].levelno == logging.INFO


class TestKubernetesEventRecorder:
    def test_creates_event(self, database: Database) -> None:
        mock_k8s = MagicMock()
        core = mock_k8s.client.CoreV1Api.return_value
        api_client = MagicMock()
        with patch.dict(sys.modules, {"kubernetes": mock_k8s, "kubernetes.client": mock_k8s.client}):
            KubernetesEventRecorder(api_client).record(
                database, EventType.WARNING, "Pending", "Storage not found.",
            )

        mock_k8s.client.CoreV1Api.assert_called_once_with(api_client)
        kwargs = core.create_namespaced_event.call_args.kwargs
        assert kwargs["namespace"] == "ydb"
        body = kwargs["body"]
        assert body["type"] == "Warning"
        assert body["reason"] == "Pending"
        assert body["involvedObject"]["uid"] == "uid-1"
        assert body["involvedObject"]["kind"] == "Database"
        assert body["involvedObject"]["resourceVersion"] == "42"
        assert body["source"] == {"component": "database-operator"}

    def test_delivery_failure_is_swallowed(
        self, database: Database, caplog: pytest.LogCaptureFixture,
    ) -> None:
        mock_k8s = MagicMock()
        mock_k8s.client.CoreV1Api.return_value.create_namespaced_event.side_effect = (
            RuntimeError("forbidden")
        )
        with patch.dict(sys.modules, {"kubernetes": mock_k8s, "kubernetes.client": mock_k8s.client}), \
                caplog.at_level(logging.WARNING, logger="database_operator.events"):
            KubernetesEventRecorder(MagicMock()).record(
                database, EventType.NORMAL, "Initialized", "ok",
            )

        assert "Failed to record" in caplog.text
