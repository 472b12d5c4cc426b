"""KubernetesObjectStore: ObjectStore backed by the kubernetes Python client.

Custom resources (Database, Storage) go through ``CustomObjectsApi``;
built-in kinds go through their typed API classes and are converted to
plain manifests.  Supports kubeconfig file, in-cluster config, or an
explicit context.

Requires: ``pip install database-operator[k8s]``
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from database_operator.models import NamespacedName, manifest_key
from database_operator.store.base import ConflictError, NotFoundError, ObjectStoreError

logger = logging.getLogger(__name__)

CRD_GROUP = "ydb.tech"
CRD_VERSION = "v1alpha1"


def _check_kubernetes_available() -> None:
    """Raise ImportError with helpful message if kubernetes is not installed."""
    try:
        import kubernetes  # noqa: F401
    except ImportError:
        raise ImportError(
            "The 'kubernetes' package is required for KubernetesObjectStore. "
            "Install it with: pip install database-operator[k8s]"
        ) from None


@dataclass(frozen=True)
class K8sKindMapping:
    """Maps an object kind to kubernetes client API calls."""

    api_class: str
    resource: str
    group: str = ""
    version: str = ""

    @property
    def custom(self) -> bool:
        return self.api_class == "CustomObjectsApi"


K8S_KIND_MAP: dict[str, K8sKindMapping] = {
    "Database": K8sKindMapping(
        api_class="CustomObjectsApi", resource="databases",
        group=CRD_GROUP, version=CRD_VERSION,
    ),
    "Storage": K8sKindMapping(
        api_class="CustomObjectsApi", resource="storages",
        group=CRD_GROUP, version=CRD_VERSION,
    ),
    "StatefulSet": K8sKindMapping(api_class="AppsV1Api", resource="stateful_set"),
    "Service": K8sKindMapping(api_class="CoreV1Api", resource="service"),
    "ConfigMap": K8sKindMapping(api_class="CoreV1Api", resource="config_map"),
    "Secret": K8sKindMapping(api_class="CoreV1Api", resource="secret"),
}


def _translate(exc: Exception, kind: str, key: NamespacedName) -> Exception:
    """Map an ApiException onto the store's error taxonomy."""
    # Detect kubernetes ApiException by class name to avoid import
    if type(exc).__name__ == "ApiException":
        status = getattr(exc, "status", None)
        if status == 404:
            return NotFoundError(kind, key)
        if status == 409:
            return ConflictError(f"{kind} {key}: {getattr(exc, 'reason', exc)}")
        return ObjectStoreError(
            f"K8s API error ({status}) for {kind} {key}: {getattr(exc, 'reason', exc)}"
        )
    return ObjectStoreError(f"K8s client error for {kind} {key}: {exc}")


class KubernetesObjectStore:
    """ObjectStore that talks to a live cluster."""

    def __init__(
        self,
        kubeconfig: str | None = None,
        context: str | None = None,
        in_cluster: bool = False,
        api_client: Any = None,
    ) -> None:
        _check_kubernetes_available()
        self._kubeconfig = kubeconfig
        self._context = context
        self._in_cluster = in_cluster
        self._api_client = api_client

    def get(self, kind: str, key: NamespacedName) -> dict[str, Any]:
        mapping = self._mapping(kind)
        try:
            if mapping.custom:
                return self._api(mapping).get_namespaced_custom_object(
                    **self._custom_kwargs(mapping, key.namespace), name=key.name,
                )
            method = getattr(self._api(mapping), f"read_namespaced_{mapping.resource}")
            return self._to_manifest(method(name=key.name, namespace=key.namespace), kind)
        except Exception as exc:
            raise _translate(exc, kind, key) from exc

    def create(self, obj: dict[str, Any]) -> dict[str, Any]:
        kind, key, mapping = self._identity(obj)
        logger.debug("Creating %s %s", kind, key)
        try:
            if mapping.custom:
                return self._api(mapping).create_namespaced_custom_object(
                    **self._custom_kwargs(mapping, key.namespace), body=obj,
                )
            method = getattr(self._api(mapping), f"create_namespaced_{mapping.resource}")
            return self._to_manifest(method(namespace=key.namespace, body=obj), kind)
        except Exception as exc:
            raise _translate(exc, kind, key) from exc

    def update(self, obj: dict[str, Any]) -> dict[str, Any]:
        kind, key, mapping = self._identity(obj)
        logger.debug("Updating %s %s", kind, key)
        try:
            if mapping.custom:
                return self._api(mapping).replace_namespaced_custom_object(
                    **self._custom_kwargs(mapping, key.namespace), name=key.name, body=obj,
                )
            method = getattr(self._api(mapping), f"replace_namespaced_{mapping.resource}")
            return self._to_manifest(
                method(name=key.name, namespace=key.namespace, body=obj), kind,
            )
        except Exception as exc:
            raise _translate(exc, kind, key) from exc

    def update_status(self, obj: dict[str, Any]) -> dict[str, Any]:
        kind, key, mapping = self._identity(obj)
        logger.debug("Updating status of %s %s", kind, key)
        try:
            if mapping.custom:
                return self._api(mapping).replace_namespaced_custom_object_status(
                    **self._custom_kwargs(mapping, key.namespace), name=key.name, body=obj,
                )
            method = getattr(
                self._api(mapping), f"replace_namespaced_{mapping.resource}_status",
            )
            return self._to_manifest(
                method(name=key.name, namespace=key.namespace, body=obj), kind,
            )
        except Exception as exc:
            raise _translate(exc, kind, key) from exc

    # --- Private: client setup ---

    def _get_api_client(self) -> Any:
        """Build (once) a kubernetes ApiClient from constructor config."""
        if self._api_client is not None:
            return self._api_client

        from kubernetes import client, config

        if self._in_cluster:
            config.load_incluster_config()
        else:
            kwargs: dict[str, Any] = {}
            if self._kubeconfig:
                kwargs["config_file"] = self._kubeconfig
            if self._context:
                kwargs["context"] = self._context
            config.load_kube_config(**kwargs)
        self._api_client = client.ApiClient()
        return self._api_client

    def _api(self, mapping: K8sKindMapping) -> Any:
        from kubernetes import client

        api_cls = getattr(client, mapping.api_class)
        return api_cls(self._get_api_client())

    # --- Private: helpers ---

    def _mapping(self, kind: str) -> K8sKindMapping:
        mapping = K8S_KIND_MAP.get(kind)
        if mapping is None:
            raise ObjectStoreError(f"No K8s API mapping for kind: {kind}")
        return mapping

    def _identity(
        self, obj: dict[str, Any],
    ) -> tuple[str, NamespacedName, K8sKindMapping]:
        kind = obj.get("kind", "")
        return kind, manifest_key(obj), self._mapping(kind)

    def _custom_kwargs(self, mapping: K8sKindMapping, namespace: str) -> dict[str, str]:
        return {
            "group": mapping.group,
            "version": mapping.version,
            "namespace": namespace,
            "plural": mapping.resource,
        }

    def _to_manifest(self, k8s_object: Any, kind: str) -> dict[str, Any]:
        """Convert a typed kubernetes client object to a camelCase manifest."""
        if isinstance(k8s_object, dict):
            manifest = k8s_object
        else:
            manifest = self._get_api_client().sanitize_for_serialization(k8s_object)
        manifest.setdefault("kind", kind)
        return manifest
