"""Best-effort dependency ordering of Kubernetes manifests."""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

# Install order of well-known kinds; anything else goes after these.
KIND_ORDER = (
    "Namespace",
    "NetworkPolicy",
    "ResourceQuota",
    "LimitRange",
    "PodSecurityPolicy",
    "PodDisruptionBudget",
    "ServiceAccount",
    "Secret",
    "ConfigMap",
    "StorageClass",
    "PersistentVolume",
    "PersistentVolumeClaim",
    "CustomResourceDefinition",
    "ClusterRole",
    "ClusterRoleList",
    "ClusterRoleBinding",
    "ClusterRoleBindingList",
    "Role",
    "RoleList",
    "RoleBinding",
    "RoleBindingList",
    "Service",
    "DaemonSet",
    "Pod",
    "ReplicationController",
    "ReplicaSet",
    "Deployment",
    "HorizontalPodAutoscaler",
    "StatefulSet",
    "Job",
    "CronJob",
    "Ingress",
    "APIService",
)

_KIND_RANK = {kind: index for index, kind in enumerate(KIND_ORDER)}


def _metadata_field(manifest: Dict[str, Any], field: str) -> str:
    metadata = manifest.get("metadata")
    if isinstance(metadata, dict):
        value = metadata.get(field)
        if isinstance(value, str):
            return value
    return ""


def sort_key(manifest: Dict[str, Any]) -> Tuple[int, str, str, str, str]:
    """Key ordering by kind rank, kind, namespace, name and generateName."""
    kind = manifest.get("kind")
    kind = kind if isinstance(kind, str) else ""
    return (
        _KIND_RANK.get(kind, len(KIND_ORDER)),
        kind,
        _metadata_field(manifest, "namespace"),
        _metadata_field(manifest, "name"),
        _metadata_field(manifest, "generateName"),
    )


def sort_manifests(manifests: List[Dict[str, Any]]) -> None:
    """Sort manifests in place into a stable install order."""
    manifests.sort(key=sort_key)