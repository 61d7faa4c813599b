"""Injection of the environment's default namespace into manifests."""

from __future__ import annotations

from typing import Any, Dict, List

METADATA_PREFIX = "tanka.dev"

#: Set on a resource to override whether ``metadata.namespace`` is injected.
ANNOTATION_NAMESPACED = METADATA_PREFIX + "/namespaced"

# Built-in cluster-wide kinds, which never get a namespace automatically.
CLUSTER_WIDE_KINDS = frozenset(
    {
        "APIService",
        "CertificateSigningRequest",
        "ClusterRole",
        "ClusterRoleBinding",
        "ComponentStatus",
        "CSIDriver",
        "CSINode",
        "CustomResourceDefinition",
        "MutatingWebhookConfiguration",
        "Namespace",
        "Node",
        "NodeMetrics",
        "PersistentVolume",
        "PodSecurityPolicy",
        "PriorityClass",
        "RuntimeClass",
        "SelfSubjectAccessReview",
        "SelfSubjectRulesReview",
        "StorageClass",
        "SubjectAccessReview",
        "TokenReview",
        "ValidatingWebhookConfiguration",
        "VolumeAttachment",
    }
)


def _child_map(parent: Dict[str, Any], key: str) -> Dict[str, Any]:
    child = parent.get(key)
    if not isinstance(child, dict):
        child = {}
        parent[key] = child
    return child


def apply_namespace(manifests: List[Dict[str, Any]], default: str) -> List[Dict[str, Any]]:
    """Set ``default`` as namespace on every namespaced manifest lacking one.

    Manifests are changed in place; the same list is returned.
    """
    if not default:
        return manifests

    for manifest in manifests:
        namespaced = manifest.get("kind") not in CLUSTER_WIDE_KINDS
        metadata = _child_map(manifest, "metadata")
        annotations = _child_map(metadata, "annotations")

        if ANNOTATION_NAMESPACED in annotations:
            namespaced = annotations[ANNOTATION_NAMESPACED] == "true"

        if namespaced and "namespace" not in metadata:
            metadata["namespace"] = default

        if not annotations:
            del metadata["annotations"]

    return manifests