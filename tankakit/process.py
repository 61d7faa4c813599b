"""Conversion of an evaluated JSON tree into an ordered list of manifests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .extract import PrimitiveReachedError, check_kubernetes_manifest, extract
from .filter import Matchers, filter_manifests
from .namespace import METADATA_PREFIX, apply_namespace
from .ordering import sort_manifests

#: Label carrying the environment a resource belongs to.
LABEL_ENVIRONMENT = METADATA_PREFIX + "/environment"

Manifest = Dict[str, Any]


@dataclass
class ProcessConfig:
    """The parts of an environment that shape how its resources are processed."""

    name: str = ""
    namespace: str = ""
    inject_labels: bool = False
    default_annotations: Dict[str, str] = field(default_factory=dict)
    default_labels: Dict[str, str] = field(default_factory=dict)
    name_label: Optional[str] = None

    @property
    def environment_label(self) -> str:
        """Value written to the environment label."""
        return self.name if self.name_label is None else self.name_label


def _child_map(parent: Manifest, key: str) -> Dict[str, Any]:
    child = parent.get(key)
    if not isinstance(child, dict):
        child = {}
        parent[key] = child
    return child


def _is_list(manifest: Manifest) -> bool:
    kind = manifest.get("kind")
    return (
        isinstance(kind, str)
        and kind.endswith("List")
        and isinstance(manifest.get("items"), list)
    )


def unwrap(manifests: Dict[str, Manifest]) -> None:
    """Replace every ``*List`` manifest in place by the items it holds.

    Items are keyed ``<path>.items[<index>]``.
    """
    for path, manifest in list(manifests.items()):
        if not _is_list(manifest):
            continue

        unwrapped: Dict[str, Manifest] = {}
        for index, item in enumerate(manifest["items"]):
            name = f"{path}.items[{index}]"
            if not isinstance(item, dict):
                raise ValueError(f"invalid manifest at {name}: item is not an object")
            try:
                check_kubernetes_manifest(item)
            except ValueError as err:
                raise ValueError(f"invalid manifest at {name}: {err}") from err
            unwrapped[name] = item

        del manifests[path]
        manifests.update(unwrapped)


def label(manifests: List[Manifest], config: ProcessConfig) -> List[Manifest]:
    """Add the environment label to each manifest if the config asks for it."""
    if config.inject_labels:
        for manifest in manifests:
            labels = _child_map(_child_map(manifest, "metadata"), "labels")
            labels[LABEL_ENVIRONMENT] = config.environment_label
    return manifests


def resource_defaults(manifests: List[Manifest], config: ProcessConfig) -> List[Manifest]:
    """Add default annotations and labels where a manifest does not set them."""
    for manifest in manifests:
        if config.default_annotations:
            annotations = _child_map(_child_map(manifest, "metadata"), "annotations")
            for key, value in config.default_annotations.items():
                annotations.setdefault(key, value)
        if config.default_labels:
            labels = _child_map(_child_map(manifest, "metadata"), "labels")
            for key, value in config.default_labels.items():
                labels.setdefault(key, value)
    return manifests


def process(
    data: Any, config: ProcessConfig, exprs: Optional[Matchers] = None
) -> List[Manifest]:
    """Flatten ``data`` into Kubernetes objects, apply defaults, filter and sort."""
    if data is None:
        return []

    try:
        extracted = extract(data)
    except PrimitiveReachedError as err:
        raise ValueError(
            f"got an error while extracting env `{config.name}`: {err}"
        ) from err

    unwrap(extracted)
    manifests = list(extracted.values())

    manifests = apply_namespace(manifests, config.namespace)
    manifests = label(manifests, config)
    manifests = resource_defaults(manifests, config)

    if exprs:
        manifests = filter_manifests(manifests, exprs)

    sort_manifests(manifests)
    return manifests