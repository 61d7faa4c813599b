"""Turn evaluated Jsonnet trees into filtered, ordered Kubernetes manifests."""

__version__ = "0.1.0"

__all__ = [
    "errors",
    "evaluators",
    "export",
    "extract",
    "filter",
    "namespace",
    "ordering",
    "process",
    "selection",
    "term",
    "version",
    "workflow",
]