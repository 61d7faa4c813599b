"""Selection of inline Environment objects from evaluated Jsonnet."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from .errors import MultipleEnvsError
from .extract import extract
from .filter import filter_manifests, str_exps
from .process import unwrap

Manifest = Dict[str, Any]


def _name(env: Manifest) -> str:
    metadata = env.get("metadata")
    name = metadata.get("name") if isinstance(metadata, dict) else None
    return name if isinstance(name, str) else ""


def extract_envs(data: Any) -> List[Manifest]:
    """Return every Environment object found in ``data``."""
    extracted = extract(data)
    unwrap(extracted)
    return filter_manifests(extracted.values(), str_exps("Environment/.*"))


def select_environment(envs: Iterable[Manifest], path: str, name: str = "") -> Manifest:
    """Pick the single Environment matching ``name``.

    Environments whose name contains ``name`` are candidates; an exact match
    wins over partial ones.
    """
    candidates = [env for env in envs if not name or name in _name(env)]

    if len(candidates) > 1:
        exact = next((env for env in candidates if _name(env) == name), None)
        if exact is None:
            raise MultipleEnvsError(path, name, sorted(_name(env) for env in candidates))
        candidates = [exact]

    if not candidates:
        raise LookupError(
            f"found no matching environments; run 'tk env list {path}' "
            "to view available options"
        )

    return candidates[0]