"""Extraction of Kubernetes objects from an evaluated JSON tree."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence

import yaml

_PRIVATE_FIELD = "__ksonnet"


def _full(path: Sequence[str]) -> str:
    return "." + ".".join(path)


def _base(path: Sequence[str]) -> str:
    return _full(path[:-1]) if path else "."


def _name(path: Sequence[str]) -> str:
    return path[-1] if path else ""


def _go_type_name(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "float64"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "[]interface {}"
    if isinstance(value, dict):
        return "map[string]interface {}"
    return type(value).__name__


def _yaml_scalar(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    text = str(value)
    dumped = yaml.safe_dump(text, width=float("inf"), allow_unicode=True)
    if dumped.endswith("\n...\n"):
        dumped = dumped[:-5]
    dumped = dumped.rstrip("\n")
    if "\n" in dumped:
        return json.dumps(text, ensure_ascii=False)
    return dumped


def _is_block(value: Any) -> bool:
    return isinstance(value, (dict, list)) and len(value) > 0


def _inline(value: Any) -> str:
    if isinstance(value, dict):
        return "{}"
    if isinstance(value, list):
        return "[]"
    return _yaml_scalar(value)


def _yaml_lines(node: Any, indent: int) -> List[str]:
    pad = " " * indent
    lines: List[str] = []
    if isinstance(node, dict):
        for key in sorted(node):
            value = node[key]
            rendered_key = _yaml_scalar(key)
            if _is_block(value):
                lines.append(f"{pad}{rendered_key}:")
                lines.extend(_yaml_lines(value, indent + 4))
            else:
                lines.append(f"{pad}{rendered_key}: {_inline(value)}")
    else:
        for item in node:
            if _is_block(item):
                sub = _yaml_lines(item, indent + 2)
                lines.append(f"{pad}- {sub[0][indent + 2:]}")
                lines.extend(sub[1:])
            else:
                lines.append(f"{pad}- {_inline(item)}")
    return lines


def _yaml_document(node: Any) -> str:
    if node is None:
        return "{}\n"
    if _is_block(node):
        return "\n".join(_yaml_lines(node, 0)) + "\n"
    return _inline(node) + "\n"


class PrimitiveReachedError(Exception):
    """The walk ended on a primitive value outside any valid Kubernetes object."""

    def __init__(
        self,
        path: str,
        key: str,
        primitive: Any,
        containing_obj: Optional[Dict[str, Any]] = None,
        containing_obj_err: Optional[Exception] = None,
    ) -> None:
        super().__init__(path, key, primitive)
        self.path = path
        self.key = key
        self.primitive = primitive
        self.containing_obj = containing_obj
        self.containing_obj_err = containing_obj_err

    def with_containing_obj(
        self, obj: Dict[str, Any], err: Optional[Exception]
    ) -> "PrimitiveReachedError":
        """Return a copy carrying ``obj`` as container, unless one is already set."""
        if self.containing_obj is not None:
            return self
        return PrimitiveReachedError(self.path, self.key, self.primitive, obj, err)

    def __str__(self) -> str:
        reason = str(self.containing_obj_err) if self.containing_obj_err is not None else "<nil>"
        message = f"found invalid Kubernetes object (at {self.path}): {reason}"
        return message + "\n\n" + _yaml_document(self.containing_obj)


def check_kubernetes_manifest(obj: Dict[str, Any]) -> None:
    """Raise ValueError unless ``obj`` has non-empty string apiVersion and kind."""
    for key in ("apiVersion", "kind"):
        value = obj.get(key)
        if value is None:
            raise ValueError(f'missing attribute "{key}"')
        if not isinstance(value, str):
            raise ValueError(
                f'attribute "{key}" is not a string, it is a {_go_type_name(value)}'
            )
        if value == "":
            raise ValueError(f'attribute "{key}" is empty')


def extract(raw: Any) -> Dict[str, Dict[str, Any]]:
    """Collect every Kubernetes object in ``raw``, keyed by its path in the tree."""
    extracted: Dict[str, Dict[str, Any]] = {}
    _walk(raw, extracted, ())
    return extracted


def _walk(node: Any, extracted: Dict[str, Dict[str, Any]], path: tuple) -> None:
    if isinstance(node, dict):
        _walk_obj(node, extracted, path)
    elif isinstance(node, list):
        for index, value in enumerate(node):
            _walk(value, extracted, path + (f"[{index}]",))
    else:
        raise PrimitiveReachedError(_base(path), _name(path), node)


def _walk_obj(
    node: Dict[str, Any], extracted: Dict[str, Dict[str, Any]], path: tuple
) -> None:
    obj = {k: v for k, v in node.items() if k != _PRIVATE_FIELD}

    try:
        check_kubernetes_manifest(obj)
    except ValueError as err:
        manifest_err: Optional[Exception] = err
    else:
        extracted[_full(path)] = obj
        return

    for key in sorted(obj):
        value = obj[key]
        if value is None:
            continue
        try:
            _walk(value, extracted, path + (key,))
        except PrimitiveReachedError as err:
            raise err.with_containing_obj(obj, manifest_err) from None