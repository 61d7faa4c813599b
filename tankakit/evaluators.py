"""Jsonnet snippets used to evaluate and select environments."""

from __future__ import annotations

from typing import Iterable

_HAS_TYPE = "std.objectHas(object, 'apiVersion') && std.objectHas(object, 'kind')"


def _env_walker(func: str, on_object: str, prune: bool) -> str:
    """Jsonnet that walks ``main`` and applies ``on_object`` to typed objects."""
    walk = (
        "if std.isObject(object) then (\n"
        f"    if {_HAS_TYPE}\n"
        f"    then {on_object}\n"
        f"    else std.mapWithKey(function(key, obj) {func}(obj), object)\n"
        "  )\n"
        f"  else if std.isArray(object) then std.map(function(obj) {func}(obj), object)\n"
        "  else {}"
    )
    if prune:
        walk = f"std.prune(\n  {walk}\n  )"
    return f"\nlocal {func}(object) =\n  {walk};\n\n{func}(main)\n"


#: Finds Environment objects, stripped of their ``data``.
METADATA_EVAL_SCRIPT = _env_walker(
    "noDataEnv",
    "(if object.kind == 'Environment' then object { data+:: {} } else {})",
    prune=True,
)


def pattern_eval_script(expr: str) -> str:
    """Script selecting ``expr`` from ``main``, by index or by field."""
    if expr.startswith("["):
        return f"main{expr}"
    return f"main.{expr}"


def build_eval_script(entrypoint: str, eval_script: str, tla_names: Iterable[str] = ()) -> str:
    """Wrap ``eval_script`` so that ``main`` is the imported entrypoint.

    Top-level arguments are forwarded to the entrypoint by name.
    """
    tla = ", ".join(f"{name}={name}" for name in tla_names)
    if not tla:
        return f"\n  local main = (import '{entrypoint}');\n  {eval_script}\n"
    return (
        f"\nfunction({tla})\n"
        f"  local main = (import '{entrypoint}')({tla});\n"
        f"  {eval_script}\n"
    )


def metadata_single_env_eval_script(name: str) -> str:
    """Script returning the metadata of the Environment named exactly ``name``."""
    condition = "object.kind == 'Environment' && object.metadata.name == '" + name + "'"
    return _env_walker(
        "singleEnv",
        "(if " + condition + " then object { data:: super.data } else {})",
        prune=True,
    )


def single_env_eval_script(name: str) -> str:
    """Script returning the Environments whose name contains ``name``."""
    condition = (
        "object.kind == 'Environment' && std.member(object.metadata.name, '" + name + "')"
    )
    return _env_walker(
        "singleEnv",
        "(if " + condition + " then object else {})",
        prune=False,
    )