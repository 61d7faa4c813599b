"""Helpers for exporting manifests into a directory tree."""

from __future__ import annotations

import json
import logging
import os
from enum import Enum
from typing import Dict, Iterable, Mapping, Optional, Union

logger = logging.getLogger(__name__)

#: The BEL character. It marks template text where a subfolder is wanted,
#: because it never appears in a valid path by accident.
BEL_RUNE = "\x07"

#: Maps every exported file to the environment it came from.
MANIFEST_FILE = "manifest.json"


class ExportMergeStrategy(str, Enum):
    """What to do when exporting into a directory that is not empty."""

    NONE = ""
    FAIL_CONFLICTS = "fail-on-conflicts"
    REPLACE_ENVS = "replace-envs"


class ExportError(Exception):
    """Exporting manifests to disk failed."""


def replace_tmpl_text(s: str, old: str, new: str) -> str:
    """Replace ``old`` by ``new`` only outside ``{{ ... }}`` template actions."""
    parts = []
    left = s.find("{{")
    right = s.find("}}") + 2

    while left != -1 and left < right:
        parts.append(s[:left].replace(old, new))
        parts.append(s[left:right])
        s = s[right:]
        left = s.find("{{")
        right = s.find("}}") + 2

    parts.append(s.replace(old, new))
    return "".join(parts)


def finalize_export_path(rendered: str) -> str:
    """Turn a rendered file name template into a relative path.

    Path separators produced by the template become ``-``; BEL markers left
    by :func:`replace_tmpl_text` become path separators.
    """
    path = rendered.replace(os.sep, "-")
    return path.replace(BEL_RUNE, os.sep)


def file_exists(path: Union[str, os.PathLike]) -> bool:
    """True if ``path`` exists."""
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    return True


def dir_empty(path: Union[str, os.PathLike]) -> bool:
    """True if the directory is empty; a missing directory is created."""
    try:
        with os.scandir(path) as entries:
            return next(entries, None) is None
    except FileNotFoundError:
        os.makedirs(path, exist_ok=True)
        return True


def write_export_file(path: Union[str, os.PathLike], data: Union[str, bytes]) -> None:
    """Write ``data`` to ``path``, creating missing parent directories."""
    parent = os.path.dirname(os.fspath(path)) or "."
    try:
        os.makedirs(parent, mode=0o700, exist_ok=True)
    except OSError as err:
        raise ExportError(f"creating filepath '{parent}': {err}") from err

    if isinstance(data, str):
        data = data.encode("utf-8")
    with open(path, "wb") as handle:
        handle.write(data)


def _dump_json(mapping: Mapping[str, str]) -> str:
    text = json.dumps(dict(mapping), indent=4, sort_keys=True, ensure_ascii=False)
    for char, escaped in (
        ("&", "\\u0026"),
        ("<", "\\u003c"),
        (">", "\\u003e"),
        ("\u2028", "\\u2028"),
        ("\u2029", "\\u2029"),
    ):
        text = text.replace(char, escaped)
    return text


def _parse_manifest(content: bytes) -> Dict[str, str]:
    data = json.loads(content)
    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        raise ValueError("manifest file must map file names to environment names")
    return data


def export_manifest_file(
    path: Union[str, os.PathLike],
    new_file_to_env: Optional[Mapping[str, str]] = None,
    deleted_keys: Optional[Iterable[str]] = None,
) -> None:
    """Merge new entries into, and drop deleted ones from, the manifest file."""
    new_file_to_env = dict(new_file_to_env or {})
    deleted = list(deleted_keys or [])
    if not new_file_to_env and not deleted:
        return

    manifest_path = os.path.join(path, MANIFEST_FILE)
    current: Dict[str, str] = {}
    try:
        with open(manifest_path, "rb") as handle:
            content = handle.read()
    except FileNotFoundError:
        pass
    except OSError as err:
        raise ExportError(f"reading existing manifest file: {err}") from err
    else:
        try:
            current = _parse_manifest(content)
        except ValueError as err:
            raise ExportError(f"unmarshalling existing manifest file: {err}") from err

    current.update(new_file_to_env)
    for key in deleted:
        current.pop(key, None)

    write_export_file(manifest_path, _dump_json(current))


def delete_previously_exported_manifests(
    path: Union[str, os.PathLike], env_names: Iterable[str]
) -> None:
    """Delete files that the manifest file records for any of ``env_names``."""
    names = set(env_names)
    if not names:
        return

    manifest_path = os.path.join(path, MANIFEST_FILE)
    try:
        with open(manifest_path, "rb") as handle:
            content = handle.read()
    except FileNotFoundError:
        logger.warning(
            "No manifest file found at %s, skipping deletion of previously exported manifests",
            manifest_path,
        )
        return

    try:
        file_to_env = _parse_manifest(content)
    except ValueError as err:
        raise ExportError(f"unmarshalling existing manifest file: {err}") from err

    deleted = []
    for exported, env in file_to_env.items():
        if env in names:
            deleted.append(exported)
            os.remove(os.path.join(path, exported))

    export_manifest_file(path, None, deleted)


def prepare_export_dir(
    path: Union[str, os.PathLike],
    strategy: Union[ExportMergeStrategy, str] = ExportMergeStrategy.NONE,
    replaced_envs: Iterable[str] = (),
    deleted_envs: Iterable[str] = (),
) -> None:
    """Make ``path`` ready for an export according to the merge ``strategy``.

    ``replaced_envs`` are environments about to be exported again; their old
    files are removed under ``replace-envs``. Files of ``deleted_envs`` are
    always removed.
    """
    strategy = ExportMergeStrategy(strategy)

    try:
        empty = dir_empty(path)
    except OSError as err:
        raise ExportError(f"checking target dir: {err}") from err
    if not empty and strategy is ExportMergeStrategy.NONE:
        raise ExportError(
            f"output dir `{os.fspath(path)}` not empty. "
            "Pass a different --merge-strategy to ignore this"
        )

    if strategy is ExportMergeStrategy.REPLACE_ENVS:
        try:
            delete_previously_exported_manifests(path, replaced_envs)
        except (OSError, ExportError) as err:
            raise ExportError(f"deleting previously exported manifests: {err}") from err

    try:
        delete_previously_exported_manifests(path, deleted_envs)
    except (OSError, ExportError) as err:
        raise ExportError(
            "deleting previously exported manifests from deleted environments: "
            f"{err}"
        ) from err