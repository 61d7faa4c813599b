"""Decisions shared by the apply, diff, delete and prune workflows."""

from __future__ import annotations

import os
import stat
from enum import Enum
from typing import Optional, Sequence, Tuple, Union

APPLY_STRATEGY_SERVER = "server"
APPLY_STRATEGY_CLIENT = "client"


class AutoApprove(str, Enum):
    """When the interactive approval may be skipped."""

    NEVER = "never"
    ALWAYS = "always"
    NO_CHANGES = "if-no-changes"


class ApplyStrategyUnknownError(ValueError):
    """An apply strategy was requested that does not exist."""

    def __init__(self, requested: str) -> None:
        self.requested = requested
        super().__init__(
            f"apply strategy `{requested}` does not exist. Pick one of: [server, client]."
        )


class IncompleteSpecError(ValueError):
    """The environment lacks what is needed to reach a cluster."""


def resolve_apply_strategy(requested: str = "", spec_strategy: str = "") -> str:
    """Pick the apply strategy: the request, then the spec, then ``client``."""
    strategy = requested or spec_strategy or APPLY_STRATEGY_CLIENT
    if strategy not in (APPLY_STRATEGY_CLIENT, APPLY_STRATEGY_SERVER):
        raise ApplyStrategyUnknownError(strategy)
    return strategy


def default_diff_strategy(
    apply_strategy: str, requested_diff: str = "", spec_diff: str = ""
) -> str:
    """Diff strategy to record in the spec; server apply defaults to server diff."""
    if apply_strategy == APPLY_STRATEGY_SERVER and not requested_diff and not spec_diff:
        return APPLY_STRATEGY_SERVER
    return spec_diff


def needs_confirmation(
    auto_approve: Union[AutoApprove, str], no_changes: bool, dry_run: str = ""
) -> bool:
    """Whether the user must confirm before changes are made."""
    if auto_approve == AutoApprove.ALWAYS:
        return False
    if no_changes and auto_approve == AutoApprove.NO_CHANGES:
        return False
    return not dry_run


def confirm_message(
    action: str, namespace: str, cluster: str, server: str, context: str
) -> str:
    """The question shown before changing a cluster."""
    return (
        f"{action} namespace '{namespace}' of cluster '{cluster}' "
        f"at '{server}' using context '{context}'."
    )


def check_connect_spec(
    api_server: str, context_names: Optional[Sequence[str]], namespace: str
) -> None:
    """Raise IncompleteSpecError unless the spec can be used to connect."""
    problems = ""
    contexts = list(context_names or [])
    if not api_server and not contexts:
        problems += (
            "  * spec.apiServer|spec.contextNames: No Kubernetes cluster endpoint "
            "or context names specified. Please specify only one."
        )
    elif api_server and contexts:
        problems += (
            "  * spec.apiServer|spec.contextNames: These fields are mutually "
            "exclusive, please only specify one."
        )
    if not namespace:
        problems += "  * spec.namespace: Default namespace missing"
    if problems:
        raise IncompleteSpecError(
            "your Environment's spec.json seems incomplete:\n"
            f"{problems}\n\nPlease see the configuration reference"
        )


def parse_jsonnet_implementation(name: str = "") -> Tuple[str, Optional[str]]:
    """Parse a Jsonnet implementation setting.

    Returns ``("go", None)`` for the built-in evaluator or ``("binary", path)``
    for an external executable, which must exist and be executable.
    """
    prefix = "binary:"
    if name.startswith(prefix):
        bin_path = name[len(prefix):]
        try:
            mode = os.stat(bin_path).st_mode
        except OSError as err:
            raise ValueError(f'binary "{bin_path}" does not exist') from err
        if not mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH):
            raise ValueError(f'binary "{bin_path}" is not executable')
        return ("binary", bin_path)

    if name in ("go", ""):
        return ("go", None)
    raise ValueError(f"unknown jsonnet implementation: {name}")