"""Checking the running version against an environment's version constraint."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

DEFAULT_DEV_VERSION = "dev"

#: Version of the running code; development builds skip constraint checks.
CURRENT_VERSION = DEFAULT_DEV_VERSION


class VersionError(Exception):
    """The version constraint is invalid or not satisfied."""


_VERSION_RE = re.compile(
    r"^v?([0-9]+)(?:\.([0-9]+))?(?:\.([0-9]+))?"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

_TERM_RE = re.compile(
    r"^(!=|>=|=>|<=|=<|~>|>|<|=|~|\^)?v?([0-9]+|[xX*])"
    r"(?:\.([0-9]+|[xX*]))?(?:\.([0-9]+|[xX*]))?"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

_HYPHEN_RE = re.compile(r"(\S+)\s+-\s+(\S+)")
_OP_SPACE_RE = re.compile(r"(!=|>=|=>|<=|=<|~>|>|<|=|~|\^)\s+")
_WILDCARDS = ("x", "X", "*")
_OP_ALIASES = {"=>": ">=", "=<": "<=", "~>": "~", "": "="}


@dataclass(frozen=True)
class _Version:
    major: int
    minor: int
    patch: int
    prerelease: str = ""

    @property
    def core(self) -> Tuple[int, int, int]:
        return (self.major, self.minor, self.patch)


def _compare_prerelease(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return 1
    if not b:
        return -1
    a_parts, b_parts = a.split("."), b.split(".")
    for x, y in zip(a_parts, b_parts):
        if x == y:
            continue
        x_num, y_num = x.isdigit(), y.isdigit()
        if x_num and y_num:
            return -1 if int(x) < int(y) else 1
        if x_num:
            return -1
        if y_num:
            return 1
        return -1 if x < y else 1
    return -1 if len(a_parts) < len(b_parts) else 1


def _compare(a: _Version, b: _Version) -> int:
    if a.core != b.core:
        return -1 if a.core < b.core else 1
    return _compare_prerelease(a.prerelease, b.prerelease)


def _parse_version(text: str) -> _Version:
    match = _VERSION_RE.match(text)
    if match is None:
        raise ValueError("Invalid Semantic Version")
    major, minor, patch, pre, _ = match.groups()
    return _Version(int(major), int(minor or 0), int(patch or 0), pre or "")


@dataclass(frozen=True)
class _Term:
    op: str
    base: _Version
    dirty: bool
    upper: Optional[_Version]
    minor_given: bool

    def _tilde_upper(self) -> _Version:
        if self.minor_given:
            return _Version(self.base.major, self.base.minor + 1, 0)
        return _Version(self.base.major + 1, 0, 0)

    def _below_upper(self, v: _Version) -> bool:
        return self.upper is None or _compare(v, self.upper) < 0

    def _equal(self, v: _Version) -> bool:
        if self.dirty:
            return _compare(v, self.base) >= 0 and self._below_upper(v)
        return _compare(v, self.base) == 0

    def satisfied_by(self, v: _Version) -> bool:
        if self.op == "!=":
            return not self._equal(v)
        if v.prerelease and not self.base.prerelease:
            return False

        cmp = _compare(v, self.base)
        if self.op == "=":
            return self._equal(v)
        if self.op == ">":
            if self.dirty:
                return self.upper is not None and _compare(v, self.upper) >= 0
            return cmp > 0
        if self.op == ">=":
            return cmp >= 0
        if self.op == "<":
            return cmp < 0
        if self.op == "<=":
            return self._below_upper(v) if self.dirty else cmp <= 0
        if self.op == "~":
            if self.dirty and self.upper is None:
                return True
            return cmp >= 0 and _compare(v, self._tilde_upper()) < 0
        if self.op == "^":
            if self.dirty and self.upper is None:
                return True
            return cmp >= 0 and v.major == self.base.major
        raise ValueError(f"improper constraint: {self.op}")


def _parse_term(token: str) -> _Term:
    match = _TERM_RE.match(token)
    if match is None:
        raise ValueError(f"improper constraint: {token}")
    op, major, minor, patch, pre, _ = match.groups()
    op = _OP_ALIASES.get(op or "", op or "")

    parts = [major, minor, patch]
    wild_at = next((i for i, p in enumerate(parts) if p in _WILDCARDS), None)
    numbers = [
        int(p) if p is not None and (wild_at is None or i < wild_at) else 0
        for i, p in enumerate(parts)
    ]
    base = _Version(numbers[0], numbers[1], numbers[2], pre or "")

    upper: Optional[_Version] = None
    if wild_at == 1:
        upper = _Version(numbers[0] + 1, 0, 0)
    elif wild_at == 2:
        upper = _Version(numbers[0], numbers[1] + 1, 0)

    minor_given = minor is not None and (wild_at is None or wild_at > 1)
    return _Term(op, base, wild_at is not None, upper, minor_given)


def _parse_constraint(text: str) -> List[List[_Term]]:
    groups: List[List[_Term]] = []
    for alternative in text.split("||"):
        alternative = _HYPHEN_RE.sub(r">=\1, <=\2", alternative)
        alternative = _OP_SPACE_RE.sub(r"\1", alternative)
        tokens = [t for t in re.split(r"[,\s]+", alternative) if t]
        if not tokens:
            raise ValueError(f"improper constraint: {text}")
        groups.append([_parse_term(token) for token in tokens])
    return groups


def check_version(constraint: str, current: Optional[str] = None) -> bool:
    """Verify that ``current`` satisfies the semantic version ``constraint``.

    Returns True when the check ran and passed, False when it was skipped
    (no constraint, or a development build). Raises VersionError otherwise.
    """
    if not constraint:
        return False
    if current is None:
        current = CURRENT_VERSION
    if current == DEFAULT_DEV_VERSION:
        return False

    try:
        groups = _parse_constraint(constraint)
    except ValueError as err:
        raise VersionError(
            f"parsing version constraint: '{err}'. "
            "Please check 'spec.expectVersions.tanka'"
        ) from err

    try:
        version = _parse_version(current)
    except ValueError as err:
        raise VersionError(
            f"'{current}' is not a valid semantic version: '{err}'.\n"
            "This likely means your build of Tanka is broken, as this is a "
            "compile-time value. When in doubt, please raise an issue"
        ) from err

    if not any(all(term.satisfied_by(version) for term in group) for group in groups):
        raise VersionError(
            f"current version '{current}' does not satisfy the version required "
            f"by the environment: '{constraint}'. You likely need to use another "
            "version of Tanka"
        )
    return True