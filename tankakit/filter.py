"""Filtering of manifests by ``kind/name`` regular expressions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Protocol, Union


class _Matcher(Protocol):
    def match_string(self, s: str) -> bool: ...


class BadExpressionError(ValueError):
    """A filter expression is not a valid regular expression."""

    def __init__(self, inner: Exception) -> None:
        self.inner = inner
        super().__init__(
            f"{str(inner).title()}.\n"
            "See the output filtering documentation for details on regular expressions."
        )


@dataclass(frozen=True)
class RegexMatcher:
    """Matches strings against a compiled regular expression."""

    pattern: "re.Pattern[str]"

    def match_string(self, s: str) -> bool:
        return self.pattern.search(s) is not None


@dataclass(frozen=True)
class NegMatcher:
    """Accepts everything, but ignores what the wrapped matcher matches."""

    exp: Any

    def match_string(self, s: str) -> bool:
        """Accept every string; exclusion happens in :meth:`ignore_string`."""
        return isinstance(s, str)

    def ignore_string(self, s: str) -> bool:
        return bool(self.exp.match_string(s))


class Matchers(list):
    """A collection of matchers; some may also ignore strings."""

    def match_string(self, s: str) -> bool:
        """True if at least one matcher matches."""
        return any(exp.match_string(s) for exp in self)

    def ignore_string(self, s: str) -> bool:
        """True if at least one ignoring matcher ignores."""
        return any(
            exp.ignore_string(s) for exp in self if hasattr(exp, "ignore_string")
        )


def regexps(patterns: Iterable[Union[str, "re.Pattern[str]"]]) -> Matchers:
    """Build matchers from regular expressions."""
    return Matchers(RegexMatcher(re.compile(p)) for p in patterns)


def str_exps(*args: str) -> Matchers:
    """Build anchored, case-insensitive matchers; a leading ``!`` negates."""
    exps = Matchers()
    for raw in args:
        body = raw[1:] if raw.startswith("!") else raw
        try:
            compiled = re.compile(f"^{body}\\Z", re.IGNORECASE)
        except re.error as err:
            raise BadExpressionError(err) from err
        matcher: Any = RegexMatcher(compiled)
        if raw.startswith("!"):
            matcher = NegMatcher(matcher)
        exps.append(matcher)
    return exps


def kind_name(manifest: Dict[str, Any]) -> str:
    """Return ``kind/name`` of a manifest."""
    kind = manifest.get("kind")
    metadata = manifest.get("metadata")
    name = metadata.get("name") if isinstance(metadata, dict) else None
    return f"{kind if isinstance(kind, str) else ''}/{name if isinstance(name, str) else ''}"


def filter_manifests(
    manifests: Iterable[Dict[str, Any]], exprs: Matchers
) -> List[Dict[str, Any]]:
    """Keep manifests matched by at least one expression and ignored by none."""
    result = []
    for manifest in manifests:
        name = kind_name(manifest)
        if exprs.match_string(name) and not exprs.ignore_string(name):
            result.append(manifest)
    return result