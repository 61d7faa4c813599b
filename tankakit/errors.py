"""Errors raised while locating and loading environments."""

from __future__ import annotations

import json
from typing import List, Sequence


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


class NoEnvError(Exception):
    """The evaluated Jsonnet holds no Environment object."""

    def __init__(self, path: str) -> None:
        super().__init__(path)
        self.path = path

    def __str__(self) -> str:
        return f"unable to find an Environment in '{self.path}'"


class MultipleEnvsError(Exception):
    """More than one Environment matched where a single one was needed."""

    def __init__(self, path: str, given_name: str, found_envs: Sequence[str]) -> None:
        super().__init__(path, given_name, list(found_envs))
        self.path = path
        self.given_name = given_name
        self.found_envs: List[str] = list(found_envs)

    def __str__(self) -> str:
        listing = "\n - ".join(self.found_envs)
        if self.given_name:
            return (
                f"found multiple Environments in {_quote(self.path)} matching "
                f"{_quote(self.given_name)}. Provide a more specific name that "
                f"matches a single one: \n - {listing}"
            )
        return (
            f"found multiple Environments in {_quote(self.path)}. "
            f"Use `--name` to select a single one: \n - {listing}"
        )


class ParallelError(Exception):
    """Errors collected while processing several items concurrently."""

    def __init__(self, errors: Sequence[BaseException]) -> None:
        super().__init__(list(errors))
        self.errors = list(errors)

    def __str__(self) -> str:
        body = "".join(f"- {err}\n\n" for err in self.errors)
        return "Errors occurred during parallel processing:\n\n" + body