"""
Evaluation environments.

An Environment is an immutable chain of frames. Extending it returns a new
environment whose first frame holds the new bindings and whose parent is the
old environment, so closures can share the environment they were created in
without ever seeing later bindings.
"""

import sqlite3
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

from .values import Value, QueryValue, Tag, Text
from .stdlib import HTML_TAGS, stdlib_values
from ..program import Table
from ..store import Query


_EMPTY: Mapping[str, Value] = MappingProxyType({})


@dataclass(frozen=True, eq=False)
class Environment:
    """
    A single immutable frame plus the environment it extends.

    Lookups search this frame first, then the parent chain.
    """
    frame: Mapping[str, Value] = field(default_factory=lambda: _EMPTY)
    parent: Optional["Environment"] = None

    @classmethod
    def from_bindings(cls, bindings: Mapping[str, Value]) -> "Environment":
        return cls(MappingProxyType(dict(bindings)))

    def lookup(self, name: str) -> Optional[Value]:
        """Look up a name in this frame or its parents."""
        env = self
        while env is not None:
            if name in env.frame:
                return env.frame[name]
            env = env.parent
        return None

    def extend(self, bindings: Mapping[str, Value]) -> "Environment":
        """A new environment where `bindings` shadow this one."""
        if not bindings:
            return self
        return Environment(MappingProxyType(dict(bindings)), self)

    def bind(self, name: str, value: Value) -> "Environment":
        return self.extend({name: value})

    def union(self, other: "Environment") -> "Environment":
        """Right-biased union: names bound in `other` win."""
        return self.extend(other.flatten())

    def flatten(self) -> Dict[str, Value]:
        """All visible bindings, innermost first wins."""
        chain = []
        env = self
        while env is not None:
            chain.append(env.frame)
            env = env.parent
        merged: Dict[str, Value] = {}
        for frame in reversed(chain):
            merged.update(frame)
        return merged


@dataclass(frozen=True)
class EvalContext:
    """The store handle and environment an expression is evaluated under."""
    store: sqlite3.Connection
    env: Environment

    def with_env(self, env: Environment) -> "EvalContext":
        return EvalContext(self.store, env)


def html_environment() -> Dict[str, Value]:
    return {tag: Tag(tag) for tag in HTML_TAGS}


def table_environment(tables: Iterable[Table]) -> Dict[str, Value]:
    return {table.name: QueryValue(Query.for_table(table)) for table in tables}


def path_environment(path_vars: Mapping[str, str]) -> Dict[str, Value]:
    return {name: Text(value) for name, value in path_vars.items()}


def build_environment(
    tables: Iterable[Table],
    path_vars: Mapping[str, str],
) -> Environment:
    """
    The initial environment for one request.

    Layers, later ones winning on collision:
    standard library < HTML tags < tables < path variables.
    """
    env = Environment.from_bindings(stdlib_values())
    env = env.extend(html_environment())
    env = env.extend(table_environment(tables))
    env = env.extend(path_environment(path_vars))
    return env
