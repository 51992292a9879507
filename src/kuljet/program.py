"""
Type-checked program structures: tables, endpoints and path patterns.

These are produced by the external front end and stay read-only while
requests are evaluated.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .ast import Expression
from .types import Type


@dataclass(frozen=True)
class PathPattern:
    """
    A compiled URL path pattern such as `/posts/:id`.

    Segments starting with ':' capture the matching URL segment as a path
    variable (always text).
    """
    segments: Tuple[str, ...]

    @classmethod
    def parse(cls, pattern: str) -> "PathPattern":
        parts = [p for p in pattern.strip("/").split("/") if p]
        for part in parts:
            if part.startswith(":") and len(part) == 1:
                raise ValueError(f"empty path variable in pattern {pattern!r}")
        return cls(tuple(parts))

    @property
    def variables(self) -> Tuple[str, ...]:
        return tuple(s[1:] for s in self.segments if s.startswith(":"))

    def match(self, path: str) -> Optional[Dict[str, str]]:
        """Return the path variables if `path` matches, else None."""
        parts = [p for p in path.strip("/").split("/") if p]
        if len(parts) != len(self.segments):
            return None
        path_vars = {}
        for segment, part in zip(self.segments, parts):
            if segment.startswith(":"):
                path_vars[segment[1:]] = part
            elif segment != part:
                return None
        return path_vars

    def to_route_path(self) -> str:
        """The equivalent path in the web framework's `{name}` syntax."""
        parts = ["{" + s[1:] + "}" if s.startswith(":") else s for s in self.segments]
        return "/" + "/".join(parts)

    def __str__(self) -> str:
        return "/" + "/".join(self.segments)


@dataclass(frozen=True)
class Table:
    """A table declaration: name plus ordered (field, type) pairs."""
    name: str
    fields: Tuple[Tuple[str, Type], ...]


@dataclass
class Endpoint:
    """
    A `serve` declaration.

    `type` is the declared type of `body`; a POST endpoint whose body is a
    function from a record type receives the decoded form as that record.
    """
    method: str
    path: PathPattern
    body: Expression
    type: Type

    def __post_init__(self):
        self.method = self.method.upper()


@dataclass
class Module:
    """A type-checked program."""
    tables: List[Table] = field(default_factory=list)
    endpoints: List[Endpoint] = field(default_factory=list)
