"""
Runtime values for the Kuljet interpreter.

Value is a closed set of immutable variants. Every consumer that dispatches
on the variant ends its isinstance chain by raising a contract violation, so
a variant that slips through unhandled is reported rather than ignored.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Iterable, Iterator, Optional, Tuple, Union

from ..errors import error_wrong_kind

if TYPE_CHECKING:
    import sqlite3
    from .environment import Environment
    from ..ast import Expression
    from ..store import Query


class Value:
    """Base class for all runtime values."""
    kind = "value"


@dataclass(frozen=True)
class Text(Value):
    text: str
    kind = "text"


@dataclass(frozen=True)
class Int(Value):
    value: int
    kind = "int"


@dataclass(frozen=True)
class Bool(Value):
    value: bool
    kind = "bool"


@dataclass(frozen=True)
class ListValue(Value):
    items: Tuple[Value, ...] = ()
    kind = "list"

    def __iter__(self) -> Iterator[Value]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class Record(Value):
    """
    An ordered record. `fields` holds (name, value) pairs with unique names;
    iteration follows construction order.
    """
    fields: Tuple[Tuple[str, Value], ...] = ()
    kind = "record"

    def get(self, name: str) -> Optional[Value]:
        for key, value in self.fields:
            if key == name:
                return value
        return None

    def keys(self) -> Tuple[str, ...]:
        return tuple(k for k, _ in self.fields)

    def items(self) -> Tuple[Tuple[str, Value], ...]:
        return self.fields


@dataclass(frozen=True, eq=False)
class Closure(Value):
    """A lambda together with the environment it was created in."""
    env: "Environment"
    param: str
    body: "Expression"
    kind = "function"


@dataclass(frozen=True, eq=False)
class Builtin(Value):
    """A host-implemented one-argument function."""
    name: str
    function: Callable[[Value], Value]
    kind = "function"


@dataclass(frozen=True, eq=False)
class Action(Value):
    """
    A deferred computation bound to a plain name.

    Runs every time the name is referenced; the result is never cached.
    """
    name: str
    run: Callable[["sqlite3.Connection"], Value]
    kind = "action"


@dataclass(frozen=True)
class QueryValue(Value):
    """A table binding: a query ready for parameterized execution."""
    query: "Query"
    kind = "query"


class HtmlFragment(Value):
    """Base class for HTML fragments (raw markup and tag constructors)."""
    kind = "html"


@dataclass(frozen=True)
class RawHtml(HtmlFragment):
    """Finished markup, emitted verbatim."""
    text: str


@dataclass(frozen=True)
class Tag(HtmlFragment):
    """A bare tag constructor awaiting attributes or a body."""
    name: str


@dataclass(frozen=True)
class TagWithAttrs(HtmlFragment):
    """A tag constructor with attributes, awaiting a body."""
    name: str
    attrs: Record


@dataclass(frozen=True)
class ResponseValue(Value):
    """An explicit HTTP response."""
    status: int
    headers: Tuple[Tuple[str, str], ...] = ()
    body: bytes = b""
    kind = "response"


# Convenience constructors

def text_val(s: str) -> Text:
    """Create a text value."""
    return Text(str(s))


def int_val(n: int) -> Int:
    """Create an integer value."""
    return Int(int(n))


def bool_val(b: bool) -> Bool:
    """Create a boolean value."""
    return Bool(bool(b))


def list_val(items: Iterable[Value]) -> ListValue:
    """Create a list value."""
    return ListValue(tuple(items))


def record_val(fields: Union[Dict[str, Value], Iterable[Tuple[str, Value]]]) -> Record:
    """
    Create a record value.

    Repeated names resolve last-write-wins; the name keeps the position of
    its first occurrence.
    """
    pairs = fields.items() if isinstance(fields, dict) else fields
    merged: Dict[str, Value] = {}
    for key, value in pairs:
        merged[key] = value
    return Record(tuple(merged.items()))


# Projections used at operator, attribute and field-access sites

def value_as_text(v: Value, where: str = "text") -> str:
    if isinstance(v, Text):
        return v.text
    raise error_wrong_kind("text", v, where)


def value_as_int(v: Value, where: str = "arithmetic") -> int:
    if isinstance(v, Int):
        return v.value
    raise error_wrong_kind("int", v, where)


def value_as_bool(v: Value, where: str = "logic") -> bool:
    if isinstance(v, Bool):
        return v.value
    raise error_wrong_kind("bool", v, where)


def value_as_record(v: Value, where: str = "field access") -> Record:
    if isinstance(v, Record):
        return v
    raise error_wrong_kind("record", v, where)
