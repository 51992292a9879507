"""
Type definitions for Kuljet programs.

Types are produced by the external type checker. The runtime consults them
in three places: the declared field types of tables (schema creation and row
decoding), the declared type of an endpoint (POST form marshalling) and the
types of standard library bindings.
"""

from dataclasses import dataclass
from typing import Optional, Tuple
from abc import ABC, abstractmethod


# =============================================================================
# Type Classes
# =============================================================================

@dataclass(frozen=True)
class Type(ABC):
    """Base class for all Kuljet types."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The type name for display/errors."""
        pass

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class PrimitiveType(Type):
    """A primitive type (text, int, bool, html, response)."""
    _name: str

    @property
    def name(self) -> str:
        return self._name


@dataclass(frozen=True)
class ListType(Type):
    """A list type: [T]."""
    element_type: Type

    @property
    def name(self) -> str:
        return f"[{self.element_type.name}]"


@dataclass(frozen=True)
class RecordType(Type):
    """A record type with ordered, named fields."""
    fields: Tuple[Tuple[str, Type], ...]

    @property
    def name(self) -> str:
        inner = ", ".join(f"{k}: {t.name}" for k, t in self.fields)
        return "{" + inner + "}"

    def field_names(self) -> Tuple[str, ...]:
        return tuple(k for k, _ in self.fields)


@dataclass(frozen=True)
class FunctionType(Type):
    """A one-argument function type."""
    param_type: Type
    return_type: Type

    @property
    def name(self) -> str:
        return f"{self.param_type.name} -> {self.return_type.name}"


@dataclass(frozen=True)
class QueryType(Type):
    """The type of a table binding: a query over the table's columns."""
    fields: Tuple[Tuple[str, Type], ...]

    @property
    def name(self) -> str:
        inner = ", ".join(f"{k}: {t.name}" for k, t in self.fields)
        return "query {" + inner + "}"


# =============================================================================
# Built-in Type Instances
# =============================================================================

TEXT = PrimitiveType("text")
INT = PrimitiveType("int")
BOOL = PrimitiveType("bool")
HTML = PrimitiveType("html")
RESPONSE = PrimitiveType("response")

# Types a table column may be declared with
COLUMN_TYPES = {
    "text": TEXT,
    "int": INT,
    "bool": BOOL,
}


def resolve_column_type(name: str) -> Optional[Type]:
    """Resolve a column type name to its Type, or None if not storable."""
    return COLUMN_TYPES.get(name)


def make_record_type(*fields: Tuple[str, Type]) -> RecordType:
    return RecordType(tuple(fields))


def record_argument_fields(t: Type) -> Optional[Tuple[Tuple[str, Type], ...]]:
    """
    Fields of the record a function type expects as its argument.

    Returns None unless `t` is a function from a record type.
    """
    if isinstance(t, FunctionType) and isinstance(t.param_type, RecordType):
        return t.param_type.fields
    return None
