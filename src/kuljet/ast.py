"""
Abstract Syntax Tree (AST) node definitions for Kuljet expressions.

The tree handed to the interpreter has already been parsed and type-checked:
identifiers are known to be bound, operators are applied to operands of
matching kinds, and query nodes carry a compiled query descriptor.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple, Union

from .store import Query


class BinaryOperator(Enum):
    """Binary operators. `and`/`or` never short-circuit."""
    EQ = "=="
    NE = "!="
    PLUS = "+"
    MINUS = "-"
    MUL = "*"
    DIV = "/"
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="
    AND = "and"
    OR = "or"


ARITHMETIC_OPERATORS = frozenset({
    BinaryOperator.PLUS, BinaryOperator.MINUS, BinaryOperator.MUL, BinaryOperator.DIV,
})

ORDERING_OPERATORS = frozenset({
    BinaryOperator.LT, BinaryOperator.GT, BinaryOperator.LE, BinaryOperator.GE,
})

LOGICAL_OPERATORS = frozenset({BinaryOperator.AND, BinaryOperator.OR})


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass
class Expression:
    """Base class for all expressions."""
    pass


@dataclass
class Literal(Expression):
    """A string, integer or boolean literal."""
    value: Union[str, int, bool]


@dataclass
class Var(Expression):
    """A variable reference."""
    name: str


@dataclass
class App(Expression):
    """Application of a function (or HTML tag) to one argument."""
    function: Expression
    argument: Expression


@dataclass
class Abs(Expression):
    """A one-parameter lambda abstraction."""
    param: str
    body: Expression


@dataclass
class ListExp(Expression):
    """A list construction (e.g., [a, b, c])."""
    elements: List[Expression] = field(default_factory=list)


@dataclass
class RecordExp(Expression):
    """A record construction (e.g., {class: "x", id: "y"}).

    Fields are kept in source order; a repeated key is legal in the tree.
    """
    fields: List[Tuple[str, Expression]] = field(default_factory=list)


@dataclass
class Dot(Expression):
    """Field access (e.g., post.title)."""
    record: Expression
    field: str


@dataclass
class BinOp(Expression):
    """A binary operation (e.g., a + b, x and y)."""
    operator: BinaryOperator
    left: Expression
    right: Expression


@dataclass
class Yield(Expression):
    """A query comprehension.

    `query` is the compiled descriptor; `arguments` fill its `?` placeholders
    in order; `body` is evaluated once per row with the row's columns bound.
    """
    query: Query
    arguments: List[Expression]
    body: Expression


@dataclass
class Insert(Expression):
    """Insert a record into a table, then evaluate `and_then`."""
    table: str
    value: Expression
    and_then: Expression


# Convenience constructors, mostly for building trees in tests

def lit(value: Union[str, int, bool]) -> Literal:
    return Literal(value)


def var(name: str) -> Var:
    return Var(name)


def app(function: Expression, *arguments: Expression) -> Expression:
    """Curried application of `function` to each argument in turn."""
    result = function
    for argument in arguments:
        result = App(result, argument)
    return result
