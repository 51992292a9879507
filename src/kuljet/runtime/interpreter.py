"""
Tree-walking interpreter for Kuljet expressions.

Evaluates AST nodes under an EvalContext (store handle + environment) to
produce Values. Store I/O happens only at Yield and Insert nodes and when a
deferred action is referenced.
"""

import sqlite3
from typing import List

from .values import (
    Value, Text, Int, Bool, ListValue, Record,
    Closure, Builtin, Action, ResponseValue,
    HtmlFragment, RawHtml, Tag, TagWithAttrs,
    record_val, value_as_int, value_as_bool, value_as_record,
)
from .environment import Environment, EvalContext
from .html import emit, element
from .query import execute, decode_row, insert
from ..ast import (
    Expression, Literal, Var, App, Abs, ListExp, RecordExp, Dot, BinOp,
    Yield, Insert, BinaryOperator,
)
from ..errors import (
    error_unbound_identifier, error_wrong_kind, error_missing_field,
    error_not_applicable, error_division_by_zero,
)


def values_equal(a: Value, b: Value) -> bool:
    """Structural equality between two values of the same kind."""
    if isinstance(a, Text) and isinstance(b, Text):
        return a.text == b.text
    elif isinstance(a, Int) and isinstance(b, Int):
        return a.value == b.value
    elif isinstance(a, Bool) and isinstance(b, Bool):
        return a.value == b.value
    elif isinstance(a, ListValue) and isinstance(b, ListValue):
        return len(a) == len(b) and all(values_equal(x, y) for x, y in zip(a, b))
    elif isinstance(a, Record) and isinstance(b, Record):
        if set(a.keys()) != set(b.keys()):
            return False
        return all(values_equal(value, b.get(name)) for name, value in a.items())
    elif isinstance(a, HtmlFragment) and isinstance(b, HtmlFragment):
        return a == b
    elif isinstance(a, ResponseValue) and isinstance(b, ResponseValue):
        return a == b
    raise error_wrong_kind(f"a value comparable with {a.kind}", b, "equality")


def _cmp(x, y) -> int:
    return (x > y) - (x < y)


def compare_values(a: Value, b: Value) -> int:
    """Total order over text, integers, booleans and lists of those."""
    if isinstance(a, Text) and isinstance(b, Text):
        return _cmp(a.text, b.text)
    elif isinstance(a, Int) and isinstance(b, Int):
        return _cmp(a.value, b.value)
    elif isinstance(a, Bool) and isinstance(b, Bool):
        return _cmp(a.value, b.value)
    elif isinstance(a, ListValue) and isinstance(b, ListValue):
        for x, y in zip(a, b):
            c = compare_values(x, y)
            if c != 0:
                return c
        return _cmp(len(a), len(b))
    raise error_wrong_kind(f"an ordered value matching {a.kind}", b, "comparison")


def truncating_div(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    if b == 0:
        raise error_division_by_zero()
    q = abs(a) // abs(b)
    return -q if (a < 0) != (b < 0) else q


class Interpreter:
    """
    Tree-walking interpreter for Kuljet expressions.

    Evaluates AST nodes by dispatching to kind-specific methods. The
    interpreter holds no per-request state; everything request-scoped lives
    in the EvalContext.
    """

    def evaluate(self, expr: Expression, ctx: EvalContext) -> Value:
        """Evaluate an expression to produce a Value."""
        return self._evaluate(expr, ctx)

    def apply(self, function: Value, argument: Value, ctx: EvalContext) -> Value:
        """Apply a function or tag value to an already-evaluated argument."""
        if isinstance(function, Tag):
            if isinstance(argument, Record):
                return TagWithAttrs(function.name, argument)
            return RawHtml(element(function.name, emit(argument)))
        elif isinstance(function, TagWithAttrs):
            return RawHtml(element(function.name, emit(argument), function.attrs))
        elif isinstance(function, Closure):
            env = function.env.bind(function.param, argument)
            return self._evaluate(function.body, ctx.with_env(env))
        elif isinstance(function, Builtin):
            return function.function(argument)
        raise error_not_applicable(function)

    def _evaluate(self, expr: Expression, ctx: EvalContext) -> Value:
        if isinstance(expr, Literal):
            return self._eval_literal(expr)
        elif isinstance(expr, Var):
            return self._eval_var(expr, ctx)
        elif isinstance(expr, App):
            return self._eval_app(expr, ctx)
        elif isinstance(expr, Abs):
            return Closure(ctx.env, expr.param, expr.body)
        elif isinstance(expr, ListExp):
            return ListValue(tuple(self._evaluate(e, ctx) for e in expr.elements))
        elif isinstance(expr, RecordExp):
            return record_val([(k, self._evaluate(e, ctx)) for k, e in expr.fields])
        elif isinstance(expr, Dot):
            return self._eval_dot(expr, ctx)
        elif isinstance(expr, BinOp):
            return self._eval_binary_op(expr, ctx)
        elif isinstance(expr, Yield):
            return self._eval_yield(expr, ctx)
        elif isinstance(expr, Insert):
            return self._eval_insert(expr, ctx)
        raise error_wrong_kind("expression", expr, "evaluation")

    def _eval_literal(self, lit: Literal) -> Value:
        # bool is a subclass of int
        if isinstance(lit.value, bool):
            return Bool(lit.value)
        elif isinstance(lit.value, int):
            return Int(lit.value)
        elif isinstance(lit.value, str):
            return Text(lit.value)
        raise error_wrong_kind("string, int or bool literal", lit.value, "literal")

    def _eval_var(self, ref: Var, ctx: EvalContext) -> Value:
        value = ctx.env.lookup(ref.name)
        if value is None:
            raise error_unbound_identifier(ref.name)
        if isinstance(value, Action):
            return value.run(ctx.store)
        return value

    def _eval_app(self, node: App, ctx: EvalContext) -> Value:
        function = self._evaluate(node.function, ctx)
        argument = self._evaluate(node.argument, ctx)
        return self.apply(function, argument, ctx)

    def _eval_dot(self, node: Dot, ctx: EvalContext) -> Value:
        fields = value_as_record(self._evaluate(node.record, ctx))
        value = fields.get(node.field)
        if value is None:
            raise error_missing_field(node.field)
        return value

    def _eval_binary_op(self, op: BinOp, ctx: EvalContext) -> Value:
        # Both operands, always, even for and/or
        left = self._evaluate(op.left, ctx)
        right = self._evaluate(op.right, ctx)
        where = f"operator '{op.operator.value}'"

        if op.operator == BinaryOperator.EQ:
            return Bool(values_equal(left, right))
        elif op.operator == BinaryOperator.NE:
            return Bool(not values_equal(left, right))
        elif op.operator == BinaryOperator.PLUS:
            return Int(value_as_int(left, where) + value_as_int(right, where))
        elif op.operator == BinaryOperator.MINUS:
            return Int(value_as_int(left, where) - value_as_int(right, where))
        elif op.operator == BinaryOperator.MUL:
            return Int(value_as_int(left, where) * value_as_int(right, where))
        elif op.operator == BinaryOperator.DIV:
            return Int(truncating_div(value_as_int(left, where), value_as_int(right, where)))
        elif op.operator == BinaryOperator.LT:
            return Bool(compare_values(left, right) < 0)
        elif op.operator == BinaryOperator.GT:
            return Bool(compare_values(left, right) > 0)
        elif op.operator == BinaryOperator.LE:
            return Bool(compare_values(left, right) <= 0)
        elif op.operator == BinaryOperator.GE:
            return Bool(compare_values(left, right) >= 0)
        elif op.operator == BinaryOperator.AND:
            lhs = value_as_bool(left, where)
            rhs = value_as_bool(right, where)
            return Bool(lhs and rhs)
        elif op.operator == BinaryOperator.OR:
            lhs = value_as_bool(left, where)
            rhs = value_as_bool(right, where)
            return Bool(lhs or rhs)
        raise error_wrong_kind("binary operator", op.operator, "evaluation")

    def _eval_yield(self, node: Yield, ctx: EvalContext) -> Value:
        args = [self._evaluate(arg, ctx) for arg in node.arguments]
        rows = execute(ctx.store, node.query, args)
        results: List[Value] = []
        for row in rows:
            row_env = ctx.env.extend(decode_row(node.query, row))
            results.append(self._evaluate(node.body, ctx.with_env(row_env)))
        return ListValue(tuple(results))

    def _eval_insert(self, node: Insert, ctx: EvalContext) -> Value:
        value = value_as_record(self._evaluate(node.value, ctx), "insert")
        insert(ctx.store, node.table, value)
        # No new bindings: the continuation sees the same environment
        return self._evaluate(node.and_then, ctx)


def evaluate(store: sqlite3.Connection, env: Environment, expression: Expression) -> Value:
    """
    Evaluate one expression.

    This is a convenience wrapper around Interpreter.evaluate().
    """
    return Interpreter().evaluate(expression, EvalContext(store, env))
