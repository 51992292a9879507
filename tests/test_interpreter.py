"""
Tests for the tree-walking interpreter.
"""

import sqlite3

import pytest

from kuljet import ContractViolation, EvaluationError, Table
from kuljet.ast import (
    Literal, Var, App, Abs, ListExp, RecordExp, Dot, BinOp, Yield, Insert,
    BinaryOperator, lit, var, app,
)
from kuljet.runtime import (
    Text, Int, Bool, ListValue, Record, RawHtml, Tag, TagWithAttrs,
    Action, Closure, ResponseValue, record_val,
    Environment, EvalContext, Interpreter, evaluate, build_environment,
)
from kuljet.store import Query, create_tables
from kuljet.types import TEXT, INT


POST = Table("post", (("title", TEXT), ("score", INT)))


@pytest.fixture
def store():
    conn = sqlite3.connect(":memory:", isolation_level=None)
    create_tables(conn, [POST])
    yield conn
    conn.close()


def counter_action(calls):
    """An action that records each run and returns the run number."""
    def run(store):
        calls.append(store)
        return Int(len(calls))
    return Action("tick", run)


def ev(expr, env=None, store=None):
    return evaluate(store, env or Environment(), expr)


def binop(op, left, right):
    return BinOp(op, left, right)


# --- Literals and variables ---

class TestLiteralsAndVariables:
    """Test literal evaluation and variable lookup."""

    def test_literals_are_pure(self):
        """Test that literals need no store at all."""
        assert ev(lit(42)) == Int(42)
        assert ev(lit("hi")) == Text("hi")
        assert ev(lit(True)) == Bool(True)

    def test_variable_lookup(self):
        """Test a bound variable."""
        env = Environment.from_bindings({"x": Int(5)})
        assert ev(var("x"), env) == Int(5)

    def test_unbound_variable_is_contract_violation(self):
        """Test that an unbound identifier is fatal."""
        with pytest.raises(ContractViolation) as exc:
            ev(var("nope"))
        assert exc.value.code == "E401"

    def test_action_runs_on_every_reference(self):
        """Test that deferred actions are never memoized."""
        calls = []
        env = Environment.from_bindings({"tick": counter_action(calls)})
        expr = ListExp([var("tick"), var("tick"), var("tick")])
        assert ev(expr, env, store="db") == ListValue((Int(1), Int(2), Int(3)))
        assert calls == ["db", "db", "db"]


# --- Application ---

class TestApplication:
    """Test closures, builtins and tag application."""

    def test_tag_with_record_stays_curried(self):
        """Test that a record argument supplies attributes."""
        env = Environment.from_bindings({"t": Tag("t")})
        result = ev(App(var("t"), RecordExp([])), env)
        assert result == TagWithAttrs("t", Record(()))

    def test_tag_with_body_finalizes(self):
        """Test that a non-record argument supplies the body."""
        env = Environment.from_bindings({"t": Tag("t")})
        assert ev(App(var("t"), lit("hi")), env) == RawHtml("<t>hi</t>")

    def test_tag_body_is_escaped(self):
        """Test that text bodies are escaped, nested markup is not."""
        env = Environment.from_bindings({"p": Tag("p"), "b": Tag("b")})
        expr = App(var("p"), ListExp([lit("<x>"), App(var("b"), lit("y"))]))
        assert ev(expr, env) == RawHtml("<p>&lt;x&gt;<b>y</b></p>")

    def test_attribute_order_follows_record(self):
        """Test attribute order matches record construction order."""
        env = Environment.from_bindings({"div": Tag("div")})
        attrs = RecordExp([("class", lit("x")), ("id", lit("y"))])
        result = ev(app(var("div"), attrs, lit("Z")), env)
        assert result == RawHtml('<div class="x" id="y">Z</div>')

    def test_tag_with_empty_attributes(self):
        """Test finalizing a tag with no attributes."""
        env = Environment.from_bindings({"p": Tag("p")})
        assert ev(app(var("p"), RecordExp([]), lit(1)), env) == RawHtml("<p>1</p>")

    def test_closure_application(self):
        """Test applying a lambda."""
        inc = Abs("n", binop(BinaryOperator.PLUS, var("n"), lit(1)))
        assert ev(App(inc, lit(41))) == Int(42)

    def test_closure_captures_environment(self):
        """Test lexical capture and parameter shadowing."""
        env = Environment.from_bindings({"x": Int(10), "n": Int(0)})
        add_x = Abs("n", binop(BinaryOperator.PLUS, var("n"), var("x")))
        closure = ev(add_x, env)
        assert isinstance(closure, Closure)
        assert closure.env is env
        assert ev(App(add_x, lit(5)), env) == Int(15)

    def test_curried_closures(self):
        """Test nested abstraction."""
        sub = Abs("a", Abs("b", binop(BinaryOperator.MINUS, var("a"), var("b"))))
        assert ev(app(sub, lit(10), lit(3))) == Int(7)

    def test_builtin_application(self):
        """Test applying a standard library function."""
        env = build_environment([], {})
        result = ev(App(var("redirect"), lit("/home")), env)
        assert result == ResponseValue(303, (("Location", "/home"),), b"")

    def test_function_evaluated_before_argument(self):
        """Test evaluation order of application."""
        calls = []
        env = Environment.from_bindings({"tick": counter_action(calls)})
        # (\a -> \b -> a - b) tick tick: the first tick must run first
        sub = Abs("a", Abs("b", binop(BinaryOperator.MINUS, var("a"), var("b"))))
        assert ev(app(sub, var("tick"), var("tick")), env) == Int(-1)

    def test_applying_non_function(self):
        """Test that applying data is a contract violation."""
        with pytest.raises(ContractViolation) as exc:
            ev(App(lit(1), lit(2)))
        assert exc.value.code == "E404"


# --- Lists and records ---

class TestListsAndRecords:
    """Test list and record construction, field access."""

    def test_list_left_to_right(self):
        """Test element evaluation order."""
        calls = []
        env = Environment.from_bindings({"tick": counter_action(calls)})
        result = ev(ListExp([var("tick"), lit(0), var("tick")]), env)
        assert result == ListValue((Int(1), Int(0), Int(2)))

    def test_record_construction(self):
        """Test record fields in declared order."""
        result = ev(RecordExp([("b", lit(1)), ("a", lit("x"))]))
        assert result.items() == (("b", Int(1)), ("a", Text("x")))

    def test_record_duplicate_key(self):
        """Test last-write-wins on duplicate keys."""
        result = ev(RecordExp([("a", lit(1)), ("a", lit(2))]))
        assert result.items() == (("a", Int(2)),)

    def test_field_access(self):
        """Test reading a field."""
        expr = Dot(RecordExp([("title", lit("Hello"))]), "title")
        assert ev(expr) == Text("Hello")

    def test_missing_field(self):
        """Test that a missing field is a contract violation."""
        with pytest.raises(ContractViolation) as exc:
            ev(Dot(RecordExp([]), "title"))
        assert exc.value.code == "E403"

    def test_field_access_on_non_record(self):
        """Test field access on text."""
        with pytest.raises(ContractViolation):
            ev(Dot(lit("x"), "title"))


# --- Binary operators ---

class TestBinaryOperators:
    """Test arithmetic, comparison and logic."""

    @pytest.mark.parametrize("op,a,b,expected", [
        (BinaryOperator.PLUS, 2, 3, 5),
        (BinaryOperator.MINUS, 2, 3, -1),
        (BinaryOperator.MUL, 4, 3, 12),
        (BinaryOperator.DIV, 7, 2, 3),
        (BinaryOperator.DIV, -7, 2, -3),
        (BinaryOperator.DIV, 7, -2, -3),
        (BinaryOperator.DIV, -7, -2, 3),
    ])
    def test_arithmetic(self, op, a, b, expected):
        """Test integer arithmetic with truncating division."""
        assert ev(binop(op, lit(a), lit(b))) == Int(expected)

    def test_division_by_zero(self):
        """Test division by zero is an evaluation error."""
        with pytest.raises(EvaluationError):
            ev(binop(BinaryOperator.DIV, lit(1), lit(0)))

    def test_text_plus_int_is_contract_violation(self):
        """Test that mismatched arithmetic never coerces."""
        with pytest.raises(ContractViolation) as exc:
            ev(binop(BinaryOperator.PLUS, lit("1"), lit(1)))
        assert exc.value.code == "E402"

    def test_text_plus_text_is_contract_violation(self):
        """Test that + is integer-only."""
        with pytest.raises(ContractViolation):
            ev(binop(BinaryOperator.PLUS, lit("a"), lit("b")))

    def test_structural_equality(self):
        """Test equality across lists and records."""
        left = RecordExp([("a", lit(1)), ("b", ListExp([lit("x")]))])
        right = RecordExp([("b", ListExp([lit("x")])), ("a", lit(1))])
        assert ev(binop(BinaryOperator.EQ, left, right)) == Bool(True)
        assert ev(binop(BinaryOperator.EQ, lit("a"), lit("b"))) == Bool(False)
        assert ev(binop(BinaryOperator.NE, lit(1), lit(2))) == Bool(True)

    def test_equality_kind_mismatch(self):
        """Test equality between different kinds."""
        with pytest.raises(ContractViolation):
            ev(binop(BinaryOperator.EQ, lit("1"), lit(1)))

    def test_ordering(self):
        """Test comparisons over ints, text and lists."""
        assert ev(binop(BinaryOperator.LT, lit(1), lit(2))) == Bool(True)
        assert ev(binop(BinaryOperator.GT, lit("b"), lit("a"))) == Bool(True)
        assert ev(binop(BinaryOperator.LE, lit(2), lit(2))) == Bool(True)
        assert ev(binop(BinaryOperator.GE, lit(1), lit(2))) == Bool(False)
        short = ListExp([lit(1)])
        longer = ListExp([lit(1), lit(0)])
        assert ev(binop(BinaryOperator.LT, short, longer)) == Bool(True)

    def test_ordering_kind_mismatch(self):
        """Test comparing a record is a contract violation."""
        with pytest.raises(ContractViolation):
            ev(binop(BinaryOperator.LT, RecordExp([]), RecordExp([])))

    def test_logic(self):
        """Test and/or results."""
        assert ev(binop(BinaryOperator.AND, lit(True), lit(False))) == Bool(False)
        assert ev(binop(BinaryOperator.OR, lit(False), lit(True))) == Bool(True)

    def test_and_evaluates_right_operand(self):
        """Test that and never short-circuits: a failing right side still fails."""
        with pytest.raises(ContractViolation):
            ev(binop(BinaryOperator.AND, lit(False), var("unbound")))

    def test_or_evaluates_right_operand(self):
        """Test that or never short-circuits: effects on the right still happen."""
        calls = []
        env = Environment.from_bindings({"tick": counter_action(calls)})
        right = binop(BinaryOperator.EQ, var("tick"), lit(1))
        assert ev(binop(BinaryOperator.OR, lit(True), right), env) == Bool(True)
        assert len(calls) == 1

    def test_logic_on_non_bool(self):
        """Test and on integers."""
        with pytest.raises(ContractViolation):
            ev(binop(BinaryOperator.AND, lit(1), lit(True)))


# --- Queries and inserts ---

class TestStoreNodes:
    """Test Yield and Insert evaluation against SQLite."""

    def _add(self, store, title, score):
        store.execute("INSERT INTO post(title, score) VALUES (?, ?)", (title, score))

    def test_yield_preserves_row_order(self, store):
        """Test that a query of N rows yields N results in store order."""
        for i, title in enumerate(["a", "b", "c"]):
            self._add(store, title, i)
        query = Query.for_table(POST)
        node = Yield(query, [], Var("title"))
        result = ev(node, store=store)
        assert result == ListValue((Text("a"), Text("b"), Text("c")))

    def test_yield_columns_shadow_within_row_only(self, store):
        """Test row columns shadow outer bindings only inside the body."""
        self._add(store, "first", 1)
        self._add(store, "second", 2)
        env = Environment.from_bindings({"title": Text("outer")})
        node = ListExp([
            Yield(Query.for_table(POST), [], RecordExp([("t", var("title")), ("s", var("score"))])),
            var("title"),
        ])
        result = ev(node, env, store)
        rows, outer = result.items
        assert [r.get("t") for r in rows] == [Text("first"), Text("second")]
        assert [r.get("s") for r in rows] == [Int(1), Int(2)]
        assert outer == Text("outer")

    def test_yield_binds_arguments(self, store):
        """Test parameter binding for query conditions."""
        for title, score in [("low", 1), ("mid", 5), ("high", 9)]:
            self._add(store, title, score)
        query = Query(
            table="post",
            columns=POST.fields,
            where=("score >= ?",),
            order_by=(("score", True),),
        )
        node = Yield(query, [binop(BinaryOperator.PLUS, lit(2), lit(3))], var("title"))
        assert ev(node, store=store) == ListValue((Text("high"), Text("mid")))

    def test_yield_empty(self, store):
        """Test a query with no rows."""
        assert ev(Yield(Query.for_table(POST), [], var("title")), store=store) == ListValue(())

    def test_insert_keeps_environment(self, store):
        """Test that insert adds no bindings for its continuation."""
        env = Environment.from_bindings({"title": Text("outer")})
        node = Insert("post", RecordExp([("title", lit("new")), ("score", lit(3))]), var("title"))
        assert ev(node, env, store) == Text("outer")
        assert store.execute("SELECT title, score FROM post").fetchall() == [("new", 3)]

    def test_insert_fields_not_visible(self, store):
        """Test that record fields do not leak into the continuation."""
        node = Insert("post", RecordExp([("title", lit("x")), ("score", lit(1))]), var("score"))
        with pytest.raises(ContractViolation):
            ev(node, store=store)

    def test_insert_binds_values(self, store):
        """Test that hostile text is stored verbatim, never run as SQL."""
        hostile = "x'); DROP TABLE post; --"
        node = Insert("post", RecordExp([("title", lit(hostile)), ("score", lit(0))]), lit(1))
        ev(node, store=store)
        assert store.execute("SELECT title FROM post").fetchone() == (hostile,)

    def test_insert_requires_record(self, store):
        """Test inserting a non-record."""
        with pytest.raises(ContractViolation):
            ev(Insert("post", lit("x"), lit(1)), store=store)

    def test_yield_over_inserted_rows(self, store):
        """Test insert followed by a query in the continuation."""
        node = Insert(
            "post",
            RecordExp([("title", lit("hello")), ("score", lit(7))]),
            Yield(Query.for_table(POST), [], binop(BinaryOperator.MUL, var("score"), lit(2))),
        )
        assert ev(node, store=store) == ListValue((Int(14),))


class TestInterpreterApply:
    """Test applying function values outside of the tree."""

    def test_apply_closure_to_record(self):
        """Test applying a closure to a record value."""
        interp = Interpreter()
        ctx = EvalContext(None, Environment())
        fn = interp.evaluate(Abs("form", Dot(var("form"), "name")), ctx)
        arg = record_val([("name", Text("Ann"))])
        assert interp.apply(fn, arg, ctx) == Text("Ann")
