"""
Query execution, row decoding and inserts.

Every value crossing into SQL is a bound parameter. Rows are decoded by the
column's declared type when the query knows it, otherwise by the stored kind.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .values import Value, Text, Int, Bool, Record
from ..errors import error_row_decode, error_wrong_kind
from ..store import Query, insert_sql
from ..types import Type, TEXT, INT, BOOL

logger = logging.getLogger(__name__)

Row = List[Tuple[str, Any]]


def value_to_sql(v: Value) -> Any:
    """Convert a value to a SQLite parameter."""
    if isinstance(v, Text):
        return v.text
    elif isinstance(v, Bool):
        return 1 if v.value else 0
    elif isinstance(v, Int):
        return v.value
    raise error_wrong_kind("text, int or bool", v, "sql parameter")


def execute(store: sqlite3.Connection, query: Query, args: Sequence[Value]) -> List[Row]:
    """
    Run `query` with `args` bound to its placeholders, in order.

    Returns the rows in the order the store produced them, each row a list
    of (column name, stored value).
    """
    sql = query.to_sql()
    params = [value_to_sql(a) for a in args]
    logger.debug("query: %s (%d parameters)", sql, len(params))
    cursor = store.execute(sql, params)
    try:
        names = [d[0] for d in cursor.description]
        return [list(zip(names, row)) for row in cursor.fetchall()]
    finally:
        cursor.close()


def decode_value(column: str, stored: Any, declared: Optional[Type] = None) -> Value:
    """Decode one stored value; fail fast on anything unsupported."""
    if declared is None:
        if isinstance(stored, str):
            return Text(stored)
        if isinstance(stored, int) and not isinstance(stored, bool):
            return Int(stored)
        raise error_row_decode(column, stored)

    if declared == TEXT:
        if isinstance(stored, str):
            return Text(stored)
    elif declared == INT:
        if isinstance(stored, int) and not isinstance(stored, bool):
            return Int(stored)
    elif declared == BOOL:
        if isinstance(stored, int) and stored in (0, 1):
            return Bool(bool(stored))
    raise error_row_decode(column, stored, declared.name)


def decode_row(query: Query, row: Row) -> Dict[str, Value]:
    types = query.column_types()
    return {name: decode_value(name, stored, types.get(name)) for name, stored in row}


def insert(store: sqlite3.Connection, table: str, record: Record) -> None:
    """Insert one row whose columns are exactly the record's fields."""
    columns = record.keys()
    sql = insert_sql(table, columns)
    params = {name: value_to_sql(value) for name, value in record.items()}
    logger.debug("insert: %s", sql)
    store.execute(sql, params)
