"""
SQLite store handle, query descriptors and SQL text generation.

Only program-supplied identifiers (table and column names) and program-supplied
conditions are ever written into SQL text. Values always travel as bound
parameters.
"""

import logging
import re
import sqlite3
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Iterable, Optional, Sequence, Tuple

from .errors import error_unsafe_identifier
from .types import BOOL, INT, TEXT, Type

if TYPE_CHECKING:
    from .program import Table

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_SQL_COLUMN_TYPES = {
    TEXT: "TEXT",
    INT: "INTEGER",
    BOOL: "INTEGER",
}


def check_identifier(name: str) -> str:
    """Return `name` unchanged if it is safe to write into SQL text."""
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise error_unsafe_identifier(name)
    return name


@dataclass(frozen=True)
class Query:
    """
    A compiled SELECT over one table.

    `where` holds SQL conditions using `?` placeholders, joined with AND; the
    placeholders are filled, in order, by the arguments of the Yield node
    that executes the query. `order_by` holds (column, descending) pairs.
    """
    table: str
    columns: Tuple[Tuple[str, Type], ...]
    where: Tuple[str, ...] = ()
    order_by: Tuple[Tuple[str, bool], ...] = ()
    limit: Optional[int] = None

    @classmethod
    def for_table(cls, table: "Table") -> "Query":
        """Select every column of `table`, in declared order."""
        return cls(table=table.name, columns=tuple(table.fields))

    def column_names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self.columns)

    def column_types(self) -> Dict[str, Type]:
        return dict(self.columns)

    def to_sql(self) -> str:
        cols = ", ".join(check_identifier(name) for name in self.column_names())
        sql = f"SELECT {cols} FROM {check_identifier(self.table)}"
        if self.where:
            sql += " WHERE " + " AND ".join(f"({cond})" for cond in self.where)
        if self.order_by:
            terms = [
                f"{check_identifier(col)} {'DESC' if desc else 'ASC'}"
                for col, desc in self.order_by
            ]
            sql += " ORDER BY " + ", ".join(terms)
        if self.limit is not None:
            sql += f" LIMIT {int(self.limit)}"
        return sql


def insert_sql(table: str, columns: Sequence[str]) -> str:
    """INSERT with one named placeholder per column."""
    if not columns:
        return f"INSERT INTO {check_identifier(table)} DEFAULT VALUES"
    names = ",".join(check_identifier(c) for c in columns)
    params = ",".join(f":{c}" for c in columns)
    return f"INSERT INTO {check_identifier(table)}({names}) VALUES ({params})"


def create_table_sql(table: "Table") -> str:
    columns = []
    for name, column_type in table.fields:
        sql_type = _SQL_COLUMN_TYPES.get(column_type)
        if sql_type is None:
            raise ValueError(f"column '{name}' of table '{table.name}' has "
                             f"unstorable type {column_type}")
        columns.append(f"{check_identifier(name)} {sql_type}")
    return f"CREATE TABLE IF NOT EXISTS {check_identifier(table.name)} ({', '.join(columns)})"


def open_store(path: str) -> sqlite3.Connection:
    """Open a SQLite connection that request worker threads may share."""
    logger.info("opening store %s", path)
    return sqlite3.connect(path, check_same_thread=False, isolation_level=None)


def create_tables(store: sqlite3.Connection, tables: Iterable["Table"]) -> None:
    """Create any of the program's tables that do not exist yet."""
    for table in tables:
        sql = create_table_sql(table)
        logger.debug("schema: %s", sql)
        store.execute(sql)
