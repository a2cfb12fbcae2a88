"""
SQL statement facade.

One API over SQLite, MySQL and PostgreSQL: plain queries, raw statements
for DDL and transactions, small INSERT/UPDATE/DELETE builders and the
dialect fragments needed to write portable DDL.
"""

import json
import re
import warnings
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from sqlalchemy.exc import SQLAlchemyError

from ..errors import SQLError
from .conn import SQLConn

# Identifiers cannot be bound, so table names are whitelisted
TABLE_NAME_PATTERN = re.compile(r"[0-9a-z_]+")

Row = Dict[str, Any]


def _dump_args(args: Any) -> str:
    return json.dumps(args, default=str)


class SQL(SQLConn):
    """
    SQL facade.

    Usage:
        with SQL({"dbtype": "sqlite3", "dbname": "app.sq3"}) as sql:
            sql.query_raw("CREATE TABLE fruit (name VARCHAR(64))")
            sql.insert("fruit", {"name": "apple"})
            rows = sql.query("SELECT * FROM fruit", multiple=True)
    """

    def _execute(
        self,
        stmt: str,
        args: Optional[Sequence[Any]] = None,
        fetch: Optional[Callable[[Any], Any]] = None,
    ):
        """
        Prepare, bind and execute a statement.

        Outside a transaction begun by the caller on ``get_connection()``,
        the statement is committed on success and rolled back on failure.

        Args:
            stmt: SQL statement with ``?`` placeholders
            args: Arguments bound in order
            fetch: Callable applied to the result before any commit

        Returns:
            Return value of ``fetch``, or the result itself

        Raises:
            SQLError: CONNECTION_ERROR if closed, EXECUTION_ERROR on failure
        """
        connection = self._ensure_open()
        args = list(args or [])
        autocommit = not connection.in_transaction()
        try:
            driver_stmt, params = self._backend.bind(stmt, args)
            result = connection.exec_driver_sql(
                driver_stmt, params or None, execution_options={"no_parameters": True}
            )
            fetched = fetch(result) if fetch else result
            if autocommit:
                connection.commit()
        except (SQLAlchemyError, ValueError, KeyError) as e:
            if autocommit and connection.in_transaction():
                connection.rollback()
            reason = str(getattr(e, "orig", None) or e).strip()
            self._log(
                "error",
                f"SQL: execution failed: {stmt} <- '{_dump_args(args)}': {reason}."
            )
            raise SQLError(
                SQLError.EXECUTION_ERROR, f"Execution error: {reason}.", stmt, args
            ) from e
        return fetched

    def query(
        self, stmt: str, args: Optional[Sequence[Any]] = None, multiple: bool = False
    ) -> Union[Optional[Row], List[Row]]:
        """
        Select query.

        SQLite does not enforce types, so cast arguments before binding.

        Args:
            stmt: SQL statement with ``?`` placeholders
            args: Arguments bound in order
            multiple: Return all rows instead of the first one

        Returns:
            First row as a dict or None, or a list of dicts if ``multiple``
        """
        if multiple:
            res = self._execute(stmt, args, lambda r: [dict(row) for row in r.mappings()])
        else:
            res = self._execute(stmt, args, _first_row)
        self._log("info", f"SQL: query ok: {stmt} <- '{_dump_args(list(args or []))}'.")
        return res

    def query_raw(self, stmt: str, args: Optional[Sequence[Any]] = None):
        """
        Execute a single arbitrary statement.

        Don't pass several statements at once. To run successive raw
        statements atomically, wrap them in a transaction on the native
        connection:

            conn = sql.get_connection()
            with conn.begin():
                sql.query_raw("CREATE TABLE a (id INTEGER)")
                sql.query_raw("CREATE TABLE b (id INTEGER)")

        Returns:
            Executed result. Rows of a SELECT can be fetched from it.
        """
        res = self._execute(stmt, args, _buffered)
        self._log("info", f"SQL: query raw ok: {stmt}.")
        return res

    def insert(self, table: str, values: Dict[str, Any], pk: Optional[str] = None):
        """
        Insert a row.

        Args:
            table: Table name
            values: Column to value mapping
            pk: PostgreSQL only. Column to return from the new row; the
                whole row is returned if omitted. An invalid column raises
                EXECUTION_ERROR.

        Returns:
            Auto-increment id of the new row, or on PostgreSQL the
            requested column value or the whole row
        """
        self._ensure_open()
        backend = self._backend
        columns = ",".join(values.keys())
        placeholders = ",".join("?" * len(values))
        stmt = f"INSERT INTO {table} ({columns}) VALUES ({placeholders})"
        stmt += backend.insert_returning(pk)

        args = list(values.values())
        res = self._execute(stmt, args, lambda r: backend.inserted(r, pk))
        self._log("info", f"SQL: insert ok: {stmt} <- '{_dump_args(args)}'.")
        return res

    def update(
        self, table: str, values: Dict[str, Any], where: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Update rows.

        Args:
            table: Table name
            values: Column to new value mapping
            where: Column to value equality conditions, joined with AND
        """
        stmt = f"UPDATE {table} SET " + ",".join(f"{key}=?" for key in values)
        args = list(values.values())
        if where:
            stmt += " WHERE " + " AND ".join(f"{key}=?" for key in where)
            args += list(where.values())
        self._execute(stmt, args)
        self._log("info", f"SQL: update ok: {stmt} <- '{_dump_args(args)}'.")

    def delete(self, table: str, where: Optional[Dict[str, Any]] = None) -> None:
        """
        Delete rows.

        Args:
            table: Table name
            where: Column to value equality conditions, joined with AND
        """
        stmt = f"DELETE FROM {table}"
        args: List[Any] = []
        if where:
            stmt += " WHERE " + " AND ".join(f"{key}=?" for key in where)
            args = list(where.values())
        self._execute(stmt, args)
        self._log("info", f"SQL: delete ok: {stmt} <- '{_dump_args(args)}'.")

    def table_exists(self, table: str) -> bool:
        """
        Check whether a table exists.

        Names outside ``[0-9a-z_]`` are rejected without touching the
        database.
        """
        if not TABLE_NAME_PATTERN.fullmatch(table):
            return False
        try:
            self._execute(f"SELECT 1 FROM {table} LIMIT 1", fetch=_first_row)
        except SQLError as e:
            if e.code != SQLError.EXECUTION_ERROR:
                raise
            return False
        return True

    def stmt_fragment(self, part: str, args: Optional[Dict[str, Any]] = None) -> str:
        """
        SQL fragment sensitive to the backend in use.

        Args:
            part: ``engine`` for the storage engine clause, ``index`` for
                an auto-increment primary key column, ``datetime`` for a
                "now + delta seconds" expression
            args: For ``datetime`` only, ``{"delta": seconds}``

        Returns:
            The fragment; empty string if ``part`` is unknown
        """
        self._ensure_open()
        return self._backend.fragment(part, args)

    def time(self) -> int:
        """
        Get the Unix timestamp from the database server.

        Use this rather than the local clock when comparing against
        values the server computes.
        """
        self._ensure_open()
        return int(self.query(self._backend.time_stmt)["now"])

    def unix_epoch(self) -> int:
        """Deprecated alias of ``time``."""
        warnings.warn("unix_epoch() is deprecated, use time()",
                      DeprecationWarning, stacklevel=2)
        return self.time()


def _first_row(result) -> Optional[Row]:
    row = result.mappings().first()
    return dict(row) if row is not None else None


def _buffered(result):
    # Rows stay readable after the autocommit that follows execution
    if result.returns_rows:
        return result.freeze()()
    return result
