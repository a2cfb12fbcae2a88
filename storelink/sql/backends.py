"""
Per-backend SQL strategies.

Every place where SQLite, MySQL and PostgreSQL disagree lives here:
connection string synthesis, the SQLAlchemy URL used to actually connect,
dialect fragments for portable DDL, INSERT ... RETURNING handling and the
server clock query. A strategy is picked once when a connection opens.
"""

from typing import Any, Dict, Optional, Type

from sqlalchemy import event
from sqlalchemy.engine import URL, Engine

from .statement import bind_positional


class SQLBackend:
    """Base strategy. Subclasses fill in the dialect-specific parts."""

    dbtype: str = ""
    drivername: str = ""
    requires_user: bool = True
    # Storage engine clause appended to CREATE TABLE
    engine_clause: str = ""
    # Auto-increment primary key column clause
    index_clause: str = ""
    time_stmt: str = ""
    # Placeholder style of the DBAPI driver
    paramstyle: str = "format"
    backslash_escapes: bool = False
    mysql_comments: bool = False

    def __init__(self, params: Dict[str, Any]):
        """
        Args:
            params: Verified connection parameters
        """
        self.params = params

    def build_dsn(self) -> str:
        """
        Build the textual connection string.

        Returns:
            ``<dbtype>:dbname=<dbname>[;host=<dbhost>[;port=<dbport>]]``
        """
        dsn = f"{self.dbtype}:dbname={self.params['dbname']}"
        host = self.params.get("dbhost")
        if host:
            dsn += f";host={host}"
            port = self.params.get("dbport")
            if port:
                dsn += f";port={port}"
        return dsn

    def build_url(self) -> URL:
        """
        Build the SQLAlchemy URL used to open the native connection.

        Raises:
            ValueError: If ``dbport`` is not numeric
        """
        host = self.params.get("dbhost") or None
        port = self.params.get("dbport") if host else None
        return URL.create(
            self.drivername,
            username=self.params.get("dbuser"),
            password=self.params.get("dbpass") or None,
            host=host,
            port=int(port) if port else None,
            database=self.params["dbname"],
            query=self.url_query(),
        )

    def url_query(self) -> Dict[str, str]:
        return {}

    def bind(self, stmt: str, args=None):
        """Rewrite a ``?`` statement for this driver. See ``bind_positional``."""
        return bind_positional(stmt, args, self.paramstyle,
                               self.backslash_escapes, self.mysql_comments)

    def on_engine(self, engine: Engine) -> None:
        """Hook to attach engine event listeners before connecting."""

    def fragment(self, part: str, args: Optional[Dict[str, Any]] = None) -> str:
        """
        SQL fragment sensitive to the backend in use.

        Args:
            part: One of ``engine``, ``index``, ``datetime``
            args: For ``datetime`` only, ``{"delta": seconds}``

        Returns:
            The fragment, or an empty string for unknown parts
        """
        if part == "engine":
            return self.engine_clause
        if part == "index":
            return self.index_clause
        if part == "datetime":
            delta = 0
            if args and args.get("delta") is not None:
                delta = int(args["delta"])
            sign = "+" if delta >= 0 else "-"
            return self.datetime_fragment(sign, abs(delta))
        return ""

    def datetime_fragment(self, sign: str, delta: int) -> str:
        raise NotImplementedError

    def insert_returning(self, pk: Optional[str]) -> str:
        """Suffix appended to INSERT statements, if the backend supports it."""
        return ""

    def inserted(self, result, pk: Optional[str]):
        """
        Extract the insert result from an executed INSERT.

        Args:
            result: SQLAlchemy result of the INSERT
            pk: Column requested by the caller, if any

        Returns:
            Auto-increment id of the new row
        """
        return result.lastrowid


class SQLite3Backend(SQLBackend):
    """SQLite via the standard library driver."""

    dbtype = "sqlite3"
    drivername = "sqlite"
    requires_user = False
    index_clause = "INTEGER PRIMARY KEY AUTOINCREMENT"
    time_stmt = "SELECT strftime('%s', CURRENT_TIMESTAMP) AS now"
    paramstyle = "qmark"

    def build_dsn(self) -> str:
        return f"sqlite:{self.params['dbname']}"

    def build_url(self) -> URL:
        return URL.create(self.drivername, database=self.params["dbname"])

    def on_engine(self, engine: Engine) -> None:
        """
        Configure SQLite-specific settings on every new DBAPI connection.

        pysqlite's own transaction handling skips DDL, so it is switched
        off and SQLAlchemy emits BEGIN itself. Foreign keys are enforced.
        """

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def do_begin(conn):
            conn.exec_driver_sql("BEGIN")

    def datetime_fragment(self, sign: str, delta: int) -> str:
        return f"(datetime('now', '{sign}{delta} second'))"


class MySQLBackend(SQLBackend):
    """MySQL/MariaDB via PyMySQL. Credentials never go into the DSN."""

    dbtype = "mysql"
    drivername = "mysql+pymysql"
    # Only FOREIGN KEY-capable engines are supported
    engine_clause = "ENGINE=InnoDB"
    index_clause = "INTEGER PRIMARY KEY AUTO_INCREMENT"
    time_stmt = "SELECT UNIX_TIMESTAMP() AS now"
    backslash_escapes = True
    mysql_comments = True

    def url_query(self) -> Dict[str, str]:
        return {"charset": "utf8mb4"}

    def datetime_fragment(self, sign: str, delta: int) -> str:
        # MySQL doesn't accept functions as column defaults; not for DDL
        return f"(date_add(utc_timestamp(), interval {sign}{delta} second))"


class PgSQLBackend(SQLBackend):
    """PostgreSQL via psycopg2."""

    dbtype = "pgsql"
    drivername = "postgresql+psycopg2"
    index_clause = "SERIAL PRIMARY KEY"
    time_stmt = "SELECT EXTRACT('epoch' from CURRENT_TIMESTAMP) AS now"

    def build_dsn(self) -> str:
        dsn = super().build_dsn()
        dsn += f";user={self.params['dbuser']}"
        if self.params.get("dbpass"):
            dsn += f";password={self.params['dbpass']}"
        return dsn

    def datetime_fragment(self, sign: str, delta: int) -> str:
        return (
            f"(now() at time zone 'utc' {sign} "
            f"interval '{delta} second')::timestamp(0)"
        )

    def insert_returning(self, pk: Optional[str]) -> str:
        return f" RETURNING {pk or '*'}"

    def inserted(self, result, pk: Optional[str]):
        row = result.mappings().first()
        if row is None:
            return None
        return row[pk] if pk else dict(row)


BACKENDS: Dict[str, Type[SQLBackend]] = {
    backend.dbtype: backend
    for backend in (SQLite3Backend, MySQLBackend, PgSQLBackend)
}


def get_backend(dbtype: str) -> Optional[Type[SQLBackend]]:
    """Look up the strategy class for a normalized ``dbtype``."""
    return BACKENDS.get(dbtype)
