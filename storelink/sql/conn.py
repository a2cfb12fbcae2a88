"""
SQL connection management.

Validates a connection map, builds the backend connection string and opens
a single SQLAlchemy connection. Do not use directly; use ``SQL`` or one of
the typed wrappers instead.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from ..errors import SQLError
from ..utils import dump_params, log_safely, pick_params, redact_params
from .backends import SQLBackend, get_backend

SQL_PARAM_KEYS = ("dbtype", "dbhost", "dbport", "dbuser", "dbpass", "dbname")
DBTYPE_ALIASES = {"postgresql": "pgsql"}


class SQLConn:
    """
    Connection lifecycle for SQLite, MySQL and PostgreSQL.

    Construction opens the connection or raises ``SQLError``. Once closed,
    an instance cannot be reopened.
    """

    def __init__(self, params: Dict[str, Any], logger: Optional[logging.Logger] = None):
        """
        Open a connection.

        Args:
            params: Connection map with keys ``dbtype``, ``dbname`` and
                optionally ``dbhost``, ``dbport``, ``dbuser``, ``dbpass``
            logger: Logger instance, defaults to this module's logger

        Raises:
            SQLError: CONNECTION_ARGS_ERROR, DBTYPE_ERROR or CONNECTION_ERROR
        """
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self._verified_params: Optional[Dict[str, Any]] = None
        self._connection_string = ""
        self._backend: Optional[SQLBackend] = None
        self._engine: Optional[Engine] = None
        self._connection: Optional[Connection] = None

        self._log("debug", "SQL: object instantiated.")
        self._open(params)

    def _open(self, params: Dict[str, Any]) -> None:
        verified = pick_params(params, SQL_PARAM_KEYS, {"dbtype": DBTYPE_ALIASES})

        for key in ("dbtype", "dbname"):
            if not verified.get(key):
                raise self._error(SQLError.CONNECTION_ARGS_ERROR,
                                  f"'{key}' not supplied.",
                                  f"SQL: param not supplied: '{key}'.")

        dbtype = verified["dbtype"]
        backend_cls = get_backend(dbtype)
        if backend_cls is None:
            raise self._error(SQLError.DBTYPE_ERROR, f"{dbtype} not supported.",
                              f"SQL: database not supported: '{dbtype}'.")

        if backend_cls.requires_user and not verified.get("dbuser"):
            raise self._error(SQLError.CONNECTION_ARGS_ERROR, "'dbuser' not supplied.",
                              "SQL: param not supplied: 'dbuser'.")

        backend = backend_cls(verified)
        connection_string = backend.build_dsn()
        safe_params = dump_params(redact_params(verified, "dbpass"))
        engine = None
        try:
            engine = create_engine(backend.build_url(), poolclass=NullPool)
            backend.on_engine(engine)
            connection = engine.connect()
        except (SQLAlchemyError, ValueError) as e:
            if engine is not None:
                engine.dispose()
            reason = getattr(e, "orig", None) or e
            raise self._error(
                SQLError.CONNECTION_ERROR, f"{dbtype} connection error.",
                f"SQL: connection failed: '{safe_params}': {str(reason).strip()}",
            ) from e

        self._backend = backend
        self._connection_string = connection_string
        self._engine = engine
        self._connection = connection
        self._verified_params = verified
        self._log("debug", f"SQL: connection opened: '{safe_params}'.")

    def _log(self, level: str, message: str) -> None:
        log_safely(self.logger, level, message)

    def _error(self, code, message: str, logline: str) -> SQLError:
        """Log a failure and build the error to raise."""
        self._log("error", logline)
        return SQLError(code, message)

    def _ensure_open(self) -> Connection:
        if self._connection is None:
            raise self._error(SQLError.CONNECTION_ERROR, "Connection closed.",
                              "SQL: connection closed: statement rejected.")
        return self._connection

    def close(self) -> None:
        """
        Close the connection.

        Raises:
            SQLError: CONNECTION_ERROR if the connection is already closed
        """
        if self._connection is None:
            raise self._error(SQLError.CONNECTION_ERROR, "Connection already closed.",
                              "SQL: connection already closed.")
        try:
            self._connection.close()
        finally:
            self._engine.dispose()
            self._connection = None
            self._engine = None
            self._backend = None
            self._connection_string = ""
            self._verified_params = None
        self._log("debug", "SQL: connection closed.")

    @property
    def is_open(self) -> bool:
        """Check if the connection is still open."""
        return self._connection is not None

    def get_connection(self) -> Optional[Connection]:
        """
        Retrieve the native connection.

        Use it for explicit transactions around ``query_raw`` calls, or to
        check whether the connection is still open.
        """
        return self._connection

    def get_connection_string(self) -> str:
        """
        Retrieve the formatted connection string.

        Useful for tools that open a secondary link to the same database,
        e.g. dblink on PostgreSQL.
        """
        return self._connection_string

    def get_dbtype(self) -> Optional[str]:
        if not self._verified_params:
            return None
        return self._verified_params["dbtype"]

    def get_connection_params(self) -> Optional[Dict[str, Any]]:
        """Retrieve the parameters of the successful connection."""
        if self._verified_params is None:
            return None
        return dict(self._verified_params)

    def get_safe_params(self) -> Optional[Dict[str, Any]]:
        """Retrieve connection parameters with the password masked, for logging."""
        return redact_params(self._verified_params, "dbpass")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        if self.is_open:
            self.close()
