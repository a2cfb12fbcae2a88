"""
Relational backends: SQLite, MySQL/MariaDB and PostgreSQL.
"""

from .backends import SQLBackend, SQLite3Backend, MySQLBackend, PgSQLBackend, get_backend
from .conn import SQLConn
from .facade import SQL
from .wrappers import SQLite3, MySQL, PgSQL

__all__ = [
    # Strategies
    "SQLBackend",
    "SQLite3Backend",
    "MySQLBackend",
    "PgSQLBackend",
    "get_backend",

    # Connection and facade
    "SQLConn",
    "SQL",

    # Typed wrappers
    "SQLite3",
    "MySQL",
    "PgSQL",
]
