"""
storelink: one API over SQLite, MySQL/MariaDB, PostgreSQL and Redis.

Relational backends are reached through ``SQL`` (or the typed ``SQLite3``,
``MySQL`` and ``PgSQL`` wrappers); Redis through ``RedisConn`` (or the
typed ``Redis`` and ``Predis`` wrappers). Every failure raises a typed
``SQLError`` or ``RedisError``.
"""

__version__ = "0.1.0"

from .errors import SQLError, SQLErrorCode, RedisError, RedisErrorCode
from .sql import SQLConn, SQL, SQLite3, MySQL, PgSQL
from .kv import RedisConn, Redis, Predis
from .config import SQLSettings, RedisSettings, load_settings

__all__ = [
    # Errors
    "SQLError",
    "SQLErrorCode",
    "RedisError",
    "RedisErrorCode",

    # SQL
    "SQLConn",
    "SQL",
    "SQLite3",
    "MySQL",
    "PgSQL",

    # Redis
    "RedisConn",
    "Redis",
    "Predis",

    # Configuration
    "SQLSettings",
    "RedisSettings",
    "load_settings",
]
