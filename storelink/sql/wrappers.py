"""
Backend-typed SQL facades.

Each wrapper takes the same connection map as ``SQL`` except that
``dbtype`` may be omitted; it is always overridden.
"""

import logging
from typing import Any, Dict, Optional

from .facade import SQL


class _TypedSQL(SQL):
    dbtype = ""

    def __init__(self, params: Dict[str, Any], logger: Optional[logging.Logger] = None):
        params = dict(params or {})
        params["dbtype"] = self.dbtype
        super().__init__(params, logger)


class SQLite3(_TypedSQL):
    """SQLite facade."""

    dbtype = "sqlite3"


class MySQL(_TypedSQL):
    """MySQL/MariaDB facade."""

    dbtype = "mysql"


class PgSQL(_TypedSQL):
    """PostgreSQL facade."""

    dbtype = "pgsql"
