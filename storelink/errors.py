"""
Typed failures raised by the SQL and Redis connection layers.

Each family carries a stable numeric code so callers can branch on the
kind of failure without parsing messages.
"""

from enum import IntEnum
from typing import Any, Optional, Sequence


class SQLErrorCode(IntEnum):
    """Failure kinds raised by the SQL layer."""

    DBTYPE_ERROR = 0x10
    CONNECTION_ARGS_ERROR = 0x20
    CONNECTION_ERROR = 0x30
    EXECUTION_ERROR = 0x40


class RedisErrorCode(IntEnum):
    """Failure kinds raised by the Redis layer."""

    REDISTYPE_ERROR = 0x10
    CONNECTION_ARGS_ERROR = 0x20
    CONNECTION_ERROR = 0x30


class SQLError(Exception):
    """
    SQL failure.

    Execution failures also carry the offending statement and the
    arguments bound to it, for diagnostics.
    """

    DBTYPE_ERROR = SQLErrorCode.DBTYPE_ERROR
    CONNECTION_ARGS_ERROR = SQLErrorCode.CONNECTION_ARGS_ERROR
    CONNECTION_ERROR = SQLErrorCode.CONNECTION_ERROR
    EXECUTION_ERROR = SQLErrorCode.EXECUTION_ERROR

    def __init__(
        self,
        code: SQLErrorCode,
        message: str,
        stmt: Optional[str] = None,
        stmt_args: Optional[Sequence[Any]] = None,
    ):
        """
        Args:
            code: Failure kind, one of the class constants
            message: Human-readable message, never containing passwords
            stmt: SQL statement that failed, if any
            stmt_args: Arguments bound to the statement, in order
        """
        super().__init__(message)
        self.code = SQLErrorCode(code)
        self.message = message
        self.stmt = stmt
        self.stmt_args = list(stmt_args) if stmt_args is not None else []

    def __repr__(self) -> str:
        return f"SQLError({self.code.name}, {self.message!r})"


class RedisError(Exception):
    """Redis failure."""

    REDISTYPE_ERROR = RedisErrorCode.REDISTYPE_ERROR
    CONNECTION_ARGS_ERROR = RedisErrorCode.CONNECTION_ARGS_ERROR
    CONNECTION_ERROR = RedisErrorCode.CONNECTION_ERROR

    def __init__(self, code: RedisErrorCode, message: str):
        super().__init__(message)
        self.code = RedisErrorCode(code)
        self.message = message

    def __repr__(self) -> str:
        return f"RedisError({self.code.name}, {self.message!r})"
