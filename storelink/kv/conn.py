"""
Redis connection management and commands.

One API over two client libraries. The library is picked with
``redistype``: ``redis`` (redis-py) or ``predis`` (valkey-py; ``valkey``
is accepted as an alias).
"""

import logging
from typing import Any, Dict, Optional, Sequence, Union

from ..errors import RedisError
from ..utils import dump_params, log_safely, pick_params, redact_params
from .drivers import RedisDriver, get_driver

REDIS_PARAM_KEYS = (
    "redistype",
    "redisscheme",
    "redishost",
    "redisport",
    "redispassword",
    "redisdatabase",
    "redistimeout",
)
REDISTYPE_ALIASES = {"valkey": "predis"}


class RedisConn:
    """
    Redis connection and command facade.

    Construction opens the connection or raises ``RedisError``. Once
    closed, an instance cannot be reopened.

    Usage:
        with RedisConn({"redistype": "redis", "redishost": "localhost"}) as kv:
            kv.set("greeting", "hello", 60)
            value = kv.get("greeting")
    """

    def __init__(self, params: Dict[str, Any], logger: Optional[logging.Logger] = None):
        """
        Open a connection.

        Args:
            params: Connection map with keys ``redistype``, ``redishost``
                and optionally ``redisport``, ``redispassword``,
                ``redisdatabase``, ``redistimeout``, ``redisscheme``
            logger: Logger instance, defaults to this module's logger

        Raises:
            RedisError: CONNECTION_ARGS_ERROR, REDISTYPE_ERROR or CONNECTION_ERROR
        """
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self._verified_params: Optional[Dict[str, Any]] = None
        self._driver: Optional[RedisDriver] = None

        self._log("debug", "Redis: object instantiated.")
        self._open(params)

    def _open(self, params: Dict[str, Any]) -> None:
        verified = pick_params(params, REDIS_PARAM_KEYS, {"redistype": REDISTYPE_ALIASES})

        for key in ("redistype", "redishost"):
            if not verified.get(key):
                raise self._error(RedisError.CONNECTION_ARGS_ERROR,
                                  f"'{key}' not supplied.",
                                  f"Redis: param not supplied: '{key}'.")

        redistype = verified["redistype"]
        driver_cls = get_driver(redistype)
        if driver_cls is None:
            raise self._error(RedisError.REDISTYPE_ERROR, f"{redistype} not supported.",
                              f"Redis: driver not supported: '{redistype}'.")

        safe_params = dump_params(redact_params(verified, "redispassword"))
        driver = driver_cls(verified)
        try:
            driver.connect()
        except driver.errors + (OSError, ValueError) as e:
            try:
                driver.close()
            except driver.errors + (OSError,) as close_error:
                self._log("debug", f"Redis: cleanup after failed open: {close_error}")
            message = f"Redis: {redistype} connection failed: {e} <- {safe_params}"
            raise self._error(RedisError.CONNECTION_ERROR, message, message) from e

        self._driver = driver
        self._verified_params = verified
        self._log("info", f"Redis: connection opened. <- '{safe_params}'.")

    def _log(self, level: str, message: str) -> None:
        log_safely(self.logger, level, message)

    def _error(self, code, message: str, logline: str) -> RedisError:
        """Log a failure and build the error to raise."""
        self._log("error", logline)
        return RedisError(code, message)

    def _command(self, name: str, *args, judged: bool = False):
        """
        Run one command through the driver and log the outcome.

        With ``judged``, a falsy reply is logged as a failure.

        Raises:
            RedisError: CONNECTION_ERROR if closed or if the link fails
        """
        driver = self._driver
        if driver is None:
            raise self._error(RedisError.CONNECTION_ERROR, "Connection closed.",
                              f"Redis: connection closed: {name} rejected.")
        try:
            res = getattr(driver, name)(*args)
        except driver.connection_errors as e:
            raise self._error(
                RedisError.CONNECTION_ERROR, f"Redis: {name} failed: {e}",
                f"Redis: {name} fail: {list(args)}: {e}",
            ) from e
        except driver.errors as e:
            self._log("info", f"Redis: {name} fail: {list(args)}: {e}")
            raise
        tag = "fail" if judged and not res else "ok"
        self._log("info", f"Redis: {name} {tag}: {list(args)}.")
        return res

    def set(self, key: str, value: Any, options: Union[int, Dict[str, Any], None] = None):
        """
        Set a string value.

        Args:
            key: Key
            value: Value
            options: ``redis`` only, TTL in seconds or a mapping of set
                options (``ex``, ``px``, ``nx``, ``xx``, ...); ignored by
                ``predis``

        Returns:
            Native reply; True when the value was set
        """
        return self._command("set", key, value, options, judged=True)

    def hset(self, key: str, hkey: str, value: Any) -> int:
        """Set a hash field. Returns the number of fields added."""
        return self._command("hset", key, hkey, value)

    def delete(self, keys: Union[str, Sequence[str]]) -> int:
        """
        Delete one or several keys (the ``DEL`` command).

        Returns:
            Number of keys removed
        """
        if isinstance(keys, str):
            keys = [keys]
        return self._command("delete", list(keys), judged=True)

    def expire(self, key: str, ttl: int) -> bool:
        return bool(self._command("expire", key, ttl))

    def expireat(self, key: str, timestamp: int) -> bool:
        return bool(self._command("expireat", key, timestamp))

    def get(self, key: str) -> Optional[str]:
        """Value of ``key``, or None if it does not exist."""
        return self._command("get", key)

    def hget(self, key: str, hkey: str) -> Optional[str]:
        """Value of a hash field, or None if it does not exist."""
        return self._command("hget", key, hkey)

    def ttl(self, key: str) -> int:
        """Seconds to live; -1 without expiry, -2 if the key is absent."""
        return self._command("ttl", key)

    def time(self, with_mcs: bool = False) -> Union[int, float]:
        """
        Get the server time.

        Args:
            with_mcs: Include microseconds

        Returns:
            Unix timestamp, as a float if ``with_mcs``
        """
        seconds, microseconds = self._command("time")
        if with_mcs:
            return seconds + microseconds / 1_000_000
        return seconds

    def close(self) -> None:
        """
        Close the connection.

        Raises:
            RedisError: CONNECTION_ERROR if the connection is already closed
        """
        if self._driver is None:
            raise self._error(RedisError.CONNECTION_ERROR, "Connection already closed.",
                              "Redis: connection already closed.")
        try:
            self._driver.close()
        finally:
            self._driver = None
            self._verified_params = None
        self._log("debug", "Redis: connection closed.")

    @property
    def is_open(self) -> bool:
        """Check if the connection is still open."""
        return self._driver is not None

    def get_connection(self):
        """Retrieve the native client, or None once closed."""
        if self._driver is None:
            return None
        return self._driver.client

    def get_driver(self) -> Optional[str]:
        """Name of the driver in use: ``redis`` or ``predis``."""
        if self._driver is None:
            return None
        return self._driver.name

    def get_connection_params(self) -> Optional[Dict[str, Any]]:
        """Retrieve the parameters of the successful connection."""
        if self._verified_params is None:
            return None
        return dict(self._verified_params)

    def get_safe_params(self) -> Optional[Dict[str, Any]]:
        """Retrieve connection parameters with the password masked, for logging."""
        return redact_params(self._verified_params, "redispassword")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        if self.is_open:
            self.close()
