"""
Redis client adapters.

Two client libraries are supported behind one capability interface:

- ``redis``: redis-py on a single dedicated connection with a short
  connect timeout. Password and database are handed to the client so every
  socket it opens runs AUTH and SELECT before anything else; then PING.
- ``predis``: valkey-py, built in one go from a structured option map
  (scheme, host, port, password, database, timeout), then pinged.

Both decode responses to ``str`` and report a missing key as ``None``.
Neither retries: a dropped link fails the command in progress.
"""

from collections.abc import Mapping
from typing import Any, Dict, Optional, Sequence, Tuple, Type, Union

import redis
import valkey
from redis.backoff import NoBackoff
from redis.retry import Retry
from valkey.backoff import NoBackoff as ValkeyNoBackoff
from valkey.retry import Retry as ValkeyRetry

# Short default so unreachable hosts fail fast
DEFAULT_CONNECT_TIMEOUT = 0.2
DEFAULT_PORT = 6379
# Bound on every reply, PING included
DEFAULT_SOCKET_TIMEOUT = 5.0


class RedisDriver:
    """Capability interface shared by the client adapters."""

    name: str = ""
    # Native exceptions raised by the client library
    errors: Tuple[Type[Exception], ...] = ()
    # Native exceptions meaning the link itself is broken
    connection_errors: Tuple[Type[Exception], ...] = ()

    def __init__(self, params: Dict[str, Any]):
        """
        Args:
            params: Verified Redis connection parameters
        """
        self.params = params
        self.client = None

    def connect(self) -> None:
        """
        Open the native client and verify it with PING.

        Raises:
            Any of ``errors``, ``OSError`` or ``ValueError`` on failure
        """
        raise NotImplementedError

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
        self.client = None

    def set(self, key: str, value: Any, options: Any = None):
        return self.client.set(key, value)

    def hset(self, key: str, hkey: str, value: Any) -> int:
        return self.client.hset(key, hkey, value)

    def delete(self, keys: Sequence[str]) -> int:
        return self.client.delete(*keys)

    def expire(self, key: str, ttl: int) -> bool:
        return self.client.expire(key, ttl)

    def expireat(self, key: str, timestamp: int) -> bool:
        return self.client.expireat(key, timestamp)

    def get(self, key: str) -> Optional[str]:
        return self.client.get(key)

    def hget(self, key: str, hkey: str) -> Optional[str]:
        return self.client.hget(key, hkey)

    def ttl(self, key: str) -> int:
        return self.client.ttl(key)

    def time(self) -> Tuple[int, int]:
        """Server time as (seconds, microseconds)."""
        seconds, microseconds = self.client.time()
        return int(seconds), int(microseconds)


class RedisPyDriver(RedisDriver):
    """redis-py adapter."""

    name = "redis"
    errors = (redis.exceptions.RedisError,)
    connection_errors = (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError)

    def connect(self) -> None:
        params = self.params
        timeout = params.get("redistimeout")
        # AUTH and SELECT run on connect of every socket, reconnects included
        self.client = redis.Redis(
            host=params["redishost"],
            port=int(params.get("redisport") or DEFAULT_PORT),
            password=params.get("redispassword") or None,
            db=int(params.get("redisdatabase") or 0),
            socket_connect_timeout=float(timeout or DEFAULT_CONNECT_TIMEOUT),
            socket_timeout=float(timeout or DEFAULT_SOCKET_TIMEOUT),
            retry=Retry(NoBackoff(), 0),
            decode_responses=True,
            single_connection_client=True,
        )
        self.client.ping()

    def set(self, key: str, value: Any, options: Union[int, Mapping, None] = None):
        """
        Set a string value.

        Args:
            options: TTL in seconds, or a mapping of extended options
                accepted by redis-py's ``set`` (``ex``, ``px``, ``nx``,
                ``xx``, ``keepttl``, ...)
        """
        if options is None:
            return self.client.set(key, value)
        if isinstance(options, Mapping):
            return self.client.set(key, value, **options)
        return self.client.set(key, value, ex=int(options))


class ValkeyDriver(RedisDriver):
    """valkey-py adapter, configured from a structured option map."""

    name = "predis"
    errors = (valkey.exceptions.ValkeyError,)
    connection_errors = (valkey.exceptions.ConnectionError, valkey.exceptions.TimeoutError)

    def client_options(self) -> Dict[str, Any]:
        """
        Map connection parameters to valkey-py keyword arguments.

        Only non-empty parameters are passed, plus a reply timeout and
        a no-retry policy.

        Raises:
            ValueError: If ``redisscheme`` is not tcp, tls or unix
        """
        params = self.params
        options: Dict[str, Any] = {"decode_responses": True}
        scheme = params.get("redisscheme") or "tcp"
        if scheme == "unix":
            options["unix_socket_path"] = params["redishost"]
        elif scheme in ("tcp", "tls"):
            options["host"] = params["redishost"]
            if params.get("redisport"):
                options["port"] = int(params["redisport"])
            if scheme == "tls":
                options["ssl"] = True
        else:
            raise ValueError(f"unsupported scheme: {scheme}")
        if params.get("redispassword"):
            options["password"] = params["redispassword"]
        if params.get("redisdatabase"):
            options["db"] = int(params["redisdatabase"])
        if params.get("redistimeout"):
            options["socket_connect_timeout"] = float(params["redistimeout"])
        options["socket_timeout"] = float(params.get("redistimeout") or DEFAULT_SOCKET_TIMEOUT)
        options["retry"] = ValkeyRetry(ValkeyNoBackoff(), 0)
        return options

    def connect(self) -> None:
        self.client = valkey.Valkey(**self.client_options())
        self.client.ping()


DRIVERS: Dict[str, Type[RedisDriver]] = {
    driver.name: driver for driver in (RedisPyDriver, ValkeyDriver)
}


def get_driver(redistype: str) -> Optional[Type[RedisDriver]]:
    """Look up the adapter class for a normalized ``redistype``."""
    return DRIVERS.get(redistype)
