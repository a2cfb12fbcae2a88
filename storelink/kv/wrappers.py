"""
Driver-typed Redis facades.

Each wrapper takes the same connection map as ``RedisConn`` except that
``redistype`` may be omitted; it is always overridden.
"""

import logging
from typing import Any, Dict, Optional

from .conn import RedisConn


class _TypedRedis(RedisConn):
    redistype = ""

    def __init__(self, params: Dict[str, Any], logger: Optional[logging.Logger] = None):
        params = dict(params or {})
        params["redistype"] = self.redistype
        super().__init__(params, logger)


class Redis(_TypedRedis):
    """Facade over redis-py."""

    redistype = "redis"


class Predis(_TypedRedis):
    """Facade over valkey-py, configured from a structured option map."""

    redistype = "predis"
