"""
Key-value backends: Redis through redis-py or valkey-py.
"""

from .drivers import RedisDriver, RedisPyDriver, ValkeyDriver, get_driver
from .conn import RedisConn
from .wrappers import Redis, Predis

__all__ = [
    # Drivers
    "RedisDriver",
    "RedisPyDriver",
    "ValkeyDriver",
    "get_driver",

    # Connection and facade
    "RedisConn",

    # Typed wrappers
    "Redis",
    "Predis",
]
