"""
Shared fixtures.

SQLite fixtures run everywhere against temporary files. MySQL, PostgreSQL
and Redis fixtures read their connection maps from STORELINK_TEST_* env
vars and skip when those are not set.
"""

import os

import pytest

from storelink.sql import SQL


def _live_params(prefix: str, keys):
    params = {}
    for key in keys:
        value = os.getenv(f"{prefix}{key.upper()}")
        if value:
            params[key] = value
    return params


@pytest.fixture
def sqlite_params(tmp_path):
    """Connection map for a fresh SQLite file."""
    return {"dbtype": "sqlite3", "dbname": str(tmp_path / "test.sq3")}


@pytest.fixture
def sqlite_sql(sqlite_params):
    """Open SQLite facade, closed after the test if still open."""
    sql = SQL(sqlite_params)
    yield sql
    if sql.is_open:
        sql.close()


@pytest.fixture(params=["mysql", "pgsql"])
def live_sql_params(request):
    """
    Connection map for a live MySQL or PostgreSQL server.

    Set e.g. STORELINK_TEST_MYSQL_DBNAME, STORELINK_TEST_MYSQL_DBUSER,
    STORELINK_TEST_MYSQL_DBHOST to enable.
    """
    dbtype = request.param
    params = _live_params(
        f"STORELINK_TEST_{dbtype.upper()}_",
        ("dbhost", "dbport", "dbuser", "dbpass", "dbname"),
    )
    if not params.get("dbname") or not params.get("dbuser"):
        pytest.skip(f"STORELINK_TEST_{dbtype.upper()}_* not set")
    params["dbtype"] = dbtype
    return params


@pytest.fixture(params=["redis", "predis"])
def live_redis_params(request):
    """
    Connection map for a live Redis server, for each driver.

    Set STORELINK_TEST_REDIS_REDISHOST (and optionally REDISPORT,
    REDISPASSWORD, REDISDATABASE) to enable.
    """
    params = _live_params(
        "STORELINK_TEST_REDIS_",
        ("redishost", "redisport", "redispassword", "redisdatabase", "redistimeout"),
    )
    if not params.get("redishost"):
        pytest.skip("STORELINK_TEST_REDIS_* not set")
    params["redistype"] = request.param
    return params
