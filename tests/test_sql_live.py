"""
Live MySQL and PostgreSQL tests.

Skipped unless STORELINK_TEST_MYSQL_* or STORELINK_TEST_PGSQL_* env vars
point at a scratch database the user may create tables in.
"""

import time

import pytest

from storelink.errors import SQLError
from storelink.sql import SQL

pytestmark = pytest.mark.live

TABLE = "storelink_live_fruit"


@pytest.fixture
def live_sql(live_sql_params):
    sql = SQL(live_sql_params)
    sql.query_raw(f"DROP TABLE IF EXISTS {TABLE}")
    sql.query_raw(
        f"CREATE TABLE {TABLE} ("
        f"id {sql.stmt_fragment('index')}, "
        "name VARCHAR(64) NOT NULL, "
        "qty INTEGER"
        f") {sql.stmt_fragment('engine')}"
    )
    yield sql
    if sql.is_open:
        sql.query_raw(f"DROP TABLE IF EXISTS {TABLE}")
        sql.close()


class TestLiveBackends:
    """Test the facade against real servers."""

    def test_insert_and_query(self, live_sql):
        """Test insert results per backend and reading back."""
        if live_sql.get_dbtype() == "pgsql":
            new_id = live_sql.insert(TABLE, {"name": "apple", "qty": 3}, "id")
            row = live_sql.insert(TABLE, {"name": "pear", "qty": 5})
            assert row == {"id": new_id + 1, "name": "pear", "qty": 5}
        else:
            new_id = live_sql.insert(TABLE, {"name": "apple", "qty": 3})
            live_sql.insert(TABLE, {"name": "pear", "qty": 5})

        assert live_sql.query(f"SELECT name FROM {TABLE} WHERE id=?", [new_id]) == {
            "name": "apple"
        }

    def test_pgsql_invalid_returning_column(self, live_sql):
        """Test an unknown RETURNING column fails the insert."""
        if live_sql.get_dbtype() != "pgsql":
            pytest.skip("RETURNING is PostgreSQL only")
        with pytest.raises(SQLError) as exc_info:
            live_sql.insert(TABLE, {"name": "apple"}, "nope")
        assert exc_info.value.code == SQLError.EXECUTION_ERROR

    def test_update_delete(self, live_sql):
        """Test update and delete helpers."""
        live_sql.insert(TABLE, {"name": "apple", "qty": 3})
        live_sql.update(TABLE, {"qty": 4}, {"name": "apple"})
        assert live_sql.query(f"SELECT qty FROM {TABLE}") == {"qty": 4}

        live_sql.delete(TABLE, {"name": "apple"})
        assert live_sql.query(f"SELECT qty FROM {TABLE}") is None

    def test_percent_in_literal(self, live_sql):
        """Test literal percent signs next to placeholders."""
        live_sql.insert(TABLE, {"name": "apple%", "qty": 1})
        row = live_sql.query(f"SELECT name FROM {TABLE} WHERE name LIKE '%ple%' AND qty=?", [1])
        assert row == {"name": "apple%"}

    def test_table_exists(self, live_sql):
        assert live_sql.table_exists(TABLE)
        assert not live_sql.table_exists("storelink_live_missing")

    def test_time(self, live_sql):
        """Test server epoch is close to the local clock."""
        assert abs(live_sql.time() - int(time.time())) < 60

    def test_datetime_fragment(self, live_sql):
        """Test datetime fragment evaluates on the server."""
        fragment = live_sql.stmt_fragment("datetime", {"delta": -60})
        row = live_sql.query(f"SELECT {fragment} AS past")
        assert row["past"] is not None

    @pytest.mark.parametrize("delta", [-3600, 0, 3600])
    def test_datetime_fragment_offset(self, live_sql, delta):
        """Test the fragment is delta seconds away from the delta 0 fragment."""
        shifted = live_sql.stmt_fragment("datetime", {"delta": delta})
        now = live_sql.stmt_fragment("datetime", {"delta": 0})
        if live_sql.get_dbtype() == "mysql":
            stmt = f"SELECT UNIX_TIMESTAMP({shifted}) - UNIX_TIMESTAMP({now}) AS diff"
        else:
            stmt = f"SELECT EXTRACT(EPOCH FROM {shifted}) - EXTRACT(EPOCH FROM {now}) AS diff"
        row = live_sql.query(stmt)
        assert abs(float(row["diff"]) - delta) <= 2

    def test_literals_and_comments(self, live_sql):
        """Test literal text and commented placeholders reach the server as written."""
        live_sql.insert(TABLE, {"name": "apple", "qty": 1})
        row = live_sql.query(f"SELECT 'x :y' AS s /* ? */ FROM {TABLE} WHERE qty=? -- ?\n", [1])
        assert row == {"s": "x :y"}

    def test_connection_string(self, live_sql, live_sql_params):
        """Test the DSN names the database."""
        dsn = live_sql.get_connection_string()
        assert dsn.startswith(f"{live_sql_params['dbtype']}:dbname={live_sql_params['dbname']}")
