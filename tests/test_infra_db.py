"""Tests for database layer."""

import os
from unittest.mock import MagicMock, patch

import pytest


class TestGetConnPasswordFallback:
    """DB_PASSWORD fallback in get_conn(); no real DB needed."""

    def test_db_password_fallback_dsn_without_password(self):
        from shelterbeds.infra.db import get_conn

        env = {"DATABASE_URL": "dbname=shelter user=u host=h port=5432", "DB_PASSWORD": "from-env"}
        with patch.dict(os.environ, env, clear=True), \
             patch("shelterbeds.infra.db.psycopg2.connect", return_value=MagicMock()) as mock_connect:
            get_conn()
            mock_connect.assert_called_once_with(
                "dbname=shelter user=u host=h port=5432",
                password="from-env",
            )

    def test_db_password_not_used_when_dsn_has_password(self):
        from shelterbeds.infra.db import get_conn

        env = {"DATABASE_URL": "dbname=shelter user=u password=from-dsn host=h", "DB_PASSWORD": "from-env"}
        with patch.dict(os.environ, env, clear=True), \
             patch("shelterbeds.infra.db.psycopg2.connect", return_value=MagicMock()) as mock_connect:
            get_conn()
            mock_connect.assert_called_once_with("dbname=shelter user=u password=from-dsn host=h")

    def test_db_password_fallback_url_without_password(self):
        from shelterbeds.infra.db import get_conn

        env = {"DATABASE_URL": "postgres://u@h/shelter", "DB_PASSWORD": "from-env"}
        with patch.dict(os.environ, env, clear=True), \
             patch("shelterbeds.infra.db.psycopg2.connect", return_value=MagicMock()) as mock_connect:
            get_conn()
            mock_connect.assert_called_once_with("postgres://u@h/shelter", password="from-env")

    def test_db_password_not_used_when_url_has_password(self):
        from shelterbeds.infra.db import get_conn

        env = {"DATABASE_URL": "postgres://u:p@h/shelter", "DB_PASSWORD": "from-env"}
        with patch.dict(os.environ, env, clear=True), \
             patch("shelterbeds.infra.db.psycopg2.connect", return_value=MagicMock()) as mock_connect:
            get_conn()
            mock_connect.assert_called_once_with("postgres://u:p@h/shelter")

    def test_raises_without_database_url(self):
        from shelterbeds.infra.db import get_conn

        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(RuntimeError, match="DATABASE_URL"):
                get_conn()


class TestTxnWithMockConnection:
    def test_commits_on_success(self):
        from shelterbeds.infra.db import txn

        conn = MagicMock()
        with txn(conn):
            pass
        conn.commit.assert_called_once()
        conn.rollback.assert_not_called()
        conn.close.assert_not_called()

    def test_rolls_back_on_exception(self):
        from shelterbeds.infra.db import txn

        conn = MagicMock()
        with pytest.raises(ValueError):
            with txn(conn):
                raise ValueError("boom")
        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()

    def test_closes_connection_it_opened(self):
        from shelterbeds.infra.db import txn

        conn = MagicMock()
        with patch("shelterbeds.infra.db.get_conn", return_value=conn):
            with txn():
                pass
        conn.close.assert_called_once()


class TestForUpdate:
    def test_appends_lock_clause(self):
        from shelterbeds.infra.db import for_update

        cur = MagicMock()
        for_update(cur, "SELECT id FROM registrations WHERE id = %s;", (1,))
        cur.execute.assert_called_once_with("SELECT id FROM registrations WHERE id = %s FOR UPDATE", (1,))

    def test_returns_locked_row(self):
        from shelterbeds.infra.db import for_update

        cur = MagicMock()
        cur.fetchone.return_value = (10, 1)
        assert for_update(cur, "SELECT id, mat_number FROM registrations WHERE id = %s", (10,)) == (10, 1)


# Skip integration tests if DATABASE_URL is not set
_skip_no_db = pytest.mark.skipif(
    not os.environ.get("DATABASE_URL"),
    reason="DATABASE_URL not set - skipping DB integration tests",
)


@_skip_no_db
class TestTxn:
    def test_rollback_on_exception(self):
        from shelterbeds.infra.db import get_conn, txn

        conn = get_conn()
        try:
            with conn.cursor() as cur:
                cur.execute("CREATE TEMP TABLE test_rollback (id serial, val text)")
            conn.commit()

            with pytest.raises(ValueError):
                with txn(conn) as cur:
                    cur.execute("INSERT INTO test_rollback (val) VALUES (%s)", ("bad",))
                    raise ValueError("rollback test")

            with conn.cursor() as cur:
                cur.execute("SELECT count(*) FROM test_rollback")
                assert cur.fetchone()[0] == 0
        finally:
            conn.close()

    def test_creates_conn_if_none(self):
        from shelterbeds.infra.db import fetchone, txn

        with txn() as cur:
            assert fetchone(cur, "SELECT %s::int", (42,))[0] == 42
