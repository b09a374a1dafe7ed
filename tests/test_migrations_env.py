"""Tests for migrations/env_helpers.py DSN-to-URL conversion."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest
from sqlalchemy.engine import make_url

from migrations.env_helpers import dsn_to_url, get_database_url


class TestDsnToUrl:
    def test_tcp_host(self):
        url = make_url(dsn_to_url("dbname=shelter user=admin password=pw host=localhost port=5432"))
        assert url.drivername == "postgresql+psycopg2"
        assert url.username == "admin"
        assert url.password == "pw"
        assert url.host == "localhost"
        assert url.port == 5432
        assert url.database == "shelter"

    def test_socket_host_goes_to_query(self):
        url = make_url(dsn_to_url("dbname=shelter user=sa password=s3cret host=/var/run/postgresql"))
        assert url.host is None
        assert url.query["host"] == "/var/run/postgresql"

    def test_special_chars_round_trip(self):
        url = make_url(dsn_to_url("dbname=db user=u@domain password='p@ss w0rd' host=h"))
        assert url.username == "u@domain"
        assert url.password == "p@ss w0rd"

    def test_url_input(self):
        url = make_url(dsn_to_url("postgresql://u:p@h:5433/shelter"))
        assert (url.host, url.port, url.database) == ("h", 5433, "shelter")

    def test_db_password_env_fallback(self, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "from-env")
        url = make_url(dsn_to_url("dbname=db user=u host=h"))
        assert url.password == "from-env"

    def test_db_password_env_not_used_when_dsn_has_password(self, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "from-env")
        url = make_url(dsn_to_url("dbname=db user=u password=from-dsn host=h"))
        assert url.password == "from-dsn"


class TestGetDatabaseUrl:
    def test_postgres_scheme_accepted(self):
        with patch.dict(os.environ, {"DATABASE_URL": "postgres://u:p@h/shelter"}, clear=True):
            assert get_database_url().startswith("postgresql+psycopg2://")

    def test_missing_url(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(RuntimeError, match="DATABASE_URL"):
                get_database_url()
