"""Database URL helpers for Alembic migrations.

Kept out of env.py so they can be tested without alembic.context.
DATABASE_URL may be a postgres:// URL or a libpq key=value DSN; both are
turned into a SQLAlchemy URL on the psycopg2 driver.
"""

from __future__ import annotations

import os

from psycopg2.extensions import parse_dsn
from sqlalchemy.engine import URL

DRIVER = "postgresql+psycopg2"


def dsn_to_url(dsn: str) -> str:
    """Convert a URL or libpq DSN into a SQLAlchemy URL string.

    A host starting with "/" is a Unix socket directory and goes into the
    query string, the way libpq expects it.
    DB_PASSWORD fills in the password when the DSN has none.
    """
    params = parse_dsn(dsn)

    password = params.get("password") or os.environ.get("DB_PASSWORD") or None
    host = params.get("host")
    port = params.get("port")
    query: dict[str, str] = {}

    if host and host.startswith("/"):
        query["host"] = host
        host = None

    url = URL.create(
        DRIVER,
        username=params.get("user"),
        password=password,
        host=host,
        port=int(port) if port else None,
        database=params.get("dbname"),
        query=query,
    )
    return url.render_as_string(hide_password=False)


def get_database_url() -> str:
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is required to run migrations")
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    return dsn_to_url(url)
