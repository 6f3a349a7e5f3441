import sqlite3
from collections.abc import Callable

import pytest

from linkminter.dao.sqlite import LinkSQLiteDAO


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / 'shorten.db'


@pytest.fixture
def dao(store_path) -> LinkSQLiteDAO:
    return LinkSQLiteDAO(sqlite_path=store_path)


@pytest.fixture
def sequence_tokens() -> Callable[..., Callable[[], str]]:
    """Build a deterministic token factory yielding the given tokens in order."""

    def factory(*tokens: str) -> Callable[[], str]:
        remaining = iter(tokens)
        return lambda: next(remaining)

    return factory


@pytest.fixture
def raw(store_path) -> Callable[..., list[tuple]]:
    """Run a statement directly against the store file, bypassing the DAO."""

    def execute(sql: str, params: tuple = ()) -> list[tuple]:
        conn = sqlite3.connect(store_path, isolation_level=None)
        try:
            return conn.execute(sql, params).fetchall()
        finally:
            conn.close()

    return execute
