"""SQLite mixin providing store file setup, transactions and connectivity checks.

Responsibilities:
    - Open (or create) the single store file in WAL mode
    - Hand out read-only and read-write transactions
    - Create containers idempotently and check for their existence
    - Healthcheck the store

Classes:
    - SQLiteStoreMixin: Base mixin to inject SQLite store setup, transactions & healthcheck.

Example:
    Typical usage with a DAO implementation:

        >>> class LinkSQLiteDAO(SQLiteStoreMixin, LinkBaseDAO):
        ...     pass
        ...
        >>> dao = LinkSQLiteDAO(sqlite_path='shorten.db')
        >>> with dao.transaction(write=True) as conn:
        ...     dao._create_containers(conn)
"""

import os
import sqlite3
from contextlib import contextmanager
from collections.abc import Iterator

from linkminter.constants import Container
from linkminter.dao.exceptions import DataStoreError


CONTAINERS_SQL = f"""
CREATE TABLE IF NOT EXISTS "{Container.URLS}" (
    url TEXT PRIMARY KEY,
    token TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_urls_token ON "{Container.URLS}"(token);
CREATE TABLE IF NOT EXISTS "{Container.KEYS}" (
    token TEXT PRIMARY KEY,
    record BLOB NOT NULL
);
"""


class SQLiteStoreMixin:
    """Mixin SQLite store setup, transactions and health check for SQLite-backed DAOs.

    Every transaction runs on its own connection, so one DAO instance can be
    shared between request handlers and the sweeper thread.

    Attributes:
        path (str):
            Filesystem path of the store file.

        timeout (float):
            Seconds a transaction waits on a locked store before failing.
    """

    def __init__(
        self,
        sqlite_path: str | os.PathLike = 'shorten.db',
        sqlite_timeout: float = 30.0,
        **kwargs,
    ):
        """Open or create the store file

        Args:
            sqlite_path (str | os.PathLike):
                Path of the store file. Parent directories are created as needed.
                Defaults to 'shorten.db'.

            sqlite_timeout (float):
                Busy timeout in seconds applied to every connection. Defaults to 30.

            **kwargs:
                Forwarded to the next class in the MRO (e.g. `ttl` for LinkBaseDAO).

        Raises:
            DataStoreError:
                If the store file cannot be opened or switched to WAL mode.
        """
        super().__init__(**kwargs)

        self.path = os.fspath(sqlite_path)
        if self.path == ':memory:':
            raise ValueError('An in-memory SQLite store cannot be shared between transactions.')
        self.timeout = float(sqlite_timeout)

        try:
            os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)
            with self._connection() as conn:
                # WAL lets readers proceed on their snapshot while a writer commits
                conn.execute('PRAGMA journal_mode=WAL')
        except (OSError, sqlite3.Error) as e:
            raise DataStoreError(f"Can't open SQLite store at {self.path}.") from e

        self._healthcheck()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        # isolation_level=None: transactions are begun explicitly by transaction()
        conn = sqlite3.connect(self.path, timeout=self.timeout, isolation_level=None)
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def transaction(self, write: bool = False) -> Iterator[sqlite3.Connection]:
        """Run a block inside one atomic SQLite transaction

        Read-write transactions take the write lock up front (BEGIN IMMEDIATE),
        so writers serialize. Read-only transactions are deferred and run with
        `query_only`, reading one consistent snapshot.

        Args:
            write (bool):
                True for a read-write transaction. Defaults to False.

        Yields:
            sqlite3.Connection: connection bound to the open transaction.

        Example:
            >>> with dao.transaction(write=True) as conn:
            ...     conn.execute('DELETE FROM keys WHERE token = ?', ('abc123',))
        """
        with self._connection() as conn:
            if not write:
                conn.execute('PRAGMA query_only = ON')
            conn.execute('BEGIN IMMEDIATE' if write else 'BEGIN')
            try:
                yield conn
            except BaseException:
                if conn.in_transaction:
                    conn.execute('ROLLBACK')
                raise
            else:
                conn.execute('COMMIT')

    @staticmethod
    def _create_containers(conn: sqlite3.Connection) -> None:
        for statement in CONTAINERS_SQL.split(';'):
            if statement.strip():
                conn.execute(statement)

    @staticmethod
    def _container_exists(conn: sqlite3.Connection, container: Container) -> bool:
        row = conn.execute("SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (str(container),)).fetchone()
        return row is not None

    def _healthcheck(self, raise_error: bool = True) -> bool:
        """Run a trivial query to healthcheck the store file

        Args:
            raise_error (bool):
                If True, raises DataStoreError on failure. Defaults to True.

        Returns:
            bool:
                True if the store is readable, False otherwise (only if raise_error=False).

        Raises:
            DataStoreError:
                If the store cannot be queried and raise_error=True.

        Example:
            >>> self._healthcheck()
            True
        """
        try:
            with self._connection() as conn:
                conn.execute('SELECT 1').fetchone()
        except sqlite3.Error as e:
            if raise_error:
                raise DataStoreError(f"Can't query SQLite store at {self.path}. Check the provided configuration parameters.") from e
            return False
        else:
            return True
