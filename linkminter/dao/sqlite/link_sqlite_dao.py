"""Data Access Object (DAO) implementation for link records in an embedded SQLite store

This module provides the default, single-file implementation of LinkBaseDAO.
Each container is a table in one store file:

    urls (url TEXT PRIMARY KEY, token TEXT)     URL   -> token
    keys (token TEXT PRIMARY KEY, record BLOB)  token -> serialized LinkRecordModel

Responsibilities:
    - Mint or renew token bindings, writing both tables in one transaction;
    - Resolve tokens through read-only transactions;
    - Sweep expired and corrupt records out of both tables in one transaction;
    - Convert SQLite failures into DAO exceptions.

Classes:
    LinkSQLiteDAO:
        DAO for storing and resolving LinkRecordModel in a SQLite store file.

Example:
    >>> from linkminter.dao.sqlite import LinkSQLiteDAO
    >>> from linkminter.utils.shortener import RandomTokenGenerator

    >>> dao = LinkSQLiteDAO(sqlite_path='shorten.db')
    >>> token = dao.mint('https://example.com/page', RandomTokenGenerator())
    >>> token
    'b3kT0x9QfZa'
    >>> dao.resolve(token)
    'https://example.com/page'
    >>> dao.mint('https://example.com/page', RandomTokenGenerator()) == token
    True
"""

import logging
import sqlite3
from datetime import datetime, UTC

from beartype import beartype

from linkminter.models import LinkRecordModel, SweepSummaryModel
from linkminter.types import TokenFactory
from linkminter.dao.base import LinkBaseDAO
from linkminter.dao.sqlite.mixins import SQLiteStoreMixin
from linkminter.exceptions import ValidationError
from linkminter.dao.sqlite.helpers import handle_sqlite_error
from linkminter.dao.exceptions import CorruptRecordError, TokenCollisionError, TokenNotFoundError
from linkminter.constants import CORRUPT_RECORD_RESET, MAX_TOKEN_ATTEMPTS, Container


logger = logging.getLogger(__name__)


class LinkSQLiteDAO(SQLiteStoreMixin, LinkBaseDAO):
    """SQLite-based Data Access Object (DAO) for token <-> URL bindings

    Attributes (see SQLiteStoreMixin and LinkBaseDAO):
        path (str):
            Store file path.
        timeout (float):
            Busy timeout in seconds.
        ttl (timedelta):
            Lifetime granted by every mint.

    Example:
        >>> dao = LinkSQLiteDAO(sqlite_path='/var/lib/linkminter/shorten.db', ttl=timedelta(days=7))
        >>> dao.get('abc123')
        LinkRecordModel(target='https://example.com', expiry=datetime.datetime(...))
    """

    @handle_sqlite_error
    @beartype
    def mint(self, url: str, generate_token: TokenFactory, **kwargs) -> str:
        """Mint or renew the token bound to a URL

        Runs in a single read-write transaction:
        - Step 1: Create both containers if missing (idempotent)
        - Step 2: Reuse the URL's existing token, else draw a free candidate
        - Step 3: Load the token's record; a corrupt record is reset, not fatal
        - Step 4: Write the record (expiry = now + ttl) and the URL binding

        Args:
            url (str):
                Non-empty target URL.
            generate_token (TokenFactory):
                Source of candidate tokens for URLs without a binding.

        Returns:
            str: the token bound to `url`.

        Raises:
            ValidationError:
                If `url` is empty. The store is not touched.
            TokenCollisionError:
                If MAX_TOKEN_ATTEMPTS candidates were all already taken.
            DataStoreError:
                If any SQLite operation fails; nothing is committed.
        """
        if not url:
            raise ValidationError("Missing 'url'.")

        with self.transaction(write=True) as conn:
            self._create_containers(conn)

            row = conn.execute(f'SELECT token FROM "{Container.URLS}" WHERE url = ?', (url,)).fetchone()
            if row is not None:
                token = row[0]
                self._check_record(conn, token)
            else:
                token = self._draw_token(conn, generate_token)

            # The URL is the lookup key, so a renewal never changes the target
            record = LinkRecordModel(target=url, expiry=datetime.now(UTC) + self.ttl)
            conn.execute(
                f'INSERT OR REPLACE INTO "{Container.KEYS}" (token, record) VALUES (?, ?)',
                (token, record.to_json().encode('utf-8')),
            )
            conn.execute(f'INSERT OR REPLACE INTO "{Container.URLS}" (url, token) VALUES (?, ?)', (url, token))

        return token

    @handle_sqlite_error
    @beartype
    def get(self, token: str, **kwargs) -> LinkRecordModel:
        """Retrieve the stored record for a token through a read-only transaction

        Raises:
            TokenNotFoundError:
                If the token container does not exist yet or the token is absent.
            CorruptRecordError:
                If the stored record cannot be decoded.
            DataStoreError:
                If SQLite fails.
        """
        with self.transaction() as conn:
            if not self._container_exists(conn, Container.KEYS):
                raise TokenNotFoundError(f"Token '{token}' not found (no links minted yet).")
            row = conn.execute(f'SELECT record FROM "{Container.KEYS}" WHERE token = ?', (token,)).fetchone()

        if row is None:
            raise TokenNotFoundError(f"Token '{token}' not found.")

        try:
            return LinkRecordModel.from_json(row[0])
        except CorruptRecordError as e:
            raise CorruptRecordError(f"Link record for token '{token}' is corrupt.") from e

    @handle_sqlite_error
    @beartype
    def sweep(self, now: datetime | None = None, **kwargs) -> SweepSummaryModel:
        """Remove expired and corrupt records from both containers

        The scan and every delete share one read-write transaction, so readers
        see either all of this cycle's deletions or none of them. URL entries
        are removed by token, which also covers bindings whose corrupt record
        no longer names its URL.

        Args:
            now (datetime | None):
                Cycle start. Defaults to current UTC time.

        Returns:
            SweepSummaryModel: counts of removed records and URL entries.
        """
        now = now or datetime.now(UTC)

        with self.transaction(write=True) as conn:
            if not self._container_exists(conn, Container.KEYS):
                return SweepSummaryModel()

            expired, corrupt = [], []
            for token, raw in conn.execute(f'SELECT token, record FROM "{Container.KEYS}"'):
                try:
                    record = LinkRecordModel.from_json(raw)
                except CorruptRecordError:
                    logger.warning('Sweeping corrupt link record.', extra={'token': token, 'record': _printable(raw)})
                    corrupt.append(token)
                    continue
                if record.expired(now):
                    expired.append(token)

            marked = [(token,) for token in expired + corrupt]
            conn.executemany(f'DELETE FROM "{Container.KEYS}" WHERE token = ?', marked)

            urls_removed = 0
            if marked and self._container_exists(conn, Container.URLS):
                before = conn.total_changes
                conn.executemany(f'DELETE FROM "{Container.URLS}" WHERE token = ?', marked)
                urls_removed = conn.total_changes - before

        return SweepSummaryModel(expired=len(expired), corrupt=len(corrupt), urls=urls_removed)

    def _draw_token(self, conn: sqlite3.Connection, generate_token: TokenFactory) -> str:
        """Draw candidates until one is absent from the token container."""
        for _ in range(MAX_TOKEN_ATTEMPTS):
            candidate = generate_token()
            taken = conn.execute(f'SELECT 1 FROM "{Container.KEYS}" WHERE token = ?', (candidate,)).fetchone()
            if taken is None:
                return candidate
            logger.debug('Candidate token already taken.', extra={'token': candidate})
        raise TokenCollisionError(f'No free token found after {MAX_TOKEN_ATTEMPTS} attempts.')

    def _check_record(self, conn: sqlite3.Connection, token: str) -> None:
        """Log when a renewal is about to overwrite a corrupt record."""
        row = conn.execute(f'SELECT record FROM "{Container.KEYS}" WHERE token = ?', (token,)).fetchone()
        if row is None:
            return
        try:
            LinkRecordModel.from_json(row[0])
        except CorruptRecordError:
            logger.warning(
                'Resetting corrupt link record during mint.',
                extra={'token': token, 'record': _printable(row[0]), 'event': CORRUPT_RECORD_RESET},
            )


def _printable(raw: str | bytes) -> str:
    return raw.decode('utf-8', errors='replace') if isinstance(raw, bytes) else str(raw)
