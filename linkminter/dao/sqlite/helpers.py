import functools
import sqlite3
from typing import TypeVar, Any
from collections.abc import Callable

from linkminter.dao.exceptions import DataStoreError


__all__ = []

F = TypeVar('F', bound=Callable[..., Any])


def handle_sqlite_error[F](method: F) -> F:
    """Wrap SQLite-interacting DAO methods to convert engine errors

    Args:
        method (Callable[..., Any]):
            DAO method performing SQLite operations which may raise sqlite3.Error.

    Returns:
        Callable[..., Any]:
            Wrapped method which raises DataStoreError on any SQLite failure
            (I/O errors, a full disk, lock timeouts, a corrupt database file).

    Example:
        >>> @handle_sqlite_error
        ... def count(self):
        ...     with self.transaction() as conn:
        ...         return conn.execute('SELECT COUNT(*) FROM keys').fetchone()[0]
    """

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except sqlite3.Error as e:
            raise DataStoreError(f'SQLite store at {self.path} failed during {method.__name__}(): {e}') from e

    return wrapper
