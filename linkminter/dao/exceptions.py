"""Exceptions related to Data Access Objects (DAO) operations.

Classes:
    DAOError:
        Generic base class for DAO-related exceptions.

    TokenNotFoundError:
        Raised when a token is absent in the data store.

    TokenExpiredError:
        Raised when a token exists but its record has expired (a TokenNotFoundError).

    CorruptRecordError:
        Raised when a link record is present but cannot be decoded.

    DataStoreError:
        Raised when the underlying store fails (I/O, disk full, lock timeout, connectivity).

    TokenCollisionError:
        Raised when no free token could be drawn for a new URL.

Example:
    >>> from linkminter.dao.exceptions import CorruptRecordError
    >>> raise CorruptRecordError("Link record for token 'abc123' is corrupt.")
    Traceback (most recent call last):
        ...
    linkminter.dao.exceptions.CorruptRecordError: Link record for token 'abc123' is corrupt.
"""

from linkminter.exceptions import LinkMinterError


class DAOError(LinkMinterError):
    """Generic base class for DAO-related exceptions."""

    error_code = 'dao:dao_error'


class TokenNotFoundError(DAOError):
    """Raised when a token is not bound to a live link record."""

    error_code = 'dao:token_not_found_error'


class TokenExpiredError(TokenNotFoundError):
    """Raised when a token is bound to a record whose expiry has passed."""

    error_code = 'dao:token_expired_error'


class CorruptRecordError(DAOError):
    """Raised when a stored link record cannot be decoded."""

    error_code = 'dao:corrupt_record_error'


class DataStoreError(DAOError):
    """Raised when the data store encounters an error.

    Examples include I/O failures, a full disk, lock timeouts and lost connections.
    """

    error_code = 'dao:data_store_error'


class TokenCollisionError(DAOError):
    """Raised when every candidate token drawn for a new URL is already taken."""

    error_code = 'dao:token_collision_error'
