"""Abstract base class for link record data access objects (DAOs).

This class establishes a consistent contract for every store backend that
keeps the two link containers:

    urls: URL   -> token
    keys: token -> serialized LinkRecordModel

Responsibilities:
    - Mint (or renew) a token for a URL, updating both containers atomically.
    - Resolve a token to its target URL without mutating the store.
    - Sweep expired and corrupt records out of both containers atomically.
    - Standardize error handling across store implementations.

Example:
    Typical usage with a datastore-specific implementation:

        >>> from linkminter.dao.sqlite import LinkSQLiteDAO
        >>> from linkminter.utils.shortener import RandomTokenGenerator

        >>> dao = LinkSQLiteDAO(sqlite_path='shorten.db')
        >>> token = dao.mint('https://example.com/blog/article-123', RandomTokenGenerator())
        >>> dao.resolve(token)
        'https://example.com/blog/article-123'
        >>> dao.sweep()
        SweepSummaryModel(expired=0, corrupt=0, urls=0)
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta

from linkminter.models import LinkRecordModel, SweepSummaryModel
from linkminter.dao.exceptions import TokenExpiredError
from linkminter.types import TokenFactory
from linkminter.constants import TTL


class LinkBaseDAO(ABC):
    """Interface for link record data access objects (DAOs).

    Attributes:
        ttl (timedelta):
            Lifetime granted to a link by every mint (renewals included).

    Methods:
        mint(url: str, generate_token: TokenFactory, **kwargs) -> str:
            Bind a URL to a token, reusing the existing binding when there is one.
            Raises TokenCollisionError if no free token could be drawn.
            Raises DataStoreError on store failure.

        get(token: str, **kwargs) -> LinkRecordModel:
            Retrieve the raw record for a token, expired or not.
            Raises TokenNotFoundError, CorruptRecordError, DataStoreError.

        resolve(token: str, now: datetime | None = None, **kwargs) -> str:
            Return the target URL of a live record.
            Raises TokenNotFoundError (absent or expired), CorruptRecordError, DataStoreError.

        sweep(now: datetime | None = None, **kwargs) -> SweepSummaryModel:
            Remove every expired or corrupt record from both containers.
            Raises DataStoreError on store failure.

    Subclassing:
        Datastore-specific implementations (e.g., LinkSQLiteDAO or LinkRedisDAO)
        must extend this class and implement all abstract methods.

    NOTE:
        - Links are never deleted on read. Only sweep() removes records.
    """

    def __init__(self, ttl: timedelta = timedelta(seconds=TTL.ONE_MONTH)):
        if ttl <= timedelta(0):
            raise ValueError(f'Link TTL must be positive (given value: {ttl}).')
        self.ttl = ttl

    @abstractmethod
    def mint(self, url: str, generate_token: TokenFactory, **kwargs) -> str:
        """Bind a URL to a token and (re)set its expiry to now + ttl.

        Args:
            url (str):
                Non-empty target URL.

            generate_token (TokenFactory):
                Callable producing fresh candidate tokens. Only consulted when
                the URL has no binding yet.

            **kwargs:
                Additional keyword arguments, used by data store.

        Returns:
            str: The token now bound to the URL (existing or newly drawn).

        Raises:
            TokenCollisionError:
                If every candidate drawn is already present in the token container.

            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def get(self, token: str, **kwargs) -> LinkRecordModel:
        """Retrieve the stored record for a token, regardless of its expiry.

        Raises:
            TokenNotFoundError:
                If the token container or the token does not exist.

            CorruptRecordError:
                If the stored record cannot be decoded.

            DataStoreError:
                If there is an error in the data store.
        """
        pass

    def resolve(self, token: str, now: datetime | None = None, **kwargs) -> str:
        """Return the target URL for a live token.

        Args:
            token (str):
                Token to look up.

            now (datetime | None):
                Reference moment for the expiry check. Defaults to current UTC time.

        Returns:
            str: The target URL.

        Raises:
            TokenNotFoundError:
                If the token is absent (TokenExpiredError if its record has expired).

            CorruptRecordError:
                If the stored record cannot be decoded.

            DataStoreError:
                If there is an error in the data store.
        """
        record = self.get(token, **kwargs)
        if record.expired(now):
            raise TokenExpiredError(f"Token '{token}' expired at {record.expiry.isoformat()}.")
        return record.target

    @abstractmethod
    def sweep(self, now: datetime | None = None, **kwargs) -> SweepSummaryModel:
        """Delete expired and corrupt records from both containers in one transaction.

        Args:
            now (datetime | None):
                Cycle start; records expiring strictly before it are removed.
                Defaults to current UTC time.

        Returns:
            SweepSummaryModel: counts of removed records and URL entries.

        Raises:
            DataStoreError:
                If there is an error in the data store.
        """
        pass
