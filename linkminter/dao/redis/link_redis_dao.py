"""Data Access Object (DAO) implementation for link records in Redis

This module provides a Redis-based implementation of LinkBaseDAO. The two
containers are Redis hashes:

    <prefix>:urls   field URL   -> token
    <prefix>:keys   field token -> serialized LinkRecordModel

Responsibilities:
    - Mint or renew token bindings with WATCH/MULTI optimistic transactions;
    - Resolve tokens with a single HGET;
    - Sweep expired and corrupt records out of both hashes atomically;
    - Convert Redis client errors into DAO exceptions.

Classes:
    LinkRedisDAO:
        DAO for storing and resolving LinkRecordModel in a Redis datastore.

Example:
    >>> from linkminter.dao.redis import LinkRedisDAO
    >>> from linkminter.utils.shortener import RandomTokenGenerator

    >>> dao = LinkRedisDAO(redis_host='localhost', prefix='linkminter:dev')
    >>> token = dao.mint('https://example.com/page', RandomTokenGenerator())
    >>> dao.resolve(token)
    'https://example.com/page'
"""

import logging
from datetime import datetime, UTC

import redis
from beartype import beartype

from linkminter.models import LinkRecordModel, SweepSummaryModel
from linkminter.types import TokenFactory
from linkminter.dao.base import LinkBaseDAO
from linkminter.dao.redis.mixins import RedisClientMixin
from linkminter.dao.redis.helpers import handle_redis_error
from linkminter.exceptions import ValidationError
from linkminter.dao.exceptions import CorruptRecordError, DataStoreError, TokenCollisionError, TokenNotFoundError
from linkminter.constants import CORRUPT_RECORD_RESET, MAX_TOKEN_ATTEMPTS, MAX_WATCH_ATTEMPTS


logger = logging.getLogger(__name__)


class LinkRedisDAO(RedisClientMixin, LinkBaseDAO):
    """Redis-based Data Access Object (DAO) for token <-> URL bindings

    Attributes (see RedisClientMixin and LinkBaseDAO):
        redis (redis.Redis):
            Redis client used to communicate with the Redis datastore.
        keys (RedisKeySchema):
            Key schema helper for the two container hashes.
        ttl (timedelta):
            Lifetime granted by every mint.

    NOTE:
        Mint and sweep WATCH both hashes. If another writer commits in between,
        EXEC fails with WatchError and the method re-reads and re-applies its
        transaction, which is how writers serialize on Redis. After
        MAX_WATCH_ATTEMPTS lost rounds the method gives up with DataStoreError.
    """

    @handle_redis_error
    @beartype
    def mint(self, url: str, generate_token: TokenFactory, **kwargs) -> str:
        """Mint or renew the token bound to a URL

        Args:
            url (str):
                Non-empty target URL.
            generate_token (TokenFactory):
                Source of candidate tokens for URLs without a binding.

        Returns:
            str: the token bound to `url`.

        Raises:
            ValidationError:
                If `url` is empty. Redis is not touched.
            TokenCollisionError:
                If MAX_TOKEN_ATTEMPTS candidates were all already taken.
            DataStoreError:
                If Redis fails or concurrent writers win MAX_WATCH_ATTEMPTS rounds; nothing is written.

        Example:
            >>> dao.mint('https://example.com', RandomTokenGenerator())
            'b3kT0x9QfZa'
        """
        if not url:
            raise ValidationError("Missing 'url'.")

        urls_key = self.keys.urls_key()
        tokens_key = self.keys.tokens_key()

        with self.redis.pipeline() as pipe:
            for _ in range(MAX_WATCH_ATTEMPTS):
                try:
                    pipe.watch(urls_key, tokens_key)

                    token = pipe.hget(urls_key, url)
                    if token is not None:
                        self._check_record(pipe, tokens_key, token)
                    else:
                        token = self._draw_token(pipe, tokens_key, generate_token)

                    record = LinkRecordModel(target=url, expiry=datetime.now(UTC) + self.ttl)
                    pipe.multi()
                    pipe.hset(tokens_key, token, record.to_json())
                    pipe.hset(urls_key, url, token)
                    pipe.execute()
                    return token
                except redis.WatchError:
                    logger.debug('Link containers changed during mint; re-applying.', extra={'url': url})

            raise DataStoreError(f'Link containers kept changing during mint; gave up after {MAX_WATCH_ATTEMPTS} attempts.')

    @handle_redis_error
    @beartype
    def get(self, token: str, **kwargs) -> LinkRecordModel:
        """Retrieve the stored record for a token (single HGET, never writes)

        Raises:
            TokenNotFoundError:
                If the hash or the token field does not exist.
            CorruptRecordError:
                If the stored record cannot be decoded.
            DataStoreError:
                If Redis connectivity issues occur.
        """
        raw = self.redis.hget(self.keys.tokens_key(), token)
        if raw is None:
            raise TokenNotFoundError(f"Token '{token}' not found.")

        try:
            return LinkRecordModel.from_json(raw)
        except CorruptRecordError as e:
            raise CorruptRecordError(f"Link record for token '{token}' is corrupt.") from e

    @handle_redis_error
    @beartype
    def sweep(self, now: datetime | None = None, **kwargs) -> SweepSummaryModel:
        """Remove expired and corrupt records from both hashes in one MULTI/EXEC

        Args:
            now (datetime | None):
                Cycle start. Defaults to current UTC time.

        Returns:
            SweepSummaryModel: counts of removed records and URL entries.

        Raises:
            DataStoreError:
                If Redis fails or concurrent writers win MAX_WATCH_ATTEMPTS rounds;
                nothing is deleted and the next cycle starts over.
        """
        now = now or datetime.now(UTC)
        urls_key = self.keys.urls_key()
        tokens_key = self.keys.tokens_key()

        with self.redis.pipeline() as pipe:
            for _ in range(MAX_WATCH_ATTEMPTS):
                try:
                    pipe.watch(urls_key, tokens_key)

                    expired, corrupt = [], []
                    for token, raw in pipe.hgetall(tokens_key).items():
                        try:
                            record = LinkRecordModel.from_json(raw)
                        except CorruptRecordError:
                            logger.warning('Sweeping corrupt link record.', extra={'token': token, 'record': raw})
                            corrupt.append(token)
                            continue
                        if record.expired(now):
                            expired.append(token)

                    marked = set(expired + corrupt)
                    if not marked:
                        pipe.unwatch()
                        return SweepSummaryModel()

                    # Bindings are matched by token so corrupt records lose their URL entry too
                    urls = [url for url, token in pipe.hgetall(urls_key).items() if token in marked]

                    pipe.multi()
                    pipe.hdel(tokens_key, *marked)
                    if urls:
                        pipe.hdel(urls_key, *urls)
                    pipe.execute()
                    return SweepSummaryModel(expired=len(expired), corrupt=len(corrupt), urls=len(urls))
                except redis.WatchError:
                    logger.debug('Link containers changed during sweep; re-applying.')

            raise DataStoreError(f'Link containers kept changing during sweep; gave up after {MAX_WATCH_ATTEMPTS} attempts.')

    def _draw_token(self, pipe: redis.client.Pipeline, tokens_key: str, generate_token: TokenFactory) -> str:
        """Draw candidates until one is absent from the token hash."""
        for _ in range(MAX_TOKEN_ATTEMPTS):
            candidate = generate_token()
            if not pipe.hexists(tokens_key, candidate):
                return candidate
            logger.debug('Candidate token already taken.', extra={'token': candidate})
        raise TokenCollisionError(f'No free token found after {MAX_TOKEN_ATTEMPTS} attempts.')

    def _check_record(self, pipe: redis.client.Pipeline, tokens_key: str, token: str) -> None:
        """Log when a renewal is about to overwrite a corrupt record."""
        raw = pipe.hget(tokens_key, token)
        if raw is None:
            return
        try:
            LinkRecordModel.from_json(raw)
        except CorruptRecordError:
            logger.warning(
                'Resetting corrupt link record during mint.',
                extra={'token': token, 'record': raw, 'event': CORRUPT_RECORD_RESET},
            )
