"""Unit tests for the LinkRedisDAO

Test coverage includes:

1. Minting
   - New URLs get a fresh token written to both hashes inside MULTI/EXEC.
   - Known URLs reuse their token; corrupt records are reset and logged.
   - Taken candidates are skipped; exhausting them raises TokenCollisionError.
   - WatchError re-applies the transaction, at most MAX_WATCH_ATTEMPTS times.
   - Empty URLs raise ValidationError without touching Redis.
   - Redis connection errors raise DataStoreError.

2. Resolving
   - Live records return their target; expired ones raise TokenExpiredError.
   - Missing tokens raise TokenNotFoundError; corrupt ones CorruptRecordError.

3. Sweeping
   - Expired and corrupt records are deleted from both hashes in one EXEC.
   - Nothing to delete means no MULTI at all.
   - WatchError re-applies the sweep; endless contention fails the cycle with DataStoreError.
"""

import json
import logging
from datetime import datetime, timedelta, UTC
from unittest.mock import call

import pytest
import redis
from beartype.roar import BeartypeCallHintParamViolation
from freezegun import freeze_time

from linkminter.models import LinkRecordModel, SweepSummaryModel
from linkminter.dao.redis import LinkRedisDAO
from linkminter.dao.exceptions import (
    CorruptRecordError,
    DataStoreError,
    TokenCollisionError,
    TokenExpiredError,
    TokenNotFoundError,
)
from linkminter.exceptions import ValidationError
from linkminter.constants import MAX_TOKEN_ATTEMPTS, MAX_WATCH_ATTEMPTS


URLS_KEY = 'testapp:test:urls'
TOKENS_KEY = 'testapp:test:keys'


def record_json(target: str, expiry: datetime) -> str:
    return LinkRecordModel(target=target, expiry=expiry).to_json()


@pytest.fixture
def dao(redis_client, app_prefix) -> LinkRedisDAO:
    return LinkRedisDAO(redis_client=redis_client, prefix=app_prefix)


# -------------------------------
# 1. Minting
# -------------------------------


@freeze_time('2025-10-15 12:00:00')
def test_mint_new_url(dao, redis_client):
    """Ensure a new URL is bound to the drawn token in both hashes atomically."""
    token = dao.mint('https://example.com/a', lambda: 't1')

    expected_record = record_json('https://example.com/a', datetime(2025, 11, 14, 12, 0, 0, tzinfo=UTC))
    assert token == 't1'
    redis_client.watch.assert_called_with(URLS_KEY, TOKENS_KEY)
    redis_client.hget.assert_called_once_with(URLS_KEY, 'https://example.com/a')
    redis_client.hexists.assert_called_once_with(TOKENS_KEY, 't1')
    redis_client.multi.assert_called_once()
    redis_client.hset.assert_has_calls(
        [
            call(TOKENS_KEY, 't1', expected_record),
            call(URLS_KEY, 'https://example.com/a', 't1'),
        ],
        any_order=False,
    )
    redis_client.execute.assert_called_once()


def test_mint_known_url_reuses_token(dao, redis_client):
    """Ensure the token stored for the URL is reused and the generator is not consulted."""
    live = record_json('https://example.com/a', datetime.now(UTC) + timedelta(days=1))
    redis_client.hget.side_effect = ['t1', live]

    def exhausted() -> str:
        raise AssertionError('generator must not be called')

    assert dao.mint('https://example.com/a', exhausted) == 't1'
    redis_client.hexists.assert_not_called()
    assert redis_client.hset.call_args_list[1] == call(URLS_KEY, 'https://example.com/a', 't1')


def test_mint_resets_corrupt_record(dao, redis_client, caplog):
    """Ensure a corrupt record under a reused token is overwritten and logged."""
    redis_client.hget.side_effect = ['t1', '{broken']

    with caplog.at_level(logging.WARNING, logger='linkminter.dao.redis.link_redis_dao'):
        assert dao.mint('https://example.com/a', lambda: 'unused') == 't1'

    payload = json.loads(redis_client.hset.call_args_list[0].args[2])
    assert payload['url'] == 'https://example.com/a'
    assert any(getattr(r, 'event', None) == 'corrupt_record_reset' for r in caplog.records)


def test_mint_skips_taken_candidates(dao, redis_client):
    """Ensure candidates present in the token hash are skipped."""
    redis_client.hexists.side_effect = [True, True, False]
    candidates = iter(['t1', 't2', 't3'])

    assert dao.mint('https://example.com/b', lambda: next(candidates)) == 't3'


def test_mint_raises_when_all_candidates_collide(dao, redis_client):
    """Ensure exhausting candidates raises TokenCollisionError without writing."""
    redis_client.hexists.return_value = True

    with pytest.raises(TokenCollisionError):
        dao.mint('https://example.com/b', lambda: 't1')

    assert redis_client.hexists.call_count == MAX_TOKEN_ATTEMPTS
    redis_client.hset.assert_not_called()
    redis_client.execute.assert_not_called()


def test_mint_reapplies_after_watch_error(dao, redis_client):
    """Ensure a concurrent commit makes mint re-read and re-apply its writes."""
    redis_client.execute.side_effect = [redis.WatchError('changed'), [1, 1]]
    candidates = iter(['t1', 't2'])

    assert dao.mint('https://example.com/a', lambda: next(candidates)) == 't2'
    assert redis_client.watch.call_count == 2
    assert redis_client.execute.call_count == 2


def test_mint_gives_up_under_constant_contention(dao, redis_client):
    """Ensure a mint that keeps losing the WATCH race fails instead of spinning."""
    redis_client.execute.side_effect = redis.WatchError

    with pytest.raises(DataStoreError, match=f'gave up after {MAX_WATCH_ATTEMPTS} attempts'):
        dao.mint('https://example.com/a', lambda: 't1')

    assert redis_client.execute.call_count == MAX_WATCH_ATTEMPTS
    assert redis_client.watch.call_count == MAX_WATCH_ATTEMPTS


def test_mint_rejects_empty_url(dao, redis_client):
    """Ensure an empty URL never becomes a record that decodes as corrupt."""
    with pytest.raises(ValidationError):
        dao.mint('', lambda: 't1')

    redis_client.watch.assert_not_called()
    redis_client.hset.assert_not_called()


def test_mint_with_redis_connection_error(dao, redis_client):
    """Ensure Redis connection errors during mint raise DataStoreError."""
    redis_client.hget.side_effect = redis.exceptions.ConnectionError('Connection error')

    with pytest.raises(DataStoreError, match="Can't connect to Redis at 203.0.113.1:18000/5."):
        dao.mint('https://example.com/a', lambda: 't1')


def test_mint_with_invalid_types(dao):
    with pytest.raises(BeartypeCallHintParamViolation):
        dao.mint(42, lambda: 't1')


# -------------------------------
# 2. Resolving
# -------------------------------


def test_resolve_live_record(dao, redis_client):
    redis_client.hget.return_value = record_json('https://example.com/a', datetime.now(UTC) + timedelta(days=1))

    assert dao.resolve('t1') == 'https://example.com/a'
    redis_client.hget.assert_called_once_with(TOKENS_KEY, 't1')
    redis_client.hset.assert_not_called()
    redis_client.hdel.assert_not_called()


def test_resolve_expired_record(dao, redis_client):
    """Ensure a record that expired a second ago is reported as expired."""
    redis_client.hget.return_value = record_json('https://example.com/a', datetime.now(UTC) - timedelta(seconds=1))

    with pytest.raises(TokenExpiredError):
        dao.resolve('t1')
    redis_client.hdel.assert_not_called()


def test_resolve_missing_token(dao, redis_client):
    with pytest.raises(TokenNotFoundError, match="Token 'nope' not found."):
        dao.resolve('nope')


def test_resolve_corrupt_record(dao, redis_client):
    redis_client.hget.return_value = 'not json'

    with pytest.raises(CorruptRecordError, match="token 't1' is corrupt"):
        dao.resolve('t1')


# -------------------------------
# 3. Sweeping
# -------------------------------


@freeze_time('2025-10-15 12:00:00')
def test_sweep_removes_expired_and_corrupt(dao, redis_client):
    """Ensure expired and corrupt tokens and their URL bindings go in one EXEC."""
    now = datetime.now(UTC)
    redis_client.hgetall.side_effect = [
        {
            'old': record_json('https://example.com/old', now - timedelta(seconds=1)),
            'live': record_json('https://example.com/live', now + timedelta(days=1)),
            'bad': '{broken',
        },
        {
            'https://example.com/old': 'old',
            'https://example.com/live': 'live',
            'https://example.com/bad': 'bad',
        },
    ]

    summary = dao.sweep()

    assert summary == SweepSummaryModel(expired=1, corrupt=1, urls=2)
    redis_client.multi.assert_called_once()
    tokens_call, urls_call = redis_client.hdel.call_args_list
    assert tokens_call.args[0] == TOKENS_KEY
    assert set(tokens_call.args[1:]) == {'old', 'bad'}
    assert urls_call.args[0] == URLS_KEY
    assert set(urls_call.args[1:]) == {'https://example.com/old', 'https://example.com/bad'}
    redis_client.execute.assert_called_once()


def test_sweep_nothing_to_remove(dao, redis_client):
    """Ensure a clean store is swept without opening a MULTI block."""
    redis_client.hgetall.return_value = {
        'live': record_json('https://example.com/live', datetime.now(UTC) + timedelta(days=1)),
    }

    assert dao.sweep() == SweepSummaryModel()
    redis_client.unwatch.assert_called_once()
    redis_client.multi.assert_not_called()
    redis_client.hdel.assert_not_called()


def test_sweep_reapplies_after_watch_error(dao, redis_client):
    expired = record_json('https://example.com/old', datetime.now(UTC) - timedelta(days=1))
    redis_client.hgetall.side_effect = [
        {'old': expired},
        {'https://example.com/old': 'old'},
        {'old': expired},
        {'https://example.com/old': 'old'},
    ]
    redis_client.execute.side_effect = [redis.WatchError('changed'), [1, 1]]

    assert dao.sweep().expired == 1
    assert redis_client.execute.call_count == 2


def test_sweep_with_redis_connection_error(dao, redis_client):
    redis_client.hgetall.side_effect = redis.exceptions.ConnectionError('Connection error')

    with pytest.raises(DataStoreError):
        dao.sweep()


def test_sweep_gives_up_under_constant_contention(dao, redis_client):
    """Ensure a sweep that keeps losing the WATCH race fails the cycle instead of spinning."""
    hashes = {
        TOKENS_KEY: {'old': record_json('https://example.com/old', datetime.now(UTC) - timedelta(days=1))},
        URLS_KEY: {'https://example.com/old': 'old'},
    }
    redis_client.hgetall.side_effect = lambda key: hashes[key]
    redis_client.execute.side_effect = redis.WatchError

    with pytest.raises(DataStoreError, match=f'gave up after {MAX_WATCH_ATTEMPTS} attempts'):
        dao.sweep()

    assert redis_client.execute.call_count == MAX_WATCH_ATTEMPTS


def test_resolve_with_naive_now(dao, redis_client):
    redis_client.hget.return_value = record_json('https://example.com/a', datetime.now(UTC) + timedelta(days=1))

    with pytest.raises(ValueError, match='timezone-aware'):
        dao.resolve('t1', now=datetime(2025, 10, 15, 12, 0, 0))
