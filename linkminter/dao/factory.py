"""Construct store backends and token generators from configuration.

Functions:
    build_link_dao(app_config) -> LinkBaseDAO
        Open the DAO selected by `active_backend`.
    build_token_generator(app_config) -> TokenGenerator
        Create the generator selected by `tokens.strategy`.

Example:
    >>> from linkminter.utils.config import load_config
    >>> dao = build_link_dao(load_config())
    >>> type(dao).__name__
    'LinkSQLiteDAO'
"""

import logging
from datetime import timedelta

from linkminter.types import AppConfig
from linkminter.constants import Backend, TokenStrategy
from linkminter.exceptions import BadConfigurationError
from linkminter.dao.base import LinkBaseDAO
from linkminter.dao.sqlite import LinkSQLiteDAO
from linkminter.dao.redis import LinkRedisDAO
from linkminter.utils.config import app_prefix
from linkminter.utils.shortener import TokenGenerator, RandomTokenGenerator, SaltedCounterTokenGenerator


logger = logging.getLogger(__name__)


def build_link_dao(app_config: AppConfig) -> LinkBaseDAO:
    """Open the configured store backend

    Raises:
        BadConfigurationError:
            If the backend section holds unknown parameters.
        DataStoreError:
            If the store cannot be opened or reached.
    """
    backend = app_config['active_backend']
    settings = app_config['configs'][backend]
    ttl = timedelta(seconds=app_config['link_ttl_seconds'])

    logger.debug('Opening link store.', extra={'backend': backend})
    try:
        if backend == Backend.REDIS:
            return LinkRedisDAO(**{f'redis_{k}': v for k, v in settings.items()}, prefix=app_prefix(), ttl=ttl)
        return LinkSQLiteDAO(**{f'sqlite_{k}': v for k, v in settings.items()}, ttl=ttl)
    except TypeError as e:
        raise BadConfigurationError(f"Invalid parameters in 'configs.{backend}': {e}") from e


def build_token_generator(app_config: AppConfig) -> TokenGenerator:
    tokens = app_config['tokens']
    if tokens['strategy'] == TokenStrategy.COUNTER:
        return SaltedCounterTokenGenerator(salt=tokens.get('salt', 'default_salt'))
    return RandomTokenGenerator()
