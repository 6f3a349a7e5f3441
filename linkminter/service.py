"""Link service: the operations the transport layer calls

Classes:
    Resolution:
        Outcome of a resolve: target URL and whether the token was found.
    LinkService:
        Validates input, draws tokens from the injected generator, delegates
        to the store DAO and logs every failure with the failing operation.

Example:
    >>> from linkminter.service import LinkService
    >>> service = LinkService.from_config(load_config())
    >>> token = service.mint('https://example.com/a')
    >>> service.resolve(token)
    Resolution(target='https://example.com/a', found=True)
    >>> service.resolve('missing')
    Resolution(target='', found=False)

Errors raised to the transport layer and their intended responses:
    ValidationError                          -> bad request
    CorruptRecordError, DataStoreError,
    TokenCollisionError                      -> internal error
"""

import logging
from datetime import datetime
from typing import NamedTuple

from linkminter.types import AppConfig
from linkminter.exceptions import ValidationError
from linkminter.dao.base import LinkBaseDAO
from linkminter.dao.factory import build_link_dao, build_token_generator
from linkminter.dao.exceptions import CorruptRecordError, DAOError, TokenExpiredError, TokenNotFoundError
from linkminter.utils.shortener import RandomTokenGenerator, TokenGenerator
from linkminter.constants import CORRUPT_RECORD, STORE_FAILURE, TOKEN_EXPIRED, TOKEN_MINTED, TOKEN_NOT_FOUND


logger = logging.getLogger(__name__)


class Resolution(NamedTuple):
    target: str
    found: bool


NOT_FOUND = Resolution(target='', found=False)


class LinkService:
    def __init__(self, dao: LinkBaseDAO, tokens: TokenGenerator | None = None):
        self.dao = dao
        self.tokens = tokens or RandomTokenGenerator()

    @classmethod
    def from_config(cls, app_config: AppConfig) -> 'LinkService':
        return cls(dao=build_link_dao(app_config), tokens=build_token_generator(app_config))

    def mint(self, url: str) -> str:
        """Return the token bound to `url`, creating or renewing the binding.

        Raises:
            ValidationError:
                If `url` is empty. The store is not touched.
            DAOError:
                TokenCollisionError or DataStoreError from the store, already logged.
        """
        if not isinstance(url, str) or not url:
            raise ValidationError("Missing 'url'.")

        try:
            token = self.dao.mint(url, self.tokens)
        except DAOError as error:
            logger.exception(
                'Failed to mint token.',
                extra={'operation': 'mint', 'url': url, 'event': STORE_FAILURE, 'error': error.error_code},
            )
            raise

        logger.info('Minted token.', extra={'operation': 'mint', 'url': url, 'token': token, 'event': TOKEN_MINTED})
        return token

    def resolve(self, token: str, now: datetime | None = None) -> Resolution:
        """Look up the redirect target for a token without modifying the store.

        Missing and expired tokens are an expected outcome and come back as
        `Resolution('', False)`.

        Raises:
            CorruptRecordError:
                If the stored record is undecodable, already logged.
            DataStoreError:
                If the store fails, already logged.
        """
        if not token:
            return NOT_FOUND

        try:
            target = self.dao.resolve(token, now=now)
        except TokenExpiredError as e:
            logger.info(str(e), extra={'operation': 'resolve', 'token': token, 'event': TOKEN_EXPIRED})
            return NOT_FOUND
        except TokenNotFoundError as e:
            logger.info(str(e), extra={'operation': 'resolve', 'token': token, 'event': TOKEN_NOT_FOUND})
            return NOT_FOUND
        except CorruptRecordError as error:
            logger.error(
                'Corrupt link record.',
                exc_info=True,
                extra={'operation': 'resolve', 'token': token, 'event': CORRUPT_RECORD, 'error': error.error_code},
            )
            raise
        except DAOError as error:
            logger.exception(
                'Failed to resolve token.',
                extra={'operation': 'resolve', 'token': token, 'event': STORE_FAILURE, 'error': error.error_code},
            )
            raise

        return Resolution(target=target, found=True)
