"""Redis mixin providing shared client initialization and connectivity checks.

Responsibilities:
    - Initialize Redis client
    - Healthcheck Redis client

Classes:
    - RedisClientMixin: Base mixin to inject Redis key management, client setup & healthcheck.

Example:
    Typical usage with a DAO implementation:

        >>> class LinkRedisDAO(RedisClientMixin, LinkBaseDAO):
        ...     pass
        ...
        >>> dao = LinkRedisDAO(prefix="linkminter:prod")
        >>> dao._healthcheck()
        True
"""

import redis

from linkminter.dao.redis import RedisKeySchema
from linkminter.dao.redis.helpers import redis_location
from linkminter.dao.exceptions import DataStoreError
from linkminter.exceptions import BadConfigurationError


class RedisClientMixin:
    """Mixin Redis client setup and health check for Redis-backed DAOs.

    Attributes:
        redis (redis.Redis):
            Active Redis client instance used by subclasses.

        keys (RedisKeySchema):
            Helper class for generating namespaced Redis key names.
    """

    def __init__(
        self,
        redis_host: str = 'localhost',
        redis_port: int = 6379,
        redis_db: int = 0,
        redis_username: str | None = None,
        redis_password: str | None = None,
        redis_client: redis.Redis | None = None,
        prefix: str | None = None,
        **kwargs,
    ):
        """Initialize a Redis-based DAO

        The option is given to either use an existing Redis client instance or
        create one via the appropriate Redis connection parameters. Clients created
        here always decode responses, so tokens and URLs come back as `str`.

        Args:
            redis_host (str):
                Hostname of the Redis server. Defaults to 'localhost'.

            redis_port (int):
                Redis server port. Defaults to 6379.

            redis_db (int):
                Redis database index. Defaults to 0.

            redis_username (str | None):
                Username for Redis authentication (if required).

            redis_password (str | None):
                Password for Redis authentication (if required).

            redis_client (redis.Redis | None):
                Pre-initialized Redis client. If None, a new client is created.
                A supplied client must be created with `decode_responses=True`.

            prefix (str | None):
                Namespace prefix for all Redis keys, e.g. 'app:env'.

            **kwargs:
                Forwarded to the next class in the MRO (e.g. `ttl` for LinkBaseDAO).

        Raises:
            DataStoreError:
                If Redis healthcheck fails (connectivity issues).
            BadConfigurationError:
                If the supplied client returns bytes instead of `str`.
        """
        super().__init__(**kwargs)

        if redis_client is None:
            redis_client = redis.Redis(
                host=redis_host,
                port=int(redis_port),
                db=int(redis_db),
                decode_responses=True,
                username=redis_username,
                password=redis_password,
            )
        elif not redis_client.connection_pool.connection_kwargs.get('decode_responses', False):
            raise BadConfigurationError(
                f'Redis client for {redis_location(redis_client)} must be created with decode_responses=True.'
            )

        self.redis = redis_client
        self.keys = RedisKeySchema(prefix=prefix)

        self._healthcheck()

    def _healthcheck(self, raise_error: bool = True) -> bool:
        """PING Redis to healthcheck connectivity

        Args:
            raise_error (bool):
                If True, raises DataStoreError on failure. Defaults to True.

        Returns:
            bool:
                True if Redis is reachable, False otherwise (only if raise_error=False).

        Raises:
            DataStoreError:
                If Redis connection cannot be established and raise_error=True.
        """
        try:
            self.redis.ping()
        except redis.exceptions.ConnectionError as e:
            if raise_error:
                raise DataStoreError(
                    f"Can't connect to Redis at {redis_location(self.redis)}. Check the provided configuration parameters."
                ) from e
            return False
        else:
            return True
