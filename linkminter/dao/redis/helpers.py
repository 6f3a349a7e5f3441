import functools
import redis
from typing import TypeVar, Any
from collections.abc import Callable

from linkminter.dao.exceptions import DataStoreError


__all__ = []

F = TypeVar('F', bound=Callable[..., Any])


def redis_location(client: redis.Redis) -> str:
    info = client.connection_pool.connection_kwargs
    return f"{info.get('host')}:{info.get('port')}/{info.get('db')}"


def handle_redis_error[F](method: F) -> F:
    """Wrap Redis-interacting DAO methods to convert client errors

    Connectivity problems and server-side errors alike surface as DataStoreError.
    WatchError is not caught here; DAO methods retry their own transactions.

    Args:
        method (Callable[..., Any]):
            DAO method performing Redis operations which may raise redis.exceptions.RedisError.

    Returns:
        Callable[..., Any]:
            Wrapped method which raises DataStoreError on any Redis failure.

    Example:
        >>> @handle_redis_error
        ... def size(self):
        ...     return self.redis.hlen(self.keys.tokens_key())
    """

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except redis.exceptions.ConnectionError as e:
            raise DataStoreError(f"Can't connect to Redis at {redis_location(self.redis)}.") from e
        except redis.exceptions.RedisError as e:
            raise DataStoreError(f'Redis at {redis_location(self.redis)} failed during {method.__name__}(): {e}') from e

    return wrapper
