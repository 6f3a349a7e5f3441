import functools
from collections.abc import Callable

from linkminter.constants import Container


__all__ = ['RedisKeySchema']  # hide internal decorator prefix_key from imports


def prefix_key(func: Callable) -> Callable:
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs) -> str:
        key = func(self, *args, **kwargs)
        return f'{self.prefix}:{key}' if self.prefix is not None else key

    return wrapper


class RedisKeySchema:
    """Provide the Redis hash names backing the two link containers.

    An optional prefix can be provided to keep deployments apart on a shared
    Redis, e.g. "linkminter:prod" or "linkminter:dev".
    """

    def __init__(self, prefix: str | None = None):
        if prefix is not None and not isinstance(prefix, str):
            raise TypeError(f'Prefix must be of type string (given type: {type(prefix)}).')

        self.prefix = prefix

    @prefix_key
    def urls_key(self) -> str:
        return str(Container.URLS)

    @prefix_key
    def tokens_key(self) -> str:
        return str(Container.KEYS)
