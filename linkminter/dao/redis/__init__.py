from linkminter.dao.redis.redis_key_schema import RedisKeySchema
from linkminter.dao.redis.mixins import RedisClientMixin
from linkminter.dao.redis.link_redis_dao import LinkRedisDAO


__all__ = [
    'RedisKeySchema',
    'RedisClientMixin',
    'LinkRedisDAO',
]
