import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any, TypeVar

import redis
from redis.client import Pipeline
from redis.sentinel import Sentinel

from transcode_db.config import RedisConfig
from transcode_db.errors import StoreError

T = TypeVar("T")

logger = logging.getLogger(__name__)


def create_client(config: RedisConfig) -> "redis.Redis[str]":
    """Build a Redis client from ``config``, going through Sentinel if configured."""
    options: dict[str, Any] = {
        "password": config.password,
        "db": config.db,
        "max_connections": config.pool_size,
        "socket_connect_timeout": config.pool_timeout,
        "decode_responses": True,
    }

    if config.idle_timeout is not None:
        options["health_check_interval"] = config.idle_timeout

    if config.sentinel_addrs:
        if not config.sentinel_master_name:
            raise ValueError("sentinel_master_name is required when sentinel_addrs is set")

        logger.debug(f"connecting to sentinel master {config.sentinel_master_name}")
        sentinel = Sentinel(config.sentinels, sentinel_kwargs={"password": config.password})
        return sentinel.master_for(config.sentinel_master_name, **options)

    logger.debug(f"connecting to redis at {config.redis_addr}")
    return redis.Redis(host=config.host, port=config.port, **options)


@contextmanager
def store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except redis.RedisError as e:
        raise StoreError(f"{action}: {e}") from e


class Storage:
    """Flat-hash access to Redis.

    Every redis-py failure surfaces as :class:`StoreError`, without retries.
    """

    def __init__(self, client: "redis.Redis[str]") -> None:
        self.client = client

    @classmethod
    def from_config(cls, config: RedisConfig) -> "Storage":
        return cls(create_client(config))

    def load(self, key: str) -> dict[str, str]:
        with store_errors(f"failed to load {key}"):
            return self.client.hgetall(key)

    def exists(self, key: str) -> bool:
        with store_errors(f"failed to check {key}"):
            return bool(self.client.exists(key))

    def save(self, key: str, fields: Mapping[str, str]) -> None:
        """Replace the hash at ``key`` with exactly ``fields``."""
        with store_errors(f"failed to save {key}"):
            pipe = self.client.pipeline(transaction=True)
            write_hash(pipe, key, fields)
            pipe.execute()

    def delete(self, *keys: str) -> int:
        with store_errors(f"failed to delete {', '.join(keys)}"):
            return self.client.delete(*keys)

    def members(self, key: str) -> list[str]:
        with store_errors(f"failed to read members of {key}"):
            return sorted(self.client.smembers(key))

    def range_by_score(
        self, key: str, min_score: float | str = "-inf", limit: int = 0
    ) -> list[str]:
        with store_errors(f"failed to read range of {key}"):
            if limit > 0:
                return self.client.zrangebyscore(key, min_score, "+inf", start=0, num=limit)
            return self.client.zrangebyscore(key, min_score, "+inf")

    def list_range(self, key: str) -> list[str]:
        with store_errors(f"failed to read list {key}"):
            return self.client.lrange(key, 0, -1)

    def transaction(self, func: Callable[[Pipeline], T], *watches: str) -> T:
        """Run ``func`` inside WATCH/MULTI/EXEC on ``watches``.

        ``func`` gets the pipeline in immediate mode and must call ``multi()``
        before queueing writes. It is re-run if a watched key changes.
        """
        with store_errors(f"transaction on {', '.join(watches)} failed"):
            return self.client.transaction(func, *watches, value_from_callable=True)


def write_hash(pipe: Pipeline, key: str, fields: Mapping[str, str]) -> None:
    pipe.delete(key)
    if fields:
        pipe.hset(key, mapping=dict(fields))
