"""请求限流。

按键（如客户端 IP）维护固定窗口计数：窗口内前 max_attempts 次放行，之后拒绝，窗口到期后重新计数。
计数由 limits 的 FixedWindowRateLimiter 完成：默认使用进程内 MemoryStorage（仅对单实例准确，
过期键由存储自身的定时清理回收）；配置 Redis 后计数在多实例间共享并随 TTL 过期。
"""

import logging
import math
import time
from typing import Protocol

from limits import RateLimitItem, RateLimitItemPerSecond
from limits.storage import MemoryStorage, Storage, storage_from_string
from limits.strategies import FixedWindowRateLimiter
from redis.exceptions import RedisError

from jdoc_api.core.config import Settings

logger = logging.getLogger(__name__)


class RateLimitStore(Protocol):
    """限流计数存储接口。"""

    def check_and_consume(self, key: str, max_attempts: int, window_seconds: int) -> bool: ...

    def retry_after(self, key: str, max_attempts: int, window_seconds: int) -> int: ...


def _limit_item(max_attempts: int, window_seconds: int) -> RateLimitItem:
    return RateLimitItemPerSecond(max_attempts, max(1, int(window_seconds)))


class LimitsRateLimitStore:
    """基于 limits 固定窗口策略的限流存储。

    主存储抛出 RedisError 时改用 fallback 计数，保证登录限流尽量可用；未提供 fallback 则直接抛出。
    """

    def __init__(
        self,
        storage: Storage,
        *,
        key_prefix: str = "",
        fallback: "LimitsRateLimitStore | None" = None,
    ) -> None:
        self.storage = storage
        self.key_prefix = key_prefix
        self.fallback = fallback
        self._limiter = FixedWindowRateLimiter(storage)

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    def check_and_consume(self, key: str, max_attempts: int, window_seconds: int) -> bool:
        item = _limit_item(max_attempts, window_seconds)
        try:
            return self._limiter.hit(item, self._key(key))
        except RedisError:
            if self.fallback is None:
                raise
            logger.warning("rate limit storage unavailable, falling back to local store key=%s", key)
            return self.fallback.check_and_consume(key, max_attempts, window_seconds)

    def retry_after(self, key: str, max_attempts: int, window_seconds: int) -> int:
        """当前窗口剩余秒数；仍有余量时为 0。"""
        item = _limit_item(max_attempts, window_seconds)
        try:
            stats = self._limiter.get_window_stats(item, self._key(key))
        except RedisError:
            if self.fallback is None:
                raise
            return self.fallback.retry_after(key, max_attempts, window_seconds)
        if stats.remaining > 0:
            return 0
        return max(1, math.ceil(stats.reset_time - time.time()))


class RateLimiter:
    """限流门面，路由层只依赖该对象。"""

    def __init__(self, store: RateLimitStore) -> None:
        self.store = store

    def check_and_consume(self, key: str, max_attempts: int, window_seconds: int) -> bool:
        """返回 True 表示放行。"""
        return self.store.check_and_consume(key, max_attempts, window_seconds)

    def retry_after(self, key: str, max_attempts: int, window_seconds: int) -> int:
        return self.store.retry_after(key, max_attempts, window_seconds)


def build_rate_limit_store(settings: Settings) -> LimitsRateLimitStore:
    """按配置构造限流存储。"""
    if settings.redis_url:
        return LimitsRateLimitStore(
            storage_from_string(settings.redis_url),
            key_prefix=settings.rate_limit_key_prefix,
            fallback=LimitsRateLimitStore(MemoryStorage()),
        )
    return LimitsRateLimitStore(MemoryStorage())
