# session/cache.py
"""按发送者缓存附件的 TTL 存储"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterator, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    """缓存条目"""
    value: V
    timestamp: float


class TTLCache(Generic[V]):
    """进程内的键值缓存，条目在 TTL 之后视为过期

    过期条目在读取时被忽略但不会删除，由周期清扫统一回收内存。
    """

    def __init__(
        self,
        ttl: float,
        name: str = "cache",
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl <= 0:
            raise ValueError(f"TTL 必须为正数: {ttl}")
        self.ttl = ttl
        self.name = name
        self._clock = clock
        self._entries: dict[str, CacheEntry[V]] = {}

    def set(self, key: str, value: V) -> None:
        """写入条目，无条件覆盖旧值"""
        self._entries[key] = CacheEntry(value=value, timestamp=self._clock())

    def get(self, key: str, max_age: float | None = None) -> V | None:
        """读取未过期的值

        Args:
            key: 发送者 ID
            max_age: 比 TTL 更严格的新鲜度上限（秒），None 表示只按 TTL 判断

        Returns:
            命中时返回缓存值，否则返回 None
        """
        entry = self._entries.get(key)
        if entry is None:
            return None

        limit = self.ttl if max_age is None else min(max_age, self.ttl)
        if self._clock() - entry.timestamp < limit:
            return entry.value
        return None

    def sweep(self) -> int:
        """移除所有过期条目，返回移除数量"""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if now - e.timestamp > self.ttl]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"[{self.name}] 清理过期条目 {len(expired)} 个")
        return len(expired)

    async def run_sweeper(self, interval: float | None = None) -> None:
        """周期清扫循环，通常作为独立 task 运行"""
        period = interval or self.ttl
        logger.info(f"[{self.name}] 启动周期清扫，间隔 {period} 秒")
        while True:
            await asyncio.sleep(period)
            try:
                self.sweep()
            except Exception as e:
                logger.error(f"[{self.name}] 清扫失败: {e}", exc_info=True)

    def keys(self) -> list[str]:
        return list(self._entries.keys())

    def __contains__(self, key: Any) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))
