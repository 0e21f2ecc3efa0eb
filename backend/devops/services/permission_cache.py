"""
权限缓存 - 按用户缓存权限码映射

特性:
- 每个用户一条 code -> bool 映射，写入时确定过期时间
- 读写锁：读操作共享，写操作独占
- 由应用工厂创建并挂到 app.state，注入到 PermissionService
"""

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Hashable, Iterable, Tuple

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


class ReadWriteLock:
    """多读单写锁，写者等待期间新的读者会阻塞，避免写饥饿"""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read(self):
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self):
        with self._cond:
            self._waiting_writers += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


@dataclass
class CacheEntry:
    """缓存条目"""
    codes: Dict[str, bool] = field(default_factory=dict)
    expires_at: float = 0.0

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class PermissionCache:
    """用户权限缓存"""

    def __init__(self, ttl: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[Hashable, CacheEntry] = {}
        self._lock = ReadWriteLock()

    def get(self, user_id: Hashable, code: str) -> Tuple[bool, bool]:
        """
        查询缓存

        Returns:
            (has_permission, found)；条目不存在或已过期时 found 为 False，
            存活条目中没有的权限码视为 (False, True)
        """
        with self._lock.read():
            entry = self._entries.get(user_id)
            if entry is None or entry.is_expired(self._clock()):
                return False, False
            return entry.codes.get(code, False), True

    def set(self, user_id: Hashable, codes: Dict[str, bool]) -> None:
        """整体替换用户的权限映射并重置过期时间"""
        entry = CacheEntry(codes=dict(codes), expires_at=self._clock() + self.ttl)
        with self._lock.write():
            self._entries[user_id] = entry

    def set_codes(self, user_id: Hashable, codes: Iterable[str]) -> None:
        self.set(user_id, {code: True for code in codes})

    def invalidate(self, user_id: Hashable) -> None:
        with self._lock.write():
            self._entries.pop(user_id, None)
        logger.debug("Permission cache invalidated for user %s", user_id)

    def invalidate_all(self) -> None:
        with self._lock.write():
            self._entries.clear()
        logger.info("Permission cache cleared")

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._entries)
