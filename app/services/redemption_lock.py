"""
促销核销锁
按 (promotion_id, customer_id) 串行化同一进程内的"验证+记录"流程
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Tuple

LockKey = Tuple[int, int]


class RedemptionLockRegistry:
    """核销锁注册表，锁在无人等待时释放"""

    def __init__(self):
        self._locks: Dict[LockKey, asyncio.Lock] = {}
        self._waiters: Dict[LockKey, int] = {}

    @asynccontextmanager
    async def hold(self, promotion_id: int, customer_id: int) -> AsyncIterator[None]:
        key = (promotion_id, customer_id)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


# 全局核销锁实例
redemption_locks = RedemptionLockRegistry()
