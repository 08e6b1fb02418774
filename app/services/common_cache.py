"""
通用缓存工具
为促销模块提供简单的Redis JSON缓存功能，连接复用全局Redis连接池
"""

import json
import logging
from typing import Optional, Any
import redis.asyncio as redis

from app.core.redis import get_redis_client

logger = logging.getLogger(__name__)


class SimpleCache:
    """简单缓存管理器

    未显式传入客户端时使用全局连接池；Redis不可用时所有操作降级为未命中，
    不影响业务请求。
    """

    def __init__(self, redis_client: Optional[redis.Redis] = None, key_prefix: str = ""):
        self._redis_client = redis_client
        self.key_prefix = key_prefix

    @property
    def redis_client(self) -> Optional[redis.Redis]:
        return self._redis_client or get_redis_client()

    def _get_key(self, key: str) -> str:
        """获取完整的缓存key"""
        return f"{self.key_prefix}{key}" if self.key_prefix else key

    async def get(self, key: str) -> Optional[Any]:
        """获取缓存值"""
        client = self.redis_client
        if client is None:
            return None
        try:
            data = await client.get(self._get_key(key))
            if data:
                return json.loads(data)
            return None
        except Exception as e:
            logger.error(f"获取缓存失败 {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int = 3600) -> bool:
        """设置缓存值"""
        client = self.redis_client
        if client is None:
            return False
        try:
            data = json.dumps(value, default=str, ensure_ascii=False)
            await client.setex(self._get_key(key), ttl, data)
            return True
        except Exception as e:
            logger.error(f"设置缓存失败 {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        """删除缓存"""
        client = self.redis_client
        if client is None:
            return False
        try:
            result = await client.delete(self._get_key(key))
            return result > 0
        except Exception as e:
            logger.error(f"删除缓存失败 {key}: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """删除匹配模式的所有缓存"""
        client = self.redis_client
        if client is None:
            return 0
        try:
            keys = [key async for key in client.scan_iter(match=self._get_key(pattern))]
            if keys:
                return await client.delete(*keys)
            return 0
        except Exception as e:
            logger.error(f"删除模式缓存失败 {pattern}: {e}")
            return 0


# 促销模块缓存实例
promotion_cache = SimpleCache(key_prefix="promotion:")
