from fastapi import APIRouter
import logging

from app.core.config import settings
from app.core.redis import redis_manager
from app.core.database import database_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["健康检查"])


@router.get("")
async def health_check():
    """基础健康检查接口"""
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment
    }


@router.get("/database")
async def database_health():
    """数据库与缓存连接健康检查

    缓存不可用时促销服务仍可工作，因此整体状态只取决于数据库
    """
    db_status = await database_service.health_check()
    redis_status = await redis_manager.ping()

    health_status = {
        "database": db_status["status"] == "healthy",
        "redis": redis_status["status"] == "healthy",
        "details": {
            "database": db_status["message"],
            "redis": redis_status["message"]
        }
    }
    health_status["overall"] = health_status["database"]

    if not health_status["overall"]:
        logger.warning(f"数据库连接检查失败: {db_status['message']}")
    return health_status
