from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from app.core.config import settings
from app.core.redis import redis_manager
from app.core.database import init_database, create_tables, close_database
from app.api.health import router as health_router
from app.api.promotions import router as promotions_router
from app.api.admin_promotions import router as admin_promotions_router
from app.api.coupons import router as coupons_router
from app.api.exceptions import (
    validation_exception_handler,
    http_exception_handler,
    database_exception_handler,
    general_exception_handler,
    business_exception_handler,
    BusinessException
)

# 简化日志配置
import logging

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    logger.info("正在启动餐厅促销服务")

    try:
        await init_database()
        logger.info("数据库初始化成功")

        if settings.auto_create_tables:
            await create_tables()

    except Exception as e:
        logger.error(f"应用启动失败: {str(e)}")
        raise

    # Redis不可用时缓存降级为直接查库
    try:
        await redis_manager.init_redis()
        logger.info("Redis初始化成功")
    except Exception as e:
        logger.warning(f"Redis不可用，促销缓存已停用: {str(e)}")

    logger.info("应用启动完成")

    yield

    logger.info("正在关闭应用")
    await close_database()
    await redis_manager.close_redis()
    logger.info("应用关闭完成")


# 创建FastAPI应用
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="餐厅点餐系统促销服务 - 促销码验证、折扣计算与优惠券管理",
    debug=settings.debug,
    lifespan=lifespan
)

# CORS中间件
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# 注册路由
app.include_router(health_router)
app.include_router(promotions_router)
app.include_router(admin_promotions_router)
app.include_router(coupons_router)

# 注册异常处理器
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(SQLAlchemyError, database_exception_handler)
app.add_exception_handler(BusinessException, business_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)


@app.get("/")
async def root():
    """根路径"""
    return {
        "message": f"欢迎使用 {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8002,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
