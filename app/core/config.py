from pydantic_settings import BaseSettings
from typing import Optional
from decimal import Decimal
from enum import Enum


class Environment(str, Enum):

    """运行环境枚举"""
    TESTING = "testing"
    PRODUCTION = "production"


class Settings(BaseSettings):

    # 应用基础配置
    app_name: str = "Restaurant Ordering - Promotions"
    app_version: str = "1.0.0"
    environment: Environment = Environment.TESTING
    debug: bool = True

    # 数据库配置
    database_url: Optional[str] = None
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "restaurant_db"
    db_user: str = "restaurant_user"
    db_password: str = "restaurant_password"
    auto_create_tables: bool = True

    # Redis配置 (促销列表缓存)
    redis_url: Optional[str] = None
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    redis_db: int = 0

    # 促销配置
    free_shipping_fee: Decimal = Decimal("30")  # 免运费券抵扣的固定运费
    promotion_cache_ttl: int = 300  # 有效促销列表缓存5分钟

    # 日志配置
    log_level: str = "INFO"

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def database_url_computed(self) -> str:
        """计算数据库URL"""
        if self.database_url:
            return self.database_url
        return f"postgresql+asyncpg://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def redis_url_computed(self) -> str:
        """计算Redis URL"""
        if self.redis_url:
            return self.redis_url
        if self.redis_password:
            return f"redis://:{self.redis_password}@{self.redis_host}:{self.redis_port}/{self.redis_db}"
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    class Config:
        env_file = ".env"
        case_sensitive = False


# 全局配置实例
settings = Settings()
