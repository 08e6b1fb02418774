"""
测试配置文件 - pytest fixtures和共用配置
"""

import pytest
import pytest_asyncio
from decimal import Decimal
from datetime import datetime, timedelta
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base
from app.models.database import PromotionDB, PromotionUsageDB, CustomerCouponDB  # noqa: F401
from app.models.promotion import Promotion, PromotionType, PromotionStatus


# 配置pytest-asyncio
pytest_plugins = ('pytest_asyncio',)


@pytest_asyncio.fixture(scope="function")
async def test_db_engine():
    """测试数据库引擎 - 内存SQLite，StaticPool保证所有会话共享同一个库"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_db_engine) -> AsyncSession:
    """测试数据库会话"""
    session_maker = async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    async with session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest.fixture
def now():
    """测试基准时间"""
    return datetime.now().replace(microsecond=0)


@pytest.fixture
def promotion_factory(db_session, now):
    """
    创建促销的工厂fixture

    默认生成一个进行中的20%折扣促销，可通过关键字参数覆盖任意字段
    """
    async def _create(**overrides) -> PromotionDB:
        values = {
            "name": "新客八折",
            "description": "新用户首单8折优惠",
            "type": PromotionType.PERCENTAGE.value,
            "discount_value": Decimal("20"),
            "min_order_amount": Decimal("0"),
            "max_discount_amount": None,
            "usage_limit": None,
            "usage_per_customer": 1,
            "start_date": now - timedelta(days=1),
            "end_date": now + timedelta(days=30),
            "status": PromotionStatus.ACTIVE.value,
            "promo_code": "NEW20"
        }
        values.update(overrides)
        db_promotion = PromotionDB(**values)
        db_session.add(db_promotion)
        await db_session.commit()
        await db_session.refresh(db_promotion)
        return db_promotion

    return _create


@pytest.fixture
def sample_promotion(now):
    """示例Promotion对象：NEW20，满200打8折，最高减100"""
    return Promotion(
        promotion_id=1,
        name="新客八折",
        description="新用户首单8折优惠",
        type=PromotionType.PERCENTAGE,
        discount_value=Decimal("20"),
        min_order_amount=Decimal("200"),
        max_discount_amount=Decimal("100"),
        usage_limit=100,
        usage_per_customer=1,
        start_date=now - timedelta(days=1),
        end_date=now + timedelta(days=30),
        status=PromotionStatus.ACTIVE,
        promo_code="NEW20"
    )
