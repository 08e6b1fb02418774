"""
促销Repository数据库操作测试 - 使用内存SQLite
"""

import pytest
from decimal import Decimal
from datetime import timedelta

from app.models.promotion import Promotion, PromotionStatus, PromotionType
from app.repositories.promotion_repository import PromotionRepository


@pytest.mark.asyncio
class TestPromotionRepository:
    """促销Repository数据库操作测试类"""

    async def test_create_and_get_promotion(self, db_session, now):
        """测试创建和获取促销"""
        promotion_repo = PromotionRepository(db_session)

        db_promotion = await promotion_repo.create({
            "name": "满300减50",
            "type": PromotionType.FIXED_AMOUNT.value,
            "discount_value": Decimal("50.00"),
            "min_order_amount": Decimal("300.00"),
            "start_date": now - timedelta(days=1),
            "end_date": now + timedelta(days=30),
            "status": PromotionStatus.ACTIVE.value,
            "promo_code": "SAVE50"
        })

        assert db_promotion.promotion_id is not None
        assert db_promotion.created_at is not None
        assert db_promotion.usage_per_customer == 1

        retrieved = await promotion_repo.get_by_id(db_promotion.promotion_id)
        assert retrieved.name == "满300减50"
        assert retrieved.discount_value == Decimal("50.00")

        by_code = await promotion_repo.get_by_code("SAVE50")
        assert by_code.promotion_id == db_promotion.promotion_id

    async def test_get_nonexistent_promotion(self, db_session):
        promotion_repo = PromotionRepository(db_session)

        assert await promotion_repo.get_by_id(999) is None
        assert await promotion_repo.get_by_code("NONEXISTENT") is None

    async def test_get_active_by_code(self, db_session, promotion_factory, now):
        """测试按促销码查找有效促销"""
        promotion_repo = PromotionRepository(db_session)
        await promotion_factory(promo_code="NEW20")
        await promotion_factory(promo_code="LATER", start_date=now + timedelta(days=2), end_date=now + timedelta(days=5))

        assert await promotion_repo.get_active_by_code("NEW20") is not None
        assert await promotion_repo.get_active_by_code("New20") is None
        assert await promotion_repo.get_active_by_code("LATER") is None
        assert await promotion_repo.get_active_by_code("LATER", current_time=now + timedelta(days=3)) is not None

    async def test_list_active_order(self, db_session, promotion_factory, now):
        """测试有效促销按创建时间倒序，时间相同按ID倒序"""
        promotion_repo = PromotionRepository(db_session)
        same_time = now - timedelta(hours=1)
        first = await promotion_factory(promo_code="P1", created_at=same_time)
        second = await promotion_factory(promo_code="P2", created_at=same_time)
        newest = await promotion_factory(promo_code="P3", created_at=now)
        await promotion_factory(promo_code="DRAFT", status=PromotionStatus.DRAFT.value)

        result = await promotion_repo.list_active()

        assert [item.promotion_id for item in result] == [
            newest.promotion_id, second.promotion_id, first.promotion_id
        ]

    async def test_get_next_start_date(self, db_session, promotion_factory, now):
        """测试获取最近一个尚未开始的active促销开始时间"""
        promotion_repo = PromotionRepository(db_session)
        assert await promotion_repo.get_next_start_date(now) is None

        await promotion_factory(promo_code="RUNNING")
        await promotion_factory(promo_code="LATER", start_date=now + timedelta(days=5), end_date=now + timedelta(days=9))
        await promotion_factory(promo_code="SOON", start_date=now + timedelta(hours=2), end_date=now + timedelta(days=9))
        await promotion_factory(
            promo_code="DRAFT",
            status=PromotionStatus.DRAFT.value,
            start_date=now + timedelta(minutes=5),
            end_date=now + timedelta(days=9)
        )

        assert await promotion_repo.get_next_start_date(now) == now + timedelta(hours=2)

    async def test_list_all_with_status(self, db_session, promotion_factory):
        promotion_repo = PromotionRepository(db_session)
        await promotion_factory(promo_code="A")
        await promotion_factory(promo_code="B", status=PromotionStatus.INACTIVE.value)

        assert len(await promotion_repo.list_all()) == 2
        inactive = await promotion_repo.list_all(PromotionStatus.INACTIVE)
        assert [item.promo_code for item in inactive] == ["B"]

    async def test_update_promotion(self, db_session, promotion_factory):
        promotion_repo = PromotionRepository(db_session)
        db_promotion = await promotion_factory()
        created_at = db_promotion.created_at

        updated = await promotion_repo.update(db_promotion.promotion_id, {"name": "新名称", "status": "inactive"})

        assert updated.name == "新名称"
        assert updated.status == "inactive"
        assert updated.created_at == created_at
        assert updated.updated_at >= created_at
        assert await promotion_repo.update(999, {"name": "x"}) is None

    async def test_delete_promotion(self, db_session, promotion_factory):
        promotion_repo = PromotionRepository(db_session)
        db_promotion = await promotion_factory()
        promotion_id = db_promotion.promotion_id

        assert await promotion_repo.delete(promotion_id) is True
        assert await promotion_repo.get_by_id(promotion_id) is None
        assert await promotion_repo.delete(promotion_id) is False

    async def test_to_model(self, db_session, promotion_factory):
        promotion_repo = PromotionRepository(db_session)
        db_promotion = await promotion_factory(max_discount_amount=Decimal("100"))

        promotion = promotion_repo.to_model(db_promotion)

        assert isinstance(promotion, Promotion)
        assert promotion.type == PromotionType.PERCENTAGE
        assert promotion.status == PromotionStatus.ACTIVE
        assert promotion.max_discount_amount == Decimal("100")
