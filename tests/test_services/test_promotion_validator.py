"""
促销码验证器测试
"""

import pytest
from decimal import Decimal
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

from sqlalchemy.exc import OperationalError

from app.api.exceptions import MissingFieldsError
from app.models.database.promotion_db import PromotionUsageDB
from app.models.promotion import CartItem, PromotionType, PromotionStatus, ValidationErrorCode
from app.repositories.promotion_repository import PromotionRepository
from app.repositories.promotion_usage_repository import PromotionUsageRepository
from app.services.promotion_validator import PromotionValidator


@pytest.fixture
def validator(db_session):
    return PromotionValidator(PromotionRepository(db_session), PromotionUsageRepository(db_session))


async def _add_usage(db_session, promotion_id, customer_id, seq=1):
    db_session.add(PromotionUsageDB(
        promotion_id=promotion_id,
        customer_id=customer_id,
        order_id=1000 + seq,
        discount_amount=Decimal("10"),
        redemption_seq=seq,
        used_at=datetime.now()
    ))
    await db_session.commit()


@pytest.mark.asyncio
class TestPromotionValidatorScenarios:
    """促销码验证典型场景"""

    async def test_percentage_valid_under_cap(self, validator, promotion_factory):
        """NEW20 满200打8折最高减100，订单500元，首次使用"""
        await promotion_factory(min_order_amount=Decimal("200"), max_discount_amount=Decimal("100"))

        result = await validator.validate("NEW20", 42, Decimal("500"))

        assert result.valid is True
        assert result.error_code is None
        assert result.discount.amount == Decimal("100.00")
        assert result.promotion.promo_code == "NEW20"
        assert result.message == "可享受优惠 100.00 元"

    async def test_below_minimum_order(self, validator, promotion_factory):
        """SAVE50 满300减50，订单250元"""
        await promotion_factory(
            name="满300减50",
            type=PromotionType.FIXED_AMOUNT.value,
            discount_value=Decimal("50"),
            min_order_amount=Decimal("300"),
            promo_code="SAVE50"
        )

        result = await validator.validate("SAVE50", 42, Decimal("250"))

        assert result.valid is False
        assert result.error_code == ValidationErrorCode.BELOW_MINIMUM
        assert "300" in result.message
        assert result.min_order_required == Decimal("300")
        assert result.discount is None

    async def test_usage_exceeded(self, validator, promotion_factory, db_session):
        """顾客已使用过一次NEW20"""
        db_promotion = await promotion_factory(min_order_amount=Decimal("200"))
        await _add_usage(db_session, db_promotion.promotion_id, 42)

        result = await validator.validate("NEW20", 42, Decimal("500"))

        assert result.valid is False
        assert result.error_code == ValidationErrorCode.USAGE_EXCEEDED
        assert result.message == "您已达到该促销的使用次数上限"

    async def test_usage_is_per_customer(self, validator, promotion_factory, db_session):
        """测试其他顾客的使用记录不影响当前顾客"""
        db_promotion = await promotion_factory()
        await _add_usage(db_session, db_promotion.promotion_id, 7)

        result = await validator.validate("NEW20", 42, Decimal("100"))

        assert result.valid is True

    async def test_expired_code_not_found(self, validator, promotion_factory, now):
        """已过期的促销码查不到"""
        await promotion_factory(
            promo_code="EXPIRED1",
            start_date=now - timedelta(days=30),
            end_date=now - timedelta(days=1)
        )

        result = await validator.validate("EXPIRED1", 42, Decimal("500"))

        assert result.valid is False
        assert result.error_code == ValidationErrorCode.INVALID_CODE
        assert result.promotion is None

    async def test_category_discount_ignores_cart_categories(self, validator, promotion_factory):
        """SWEET15 分类折扣15%，订单80元"""
        await promotion_factory(
            name="甜品85折",
            type=PromotionType.CATEGORY_DISCOUNT.value,
            discount_value=Decimal("15"),
            promo_code="SWEET15"
        )
        cart_items = [CartItem(product_id=9, quantity=2, price=Decimal("40"), category_id=99)]

        result = await validator.validate("SWEET15", 42, Decimal("80"), cart_items)

        assert result.valid is True
        assert result.discount.amount == Decimal("12.00")


@pytest.mark.asyncio
class TestPromotionValidatorLookup:
    """促销码查找规则"""

    async def test_code_is_case_sensitive(self, validator, promotion_factory):
        await promotion_factory()

        result = await validator.validate("new20", 42, Decimal("500"))

        assert result.error_code == ValidationErrorCode.INVALID_CODE

    async def test_inactive_promotion_not_found(self, validator, promotion_factory):
        await promotion_factory(status=PromotionStatus.INACTIVE.value)

        result = await validator.validate("NEW20", 42, Decimal("500"))

        assert result.error_code == ValidationErrorCode.INVALID_CODE

    async def test_not_started_promotion_not_found(self, validator, promotion_factory, now):
        await promotion_factory(start_date=now + timedelta(days=1), end_date=now + timedelta(days=10))

        result = await validator.validate("NEW20", 42, Decimal("500"))

        assert result.error_code == ValidationErrorCode.INVALID_CODE

    async def test_boundary_times_are_inclusive(self, validator, promotion_factory, now):
        """测试开始和结束时间点均可使用"""
        db_promotion = await promotion_factory()

        at_start = await validator.validate("NEW20", 42, Decimal("500"), current_time=db_promotion.start_date)
        at_end = await validator.validate("NEW20", 42, Decimal("500"), current_time=db_promotion.end_date)

        assert at_start.valid is True
        assert at_end.valid is True

    async def test_unlimited_usage_per_customer(self, validator, promotion_factory, db_session):
        """usage_per_customer为空时不限制次数"""
        db_promotion = await promotion_factory(usage_per_customer=None)
        for seq in (1, 2, 3):
            await _add_usage(db_session, db_promotion.promotion_id, 42, seq=seq)

        result = await validator.validate("NEW20", 42, Decimal("500"))

        assert result.valid is True

    async def test_check_promotion_reports_used_count(self, validator, promotion_factory, db_session):
        """测试校验结果带出读到的已使用次数，且不出现在接口输出中"""
        db_promotion = await promotion_factory(usage_per_customer=3)
        for seq in (1, 2):
            await _add_usage(db_session, db_promotion.promotion_id, 42, seq=seq)
        promotion = PromotionRepository(db_session).to_model(db_promotion)

        result = await validator.check_promotion(promotion, 42, Decimal("100"))

        assert result.valid is True
        assert result.used_count == 2
        assert "used_count" not in result.model_dump()

    async def test_validation_writes_nothing(self, validator, promotion_factory, db_session):
        """测试验证不产生使用记录"""
        db_promotion = await promotion_factory()

        for _ in range(3):
            result = await validator.validate("NEW20", 42, Decimal("500"))
            assert result.valid is True

        assert await PromotionUsageRepository(db_session).count_usage(db_promotion.promotion_id, 42) == 0

    async def test_zero_order_amount_is_present(self, validator, promotion_factory):
        """订单金额为0视为已填写，按最低消费规则判断"""
        await promotion_factory(min_order_amount=Decimal("200"))

        result = await validator.validate("NEW20", 42, Decimal("0"))

        assert result.error_code == ValidationErrorCode.BELOW_MINIMUM


@pytest.mark.asyncio
class TestPromotionValidatorErrors:
    """必填字段与存储错误"""

    @pytest.fixture
    def mock_promotion_repo(self):
        return AsyncMock(spec=PromotionRepository)

    @pytest.fixture
    def mock_usage_repo(self):
        return AsyncMock(spec=PromotionUsageRepository)

    @pytest.fixture
    def mock_validator(self, mock_promotion_repo, mock_usage_repo):
        return PromotionValidator(mock_promotion_repo, mock_usage_repo)

    @pytest.mark.parametrize("promo_code,customer_id,order_amount,missing", [
        (None, 42, Decimal("100"), ["promo_code"]),
        ("", 42, Decimal("100"), ["promo_code"]),
        ("NEW20", None, Decimal("100"), ["customer_id"]),
        ("NEW20", 42, None, ["order_amount"]),
        (None, None, None, ["promo_code", "customer_id", "order_amount"]),
    ])
    async def test_missing_fields_checked_before_lookup(
        self, mock_validator, mock_promotion_repo, mock_usage_repo,
        promo_code, customer_id, order_amount, missing
    ):
        """测试缺少必填字段时不访问存储"""
        with pytest.raises(MissingFieldsError) as exc_info:
            await mock_validator.validate(promo_code, customer_id, order_amount)

        assert exc_info.value.missing_fields == missing
        assert exc_info.value.status_code == 400
        mock_promotion_repo.get_active_by_code.assert_not_called()
        mock_usage_repo.count_usage.assert_not_called()

    async def test_storage_error_propagates(self, mock_validator, mock_promotion_repo):
        """测试存储异常直接向上抛出，不转换为验证失败"""
        mock_promotion_repo.get_active_by_code.side_effect = OperationalError("SELECT", {}, Exception("db down"))

        with pytest.raises(OperationalError):
            await mock_validator.validate("NEW20", 42, Decimal("100"))

    async def test_usage_count_error_propagates(self, mock_validator, mock_promotion_repo, mock_usage_repo, sample_promotion):
        mock_promotion_repo.get_active_by_code.return_value = object()
        mock_promotion_repo.to_model = lambda db_promotion: sample_promotion
        mock_usage_repo.count_usage.side_effect = OperationalError("SELECT", {}, Exception("db down"))

        with pytest.raises(OperationalError):
            await mock_validator.validate("NEW20", 42, Decimal("500"))
