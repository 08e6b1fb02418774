"""
促销码验证器
按顺序检查：必填字段 -> 促销码查找(状态+有效期) -> 最低订单金额 -> 顾客使用次数，
任一检查失败立即返回；验证本身不写入任何数据
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from app.api.exceptions import MissingFieldsError
from app.models.promotion import (
    CartItem,
    Promotion,
    PromotionValidation,
    ValidationErrorCode,
)
from app.repositories.promotion_repository import PromotionRepository
from app.repositories.promotion_usage_repository import PromotionUsageRepository
from app.services.discount_calculator import calculate_discount, round_money

logger = logging.getLogger(__name__)


def _format_amount(amount: Decimal) -> str:
    """金额展示：整数不带小数位"""
    amount = round_money(amount)
    return str(amount.quantize(Decimal("1"))) if amount == amount.to_integral_value() else str(amount)


class PromotionValidator:
    """促销码验证器"""

    def __init__(
        self,
        promotion_repo: PromotionRepository,
        usage_repo: PromotionUsageRepository
    ):
        self.promotion_repo = promotion_repo
        self.usage_repo = usage_repo

    @staticmethod
    def check_required_fields(
        promo_code: Optional[str],
        customer_id: Optional[int],
        order_amount: Optional[Decimal]
    ) -> None:
        """必填字段检查，缺失时抛出MissingFieldsError"""
        missing = []
        if not promo_code:
            missing.append("promo_code")
        if customer_id is None:
            missing.append("customer_id")
        if order_amount is None:
            missing.append("order_amount")
        if missing:
            raise MissingFieldsError(missing)

    async def validate(
        self,
        promo_code: Optional[str],
        customer_id: Optional[int],
        order_amount: Optional[Decimal],
        cart_items: Optional[Sequence[CartItem]] = None,
        current_time: Optional[datetime] = None
    ) -> PromotionValidation:
        """验证顾客能否在当前订单使用促销码"""
        self.check_required_fields(promo_code, customer_id, order_amount)
        order_amount = Decimal(str(order_amount))

        db_promotion = await self.promotion_repo.get_active_by_code(promo_code, current_time)
        if not db_promotion:
            logger.info(f"促销码无效或已过期: {promo_code}")
            return PromotionValidation(
                valid=False,
                error_code=ValidationErrorCode.INVALID_CODE,
                message="促销码不存在或已过期"
            )

        promotion = self.promotion_repo.to_model(db_promotion)
        return await self.check_promotion(promotion, customer_id, order_amount, cart_items)

    async def check_promotion(
        self,
        promotion: Promotion,
        customer_id: int,
        order_amount: Decimal,
        cart_items: Optional[Sequence[CartItem]] = None
    ) -> PromotionValidation:
        """
        对已查到的有效促销检查最低消费和顾客使用次数

        结果中的used_count为本次读到的已使用次数，核销时据此生成使用序号
        """
        order_amount = Decimal(str(order_amount))

        if order_amount < promotion.min_order_amount:
            return PromotionValidation(
                valid=False,
                error_code=ValidationErrorCode.BELOW_MINIMUM,
                message=f"订单金额未达到最低消费 {_format_amount(promotion.min_order_amount)} 元",
                promotion=promotion,
                min_order_required=promotion.min_order_amount
            )

        used_count = await self.usage_repo.count_usage(promotion.promotion_id, customer_id)
        if promotion.usage_per_customer:
            if used_count >= promotion.usage_per_customer:
                logger.info(
                    f"顾客 {customer_id} 已达促销 {promotion.promotion_id} 使用上限 "
                    f"({used_count}/{promotion.usage_per_customer})"
                )
                return PromotionValidation(
                    valid=False,
                    error_code=ValidationErrorCode.USAGE_EXCEEDED,
                    message="您已达到该促销的使用次数上限",
                    promotion=promotion,
                    used_count=used_count
                )

        discount = calculate_discount(promotion, order_amount, cart_items)
        logger.info(
            f"促销码验证通过: {promotion.promo_code} customer={customer_id} discount={discount.amount}"
        )

        return PromotionValidation(
            valid=True,
            message=f"可享受优惠 {discount.amount} 元",
            promotion=promotion,
            discount=discount,
            used_count=used_count
        )
