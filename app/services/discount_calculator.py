"""
折扣计算器
根据促销类型计算订单可减免的金额，纯函数，不访问存储
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict, Optional, Sequence

from app.core.config import settings
from app.models.promotion import CartItem, DiscountResult, Promotion, PromotionType

CENT = Decimal("0.01")
ZERO = Decimal("0")


def round_money(amount: Decimal) -> Decimal:
    """四舍五入到分"""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def _percent_of_order(promotion: Promotion, order_amount: Decimal) -> Decimal:
    discount = order_amount * (promotion.discount_value or ZERO) / Decimal("100")
    if promotion.max_discount_amount and discount > promotion.max_discount_amount:
        discount = promotion.max_discount_amount
    return discount


def _percentage(promotion: Promotion, order_amount: Decimal, cart_items: Sequence[CartItem]) -> Decimal:
    return _percent_of_order(promotion, order_amount)


def _fixed_amount(promotion: Promotion, order_amount: Decimal, cart_items: Sequence[CartItem]) -> Decimal:
    # 不与订单金额比较，超出部分由下单方截断
    return promotion.discount_value or ZERO


def _free_shipping(promotion: Promotion, order_amount: Decimal, cart_items: Sequence[CartItem]) -> Decimal:
    # 抵扣固定运费，不读取促销自身的discount_value
    return settings.free_shipping_fee


def _category_discount(promotion: Promotion, order_amount: Decimal, cart_items: Sequence[CartItem]) -> Decimal:
    # 与percentage相同，按整单金额计算，不按商品分类筛选
    return _percent_of_order(promotion, order_amount)


def _buy_x_get_y(promotion: Promotion, order_amount: Decimal, cart_items: Sequence[CartItem]) -> Decimal:
    # 赠品以免费商品行体现，不产生金额折扣
    return ZERO


DiscountRule = Callable[[Promotion, Decimal, Sequence[CartItem]], Decimal]

DISCOUNT_RULES: Dict[PromotionType, DiscountRule] = {
    PromotionType.PERCENTAGE: _percentage,
    PromotionType.FIXED_AMOUNT: _fixed_amount,
    PromotionType.FREE_SHIPPING: _free_shipping,
    PromotionType.CATEGORY_DISCOUNT: _category_discount,
    PromotionType.BUY_X_GET_Y: _buy_x_get_y,
}

_unhandled_types = set(PromotionType) - set(DISCOUNT_RULES)
if _unhandled_types:
    raise RuntimeError(f"促销类型缺少折扣规则: {sorted(t.value for t in _unhandled_types)}")


def calculate_discount(
    promotion: Promotion,
    order_amount: Decimal,
    cart_items: Optional[Sequence[CartItem]] = None
) -> DiscountResult:
    """
    计算促销折扣

    Args:
        promotion: 促销信息
        order_amount: 折扣前订单金额
        cart_items: 购物车商品行（当前规则均不使用）

    Returns:
        DiscountResult，金额保留两位小数
    """
    rule = DISCOUNT_RULES[promotion.type]
    amount = rule(promotion, Decimal(str(order_amount)), cart_items or [])

    return DiscountResult(
        amount=round_money(amount),
        type=promotion.type,
        description=promotion.description
    )
