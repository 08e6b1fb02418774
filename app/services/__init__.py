"""
服务包初始化文件
"""

from .common_cache import SimpleCache, promotion_cache
from .discount_calculator import calculate_discount
from .promotion_validator import PromotionValidator
from .promotion_service import PromotionService
from .coupon_service import CouponService

__all__ = [
    "SimpleCache",
    "promotion_cache",
    "calculate_discount",
    "PromotionValidator",
    "PromotionService",
    "CouponService"
]
