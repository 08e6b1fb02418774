"""
仓库包初始化文件 - 数据库访问层
"""

from .promotion_repository import PromotionRepository
from .promotion_usage_repository import PromotionUsageRepository
from .customer_coupon_repository import CustomerCouponRepository

__all__ = [
    "PromotionRepository",
    "PromotionUsageRepository",
    "CustomerCouponRepository"
]
