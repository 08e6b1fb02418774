"""
数据库模型包初始化文件
"""

from .promotion_db import PromotionDB, PromotionUsageDB
from .coupon_db import CustomerCouponDB

__all__ = [
    "PromotionDB",
    "PromotionUsageDB",
    "CustomerCouponDB"
]
