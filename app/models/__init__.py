"""
数据模型包初始化文件
"""

from .promotion import (
    Money,
    PromotionType,
    PromotionStatus,
    Promotion,
    PromotionCreate,
    PromotionUpdate,
    CartItem,
    DiscountResult,
    ValidationErrorCode,
    PromotionValidation,
    PromotionValidateRequest,
    PromotionRedeemRequest,
    PromotionUsage,
    PromotionStats
)
from .coupon import (
    CustomerCouponStatus,
    CustomerCoupon,
    AvailableCoupon,
    CouponClaimRequest,
    CouponAssignRequest
)

__all__ = [
    "Money",
    "PromotionType",
    "PromotionStatus",
    "Promotion",
    "PromotionCreate",
    "PromotionUpdate",
    "CartItem",
    "DiscountResult",
    "ValidationErrorCode",
    "PromotionValidation",
    "PromotionValidateRequest",
    "PromotionRedeemRequest",
    "PromotionUsage",
    "PromotionStats",
    "CustomerCouponStatus",
    "CustomerCoupon",
    "AvailableCoupon",
    "CouponClaimRequest",
    "CouponAssignRequest"
]
