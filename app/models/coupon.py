"""
顾客优惠券（促销领取记录）相关数据模型
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum

from app.models.promotion import Money, PromotionType


class CustomerCouponStatus(str, Enum):
    """顾客优惠券状态枚举"""
    AVAILABLE = "available"  # 可使用
    USED = "used"  # 已使用
    EXPIRED = "expired"  # 已过期


class CustomerCoupon(BaseModel):
    """顾客优惠券模型"""

    model_config = ConfigDict(from_attributes=True)

    coupon_id: int = Field(..., description="优惠券ID")
    customer_id: int = Field(..., description="顾客ID")
    promotion_id: int = Field(..., description="促销ID")
    status: CustomerCouponStatus = Field(default=CustomerCouponStatus.AVAILABLE)
    expires_at: Optional[datetime] = Field(None, description="过期时间")
    created_at: Optional[datetime] = None


class AvailableCoupon(BaseModel):
    """顾客可用优惠券（附带促销信息）"""

    coupon_id: int
    status: CustomerCouponStatus
    expires_at: Optional[datetime]
    promotion_id: int
    promo_code: Optional[str]
    name: str
    description: Optional[str]
    type: PromotionType
    discount_value: Optional[Money]
    min_order_amount: Money
    max_discount_amount: Optional[Money]


class CouponClaimRequest(BaseModel):
    """领取优惠券请求"""

    customer_id: int = Field(..., description="顾客ID")
    promotion_id: int = Field(..., description="促销ID")


class CouponAssignRequest(BaseModel):
    """后台发放优惠券请求"""

    customer_id: int = Field(..., description="顾客ID")
    promotion_id: int = Field(..., description="促销ID")
    expires_at: Optional[datetime] = Field(None, description="过期时间，为空则不过期")
