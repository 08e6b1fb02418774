"""
顾客优惠券数据库模型
"""

from datetime import datetime

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, UniqueConstraint
from app.core.database import Base


class CustomerCouponDB(Base):
    """顾客优惠券表（顾客领取的促销）"""

    __tablename__ = "customer_coupons"

    coupon_id = Column(Integer, primary_key=True, autoincrement=True, comment="优惠券ID")
    customer_id = Column(Integer, nullable=False, index=True, comment="顾客ID")
    promotion_id = Column(
        Integer,
        ForeignKey("promotions.promotion_id", ondelete="CASCADE"),
        nullable=False,
        comment="促销ID"
    )
    status = Column(String(20), nullable=False, default="available", index=True, comment="优惠券状态")
    expires_at = Column(DateTime, comment="过期时间")
    created_at = Column(DateTime, default=datetime.now, comment="领取时间")

    # 每位顾客同一促销只能领取一次
    __table_args__ = (
        UniqueConstraint("customer_id", "promotion_id", name="uq_customer_coupon"),
        {'comment': '顾客优惠券表'}
    )
