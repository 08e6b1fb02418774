"""
促销相关数据库模型
"""

from datetime import datetime

from sqlalchemy import Column, String, Integer, Numeric, Text, DateTime, ForeignKey, UniqueConstraint, Index
from app.core.database import Base


class PromotionDB(Base):
    """促销数据库表"""

    __tablename__ = "promotions"

    # 主键和基本信息
    promotion_id = Column(Integer, primary_key=True, autoincrement=True, comment="促销ID")
    name = Column(String(200), nullable=False, comment="促销名称")
    description = Column(Text, comment="促销描述")
    type = Column(String(30), nullable=False, comment="促销类型")

    # 折扣信息
    discount_value = Column(Numeric(10, 2), comment="折扣值")
    buy_quantity = Column(Integer, comment="买X数量")
    get_quantity = Column(Integer, comment="送Y数量")
    min_order_amount = Column(Numeric(10, 2), nullable=False, default=0, comment="最低订单金额")
    max_discount_amount = Column(Numeric(10, 2), comment="最高折扣金额")

    # 使用限制
    usage_limit = Column(Integer, comment="总使用次数限制")
    usage_per_customer = Column(Integer, default=1, comment="单个顾客使用次数限制")

    # 有效期（门店本地时间）
    start_date = Column(DateTime, nullable=False, index=True, comment="开始时间")
    end_date = Column(DateTime, nullable=False, index=True, comment="结束时间")

    status = Column(String(20), nullable=False, default="draft", index=True, comment="促销状态")
    promo_code = Column(String(50), unique=True, index=True, comment="促销码")

    # 时间戳
    created_at = Column(DateTime, default=datetime.now, comment="创建时间")
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, comment="更新时间")

    __table_args__ = (
        {'comment': '促销信息表'}
    )


class PromotionUsageDB(Base):
    """促销使用记录表（只追加）"""

    __tablename__ = "promotion_usage"

    usage_id = Column(Integer, primary_key=True, autoincrement=True, comment="使用记录ID")
    promotion_id = Column(Integer, ForeignKey("promotions.promotion_id"), nullable=False, comment="促销ID")
    customer_id = Column(Integer, nullable=False, index=True, comment="顾客ID")
    order_id = Column(Integer, nullable=False, comment="订单ID")
    discount_amount = Column(Numeric(10, 2), nullable=False, comment="折扣金额")
    redemption_seq = Column(Integer, nullable=False, comment="该顾客对该促销的第几次使用")
    used_at = Column(DateTime, default=datetime.now, comment="使用时间")

    # 同一顾客同一促销的序号唯一，并发写入同一序号时由数据库拒绝
    __table_args__ = (
        UniqueConstraint("promotion_id", "customer_id", "redemption_seq", name="uq_promotion_usage_seq"),
        Index("ix_promotion_usage_promotion_customer", "promotion_id", "customer_id"),
        {'comment': '促销使用记录表'}
    )
