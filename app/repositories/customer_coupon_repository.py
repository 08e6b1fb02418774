"""
顾客优惠券数据库操作层
"""

from typing import List, Optional, Dict, Any
from datetime import datetime

from sqlalchemy import select, update, delete, and_, or_, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.coupon import CustomerCoupon, CustomerCouponStatus
from app.models.promotion import PromotionStatus
from app.models.database.coupon_db import CustomerCouponDB
from app.models.database.promotion_db import PromotionDB


class CustomerCouponRepository:
    """顾客优惠券操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_customer_and_promotion(
        self,
        customer_id: int,
        promotion_id: int
    ) -> Optional[CustomerCouponDB]:
        """获取顾客领取的某个促销优惠券"""
        result = await self.db.execute(
            select(CustomerCouponDB).where(
                and_(
                    CustomerCouponDB.customer_id == customer_id,
                    CustomerCouponDB.promotion_id == promotion_id
                )
            )
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        customer_id: int,
        promotion_id: int,
        expires_at: Optional[datetime] = None
    ) -> CustomerCouponDB:
        """创建顾客优惠券"""
        coupon = CustomerCouponDB(
            customer_id=customer_id,
            promotion_id=promotion_id,
            status=CustomerCouponStatus.AVAILABLE.value,
            expires_at=expires_at,
            created_at=datetime.now()
        )
        self.db.add(coupon)
        await self.db.flush()
        await self.db.refresh(coupon)
        return coupon

    async def list_available(
        self,
        customer_id: int,
        current_time: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        """获取顾客当前可用的优惠券（促销有效且优惠券未过期）"""
        if current_time is None:
            current_time = datetime.now()

        query = select(CustomerCouponDB, PromotionDB).join(
            PromotionDB, CustomerCouponDB.promotion_id == PromotionDB.promotion_id
        ).where(
            and_(
                CustomerCouponDB.customer_id == customer_id,
                CustomerCouponDB.status == CustomerCouponStatus.AVAILABLE.value,
                PromotionDB.status == PromotionStatus.ACTIVE.value,
                PromotionDB.start_date <= current_time,
                PromotionDB.end_date >= current_time,
                or_(
                    CustomerCouponDB.expires_at.is_(None),
                    CustomerCouponDB.expires_at >= current_time
                )
            )
        ).order_by(desc(CustomerCouponDB.created_at), desc(CustomerCouponDB.coupon_id))

        result = await self.db.execute(query)
        return [
            {
                "coupon_id": row.CustomerCouponDB.coupon_id,
                "status": row.CustomerCouponDB.status,
                "expires_at": row.CustomerCouponDB.expires_at,
                "promotion_id": row.PromotionDB.promotion_id,
                "promo_code": row.PromotionDB.promo_code,
                "name": row.PromotionDB.name,
                "description": row.PromotionDB.description,
                "type": row.PromotionDB.type,
                "discount_value": row.PromotionDB.discount_value,
                "min_order_amount": row.PromotionDB.min_order_amount,
                "max_discount_amount": row.PromotionDB.max_discount_amount
            }
            for row in result.all()
        ]

    async def list_all(self) -> List[CustomerCouponDB]:
        """后台获取所有顾客优惠券，按领取时间倒序"""
        result = await self.db.execute(
            select(CustomerCouponDB).order_by(
                desc(CustomerCouponDB.created_at), desc(CustomerCouponDB.coupon_id)
            )
        )
        return list(result.scalars().all())

    async def mark_used(self, coupon_id: int) -> bool:
        """将优惠券标记为已使用"""
        result = await self.db.execute(
            update(CustomerCouponDB)
            .where(
                and_(
                    CustomerCouponDB.coupon_id == coupon_id,
                    CustomerCouponDB.status == CustomerCouponStatus.AVAILABLE.value
                )
            )
            .values(status=CustomerCouponStatus.USED.value)
        )
        return result.rowcount > 0

    async def delete_by_promotion(self, promotion_id: int) -> int:
        """删除某促销下的所有顾客优惠券"""
        result = await self.db.execute(
            delete(CustomerCouponDB).where(CustomerCouponDB.promotion_id == promotion_id)
        )
        return result.rowcount

    def to_model(self, db_coupon: CustomerCouponDB) -> CustomerCoupon:
        """转换为Pydantic模型"""
        return CustomerCoupon.model_validate(db_coupon)
