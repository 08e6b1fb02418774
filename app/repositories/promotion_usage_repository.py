"""
促销使用记录数据库操作层（只追加的使用台账）
"""

import logging
from typing import List, Dict, Any
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, and_, desc, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.promotion import PromotionUsage
from app.models.database.promotion_db import PromotionDB, PromotionUsageDB

logger = logging.getLogger(__name__)


class PromotionUsageRepository:
    """促销使用记录操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def count_usage(self, promotion_id: int, customer_id: int) -> int:
        """获取顾客对特定促销的已使用次数"""
        result = await self.db.execute(
            select(func.count(PromotionUsageDB.usage_id)).where(
                and_(
                    PromotionUsageDB.promotion_id == promotion_id,
                    PromotionUsageDB.customer_id == customer_id
                )
            )
        )
        return result.scalar() or 0

    async def count_for_promotion(self, promotion_id: int) -> int:
        """获取促销的总使用次数"""
        result = await self.db.execute(
            select(func.count(PromotionUsageDB.usage_id)).where(
                PromotionUsageDB.promotion_id == promotion_id
            )
        )
        return result.scalar() or 0

    async def record_usage(
        self,
        promotion_id: int,
        customer_id: int,
        order_id: int,
        discount_amount: Decimal,
        redemption_seq: int
    ) -> PromotionUsageDB:
        """
        记录一次促销使用

        redemption_seq由调用方按校验时读到的已使用次数+1给出，写入时不重新计数；
        若另一个写入方在此之后以相同序号抢先提交，flush时会因唯一约束
        抛出IntegrityError，由调用方回滚处理。
        """
        usage = PromotionUsageDB(
            promotion_id=promotion_id,
            customer_id=customer_id,
            order_id=order_id,
            discount_amount=discount_amount,
            redemption_seq=redemption_seq,
            used_at=datetime.now()
        )
        self.db.add(usage)
        await self.db.flush()

        logger.info(
            f"记录促销使用: promotion={promotion_id} customer={customer_id} "
            f"order={order_id} seq={redemption_seq}"
        )
        return usage

    async def get_customer_usage_history(
        self,
        customer_id: int,
        limit: int = 20,
        offset: int = 0
    ) -> List[Dict[str, Any]]:
        """获取顾客促销使用历史"""
        query = select(
            PromotionUsageDB,
            PromotionDB.name,
            PromotionDB.promo_code,
            PromotionDB.type
        ).join(
            PromotionDB, PromotionUsageDB.promotion_id == PromotionDB.promotion_id
        ).where(
            PromotionUsageDB.customer_id == customer_id
        ).order_by(
            desc(PromotionUsageDB.used_at), desc(PromotionUsageDB.usage_id)
        ).limit(limit).offset(offset)

        result = await self.db.execute(query)
        return [
            {
                "usage_id": row.PromotionUsageDB.usage_id,
                "promotion_id": row.PromotionUsageDB.promotion_id,
                "name": row.name,
                "promo_code": row.promo_code,
                "type": row.type,
                "order_id": row.PromotionUsageDB.order_id,
                "discount_amount": row.PromotionUsageDB.discount_amount,
                "used_at": row.PromotionUsageDB.used_at
            }
            for row in result.all()
        ]

    async def get_usage_stats(self, promotion_id: int) -> Dict[str, Any]:
        """获取促销使用统计"""
        result = await self.db.execute(
            select(
                func.count(PromotionUsageDB.usage_id).label("total_usage"),
                func.sum(PromotionUsageDB.discount_amount).label("total_discount"),
                func.count(func.distinct(PromotionUsageDB.customer_id)).label("unique_customers")
            ).where(PromotionUsageDB.promotion_id == promotion_id)
        )
        stats_row = result.one()

        return {
            "total_usage": stats_row.total_usage or 0,
            "total_discount": Decimal(str(stats_row.total_discount or 0)),
            "unique_customers": stats_row.unique_customers or 0
        }

    def to_model(self, db_usage: PromotionUsageDB) -> PromotionUsage:
        """转换为Pydantic模型"""
        return PromotionUsage.model_validate(db_usage)
