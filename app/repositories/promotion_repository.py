"""
促销数据库操作层
"""

import logging
from typing import List, Optional, Dict, Any
from datetime import datetime

from sqlalchemy import select, and_, desc, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.promotion import Promotion, PromotionStatus
from app.models.database.promotion_db import PromotionDB

logger = logging.getLogger(__name__)


class PromotionRepository:
    """促销数据库操作类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _active_conditions(self, current_time: datetime):
        """状态为active且当前时间处于[start_date, end_date]内"""
        return and_(
            PromotionDB.status == PromotionStatus.ACTIVE.value,
            PromotionDB.start_date <= current_time,
            PromotionDB.end_date >= current_time
        )

    async def get_by_id(self, promotion_id: int) -> Optional[PromotionDB]:
        """根据促销ID获取促销"""
        result = await self.db.execute(
            select(PromotionDB).where(PromotionDB.promotion_id == promotion_id)
        )
        return result.scalar_one_or_none()

    async def get_by_code(self, promo_code: str) -> Optional[PromotionDB]:
        """根据促销码获取促销（不检查状态和有效期）"""
        result = await self.db.execute(
            select(PromotionDB).where(PromotionDB.promo_code == promo_code)
        )
        return result.scalar_one_or_none()

    async def get_active_by_code(
        self,
        promo_code: str,
        current_time: Optional[datetime] = None
    ) -> Optional[PromotionDB]:
        """根据促销码获取当前有效的促销，促销码区分大小写"""
        if current_time is None:
            current_time = datetime.now()

        result = await self.db.execute(
            select(PromotionDB).where(
                and_(
                    PromotionDB.promo_code == promo_code,
                    self._active_conditions(current_time)
                )
            )
        )
        return result.scalar_one_or_none()

    async def list_active(self, current_time: Optional[datetime] = None) -> List[PromotionDB]:
        """获取当前有效的促销，按创建时间倒序"""
        if current_time is None:
            current_time = datetime.now()

        query = select(PromotionDB).where(
            self._active_conditions(current_time)
        ).order_by(desc(PromotionDB.created_at), desc(PromotionDB.promotion_id))

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_next_start_date(self, current_time: Optional[datetime] = None) -> Optional[datetime]:
        """获取尚未开始的active促销中最早的开始时间"""
        if current_time is None:
            current_time = datetime.now()

        result = await self.db.execute(
            select(func.min(PromotionDB.start_date)).where(
                and_(
                    PromotionDB.status == PromotionStatus.ACTIVE.value,
                    PromotionDB.start_date > current_time
                )
            )
        )
        return result.scalar()

    async def list_all(self, status: Optional[PromotionStatus] = None) -> List[PromotionDB]:
        """后台获取全部促销，按创建时间倒序"""
        query = select(PromotionDB)
        if status:
            query = query.where(PromotionDB.status == status.value)
        query = query.order_by(desc(PromotionDB.created_at), desc(PromotionDB.promotion_id))

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create(self, promotion_data: Dict[str, Any]) -> PromotionDB:
        """创建促销"""
        db_promotion = PromotionDB(**promotion_data)
        self.db.add(db_promotion)
        await self.db.flush()
        await self.db.refresh(db_promotion)

        logger.info(f"创建促销成功: {db_promotion.promotion_id} ({db_promotion.promo_code})")
        return db_promotion

    async def update(self, promotion_id: int, update_data: Dict[str, Any]) -> Optional[PromotionDB]:
        """更新促销"""
        db_promotion = await self.get_by_id(promotion_id)
        if not db_promotion:
            return None

        for field, value in update_data.items():
            setattr(db_promotion, field, value)
        db_promotion.updated_at = datetime.now()

        await self.db.flush()
        await self.db.refresh(db_promotion)
        return db_promotion

    async def delete(self, promotion_id: int) -> bool:
        """删除促销"""
        result = await self.db.execute(
            delete(PromotionDB).where(PromotionDB.promotion_id == promotion_id)
        )
        return result.rowcount > 0

    def to_model(self, db_promotion: PromotionDB) -> Promotion:
        """转换为Pydantic模型"""
        return Promotion.model_validate(db_promotion)
