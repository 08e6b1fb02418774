"""
促销业务服务层
提供有效促销查询、促销码验证、下单核销及后台促销管理
"""

import logging
from typing import List, Optional, Dict, Any, Sequence
from datetime import datetime
from decimal import Decimal

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.exceptions import (
    DuplicatePromoCodeError,
    InvalidPromotionError,
    PromotionInUseError,
    PromotionNotFoundError,
    PromotionRejectedError,
)
from app.core.config import settings
from app.models.promotion import (
    CartItem,
    Promotion,
    PromotionCreate,
    PromotionStats,
    PromotionStatus,
    PromotionUpdate,
    PromotionUsage,
    PromotionValidation,
    ValidationErrorCode,
)
from app.repositories.customer_coupon_repository import CustomerCouponRepository
from app.repositories.promotion_repository import PromotionRepository
from app.repositories.promotion_usage_repository import PromotionUsageRepository
from app.services.common_cache import promotion_cache
from app.services.promotion_validator import PromotionValidator
from app.services.redemption_lock import redemption_locks

logger = logging.getLogger(__name__)


class PromotionService:
    """促销业务服务"""

    def __init__(
        self,
        db: AsyncSession,
        promotion_repo: Optional[PromotionRepository] = None,
        usage_repo: Optional[PromotionUsageRepository] = None,
        coupon_repo: Optional[CustomerCouponRepository] = None
    ):
        self.db = db
        self.promotion_repo = promotion_repo or PromotionRepository(db)
        self.usage_repo = usage_repo or PromotionUsageRepository(db)
        self.coupon_repo = coupon_repo or CustomerCouponRepository(db)
        self.validator = PromotionValidator(self.promotion_repo, self.usage_repo)
        self.locks = redemption_locks
        self.cache = promotion_cache
        self.cache_ttl = settings.promotion_cache_ttl

    # ------------------------------------------------------------------
    # 顾客端
    # ------------------------------------------------------------------

    async def list_active_promotions(self, use_cache: bool = True) -> List[Promotion]:
        """获取当前有效促销，最新创建的在前"""
        cache_key = "active:all"
        now = datetime.now()

        if use_cache:
            cached_promotions = await self.cache.get(cache_key)
            if cached_promotions is not None:
                # 缓存期间可能有促销到期
                promotions = [Promotion(**item) for item in cached_promotions]
                return [promotion for promotion in promotions if promotion.is_active_at(now)]

        db_promotions = await self.promotion_repo.list_active(now)
        promotions = [self.promotion_repo.to_model(item) for item in db_promotions]

        if use_cache:
            next_start = await self.promotion_repo.get_next_start_date(now)
            await self.cache.set(
                cache_key,
                [promotion.model_dump(mode="json") for promotion in promotions],
                ttl=self._active_cache_ttl(now, promotions, next_start)
            )

        return promotions

    def _active_cache_ttl(
        self,
        now: datetime,
        promotions: List[Promotion],
        next_start: Optional[datetime]
    ) -> int:
        """缓存有效期不超过最近一个促销结束或开始的时间点"""
        boundaries = [promotion.end_date for promotion in promotions]
        if next_start:
            boundaries.append(next_start)
        if not boundaries:
            return self.cache_ttl

        seconds = min((boundary - now).total_seconds() for boundary in boundaries)
        return max(1, min(self.cache_ttl, int(seconds) + 1))

    async def validate_promo_code(
        self,
        promo_code: Optional[str],
        customer_id: Optional[int],
        order_amount: Optional[Decimal],
        cart_items: Optional[Sequence[CartItem]] = None
    ) -> PromotionValidation:
        """验证促销码，不使用缓存以保证实时性"""
        return await self.validator.validate(promo_code, customer_id, order_amount, cart_items)

    async def redeem_promotion(
        self,
        promo_code: str,
        customer_id: int,
        order_id: int,
        order_amount: Decimal,
        cart_items: Optional[Sequence[CartItem]] = None
    ) -> PromotionUsage:
        """
        下单时核销促销码

        在 (promotion_id, customer_id) 锁内完成 校验 -> 写入使用记录 -> 提交，
        锁释放前事务已提交，同进程的后续请求一定能看到本次记录。
        使用序号取锁内读到的已使用次数+1，其他进程若已按同一次数提交，
        写入会被唯一约束拒绝。
        """
        PromotionValidator.check_required_fields(promo_code, customer_id, order_amount)

        db_promotion = await self.promotion_repo.get_by_code(promo_code)
        promotion = self.promotion_repo.to_model(db_promotion) if db_promotion else None
        if not promotion or not promotion.is_active_at(datetime.now()):
            raise PromotionRejectedError(PromotionValidation(
                valid=False,
                error_code=ValidationErrorCode.INVALID_CODE,
                message="促销码不存在或已过期"
            ))
        promotion_id = promotion.promotion_id

        async with self.locks.hold(promotion_id, customer_id):
            validation = await self.validator.check_promotion(promotion, customer_id, order_amount, cart_items)
            if not validation.valid:
                raise PromotionRejectedError(validation)

            try:
                db_usage = await self.usage_repo.record_usage(
                    promotion_id=promotion_id,
                    customer_id=customer_id,
                    order_id=order_id,
                    discount_amount=validation.discount.amount,
                    redemption_seq=validation.used_count + 1
                )
                usage = self.usage_repo.to_model(db_usage)

                coupon = await self.coupon_repo.get_by_customer_and_promotion(customer_id, promotion_id)
                if coupon:
                    await self.coupon_repo.mark_used(coupon.coupon_id)

                await self.db.commit()
            except IntegrityError:
                # 其他进程以相同序号抢先提交
                await self.db.rollback()
                logger.warning(f"促销 {promotion_id} 顾客 {customer_id} 并发核销冲突")
                raise PromotionRejectedError(PromotionValidation(
                    valid=False,
                    error_code=ValidationErrorCode.USAGE_EXCEEDED,
                    message="您已达到该促销的使用次数上限",
                    promotion=promotion
                ))

        logger.info(f"促销核销成功: promotion={promotion_id} customer={customer_id} order={order_id}")
        return usage

    async def get_customer_usage_history(
        self,
        customer_id: int,
        limit: int = 20,
        offset: int = 0
    ) -> List[Dict[str, Any]]:
        """获取顾客促销使用历史"""
        return await self.usage_repo.get_customer_usage_history(customer_id, limit=limit, offset=offset)

    # ------------------------------------------------------------------
    # 后台管理
    # ------------------------------------------------------------------

    async def list_promotions(self, status: Optional[PromotionStatus] = None) -> List[Promotion]:
        db_promotions = await self.promotion_repo.list_all(status)
        return [self.promotion_repo.to_model(item) for item in db_promotions]

    async def get_promotion(self, promotion_id: int) -> Promotion:
        db_promotion = await self.promotion_repo.get_by_id(promotion_id)
        if not db_promotion:
            raise PromotionNotFoundError(promotion_id)
        return self.promotion_repo.to_model(db_promotion)

    async def create_promotion(self, promotion_data: PromotionCreate) -> Promotion:
        """创建促销"""
        if promotion_data.promo_code and await self.promotion_repo.get_by_code(promotion_data.promo_code):
            raise DuplicatePromoCodeError(promotion_data.promo_code)

        values = promotion_data.model_dump()
        values["type"] = promotion_data.type.value
        values["status"] = promotion_data.status.value

        db_promotion = await self.promotion_repo.create(values)
        promotion = self.promotion_repo.to_model(db_promotion)

        await self._clear_promotion_caches()
        return promotion

    async def update_promotion(self, promotion_id: int, promotion_data: PromotionUpdate) -> Promotion:
        """部分更新促销，合并后按创建规则完整校验"""
        current = await self.get_promotion(promotion_id)
        changes = promotion_data.model_dump(exclude_unset=True)

        new_code = changes.get("promo_code")
        if new_code and new_code != current.promo_code:
            existing = await self.promotion_repo.get_by_code(new_code)
            if existing and existing.promotion_id != promotion_id:
                raise DuplicatePromoCodeError(new_code)

        merged = current.model_dump(exclude={"promotion_id", "created_at", "updated_at"})
        merged.update(changes)
        try:
            checked = PromotionCreate.model_validate(merged)
        except ValidationError as e:
            raise InvalidPromotionError("; ".join(err["msg"] for err in e.errors()))

        values = {field: getattr(checked, field) for field in changes}
        for field in ("type", "status"):
            if field in values:
                values[field] = values[field].value

        db_promotion = await self.promotion_repo.update(promotion_id, values)
        promotion = self.promotion_repo.to_model(db_promotion)

        await self._clear_promotion_caches()
        return promotion

    async def delete_promotion(self, promotion_id: int) -> None:
        """删除促销，已有使用记录的促销只允许停用"""
        await self.get_promotion(promotion_id)
        if await self.usage_repo.count_for_promotion(promotion_id):
            raise PromotionInUseError(promotion_id)

        await self.coupon_repo.delete_by_promotion(promotion_id)
        await self.promotion_repo.delete(promotion_id)

        await self._clear_promotion_caches()

    async def get_promotion_stats(self, promotion_id: int) -> PromotionStats:
        """获取促销使用统计"""
        promotion = await self.get_promotion(promotion_id)
        stats = await self.usage_repo.get_usage_stats(promotion_id)
        return PromotionStats(
            promotion_id=promotion.promotion_id,
            promo_code=promotion.promo_code,
            status=promotion.status,
            usage_limit=promotion.usage_limit,
            **stats
        )

    async def _clear_promotion_caches(self):
        """清除促销相关缓存"""
        await self.cache.delete_pattern("active:*")
