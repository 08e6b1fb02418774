"""
顾客优惠券业务服务层
顾客领取促销到自己的券包、查看可用券；后台发放与查看
"""

import logging
from typing import List, Optional
from datetime import datetime

from app.api.exceptions import CouponAlreadyClaimedError, PromotionNotFoundError
from app.models.coupon import AvailableCoupon, CustomerCoupon
from app.repositories.customer_coupon_repository import CustomerCouponRepository
from app.repositories.promotion_repository import PromotionRepository

logger = logging.getLogger(__name__)


class CouponService:
    """顾客优惠券业务服务"""

    def __init__(self, coupon_repo: CustomerCouponRepository, promotion_repo: PromotionRepository):
        self.coupon_repo = coupon_repo
        self.promotion_repo = promotion_repo

    async def claim_coupon(self, customer_id: int, promotion_id: int) -> CustomerCoupon:
        """领取优惠券，过期时间跟随促销结束时间"""
        if await self.coupon_repo.get_by_customer_and_promotion(customer_id, promotion_id):
            raise CouponAlreadyClaimedError()

        promotion = await self.promotion_repo.get_by_id(promotion_id)
        if not promotion:
            raise PromotionNotFoundError(promotion_id)

        db_coupon = await self.coupon_repo.create(customer_id, promotion_id, expires_at=promotion.end_date)
        logger.info(f"顾客 {customer_id} 领取促销 {promotion_id} 优惠券")
        return self.coupon_repo.to_model(db_coupon)

    async def assign_coupon(
        self,
        customer_id: int,
        promotion_id: int,
        expires_at: Optional[datetime] = None
    ) -> CustomerCoupon:
        """后台向顾客发放优惠券"""
        if not await self.promotion_repo.get_by_id(promotion_id):
            raise PromotionNotFoundError(promotion_id)
        if await self.coupon_repo.get_by_customer_and_promotion(customer_id, promotion_id):
            raise CouponAlreadyClaimedError()

        db_coupon = await self.coupon_repo.create(customer_id, promotion_id, expires_at=expires_at)
        return self.coupon_repo.to_model(db_coupon)

    async def list_available_coupons(
        self,
        customer_id: int,
        current_time: Optional[datetime] = None
    ) -> List[AvailableCoupon]:
        rows = await self.coupon_repo.list_available(customer_id, current_time)
        return [AvailableCoupon(**row) for row in rows]

    async def list_all_coupons(self) -> List[CustomerCoupon]:
        db_coupons = await self.coupon_repo.list_all()
        return [self.coupon_repo.to_model(item) for item in db_coupons]
