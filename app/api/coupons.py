from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.models.coupon import CouponClaimRequest
from app.repositories.customer_coupon_repository import CustomerCouponRepository
from app.repositories.promotion_repository import PromotionRepository
from app.services.coupon_service import CouponService

router = APIRouter(prefix="/api/coupons", tags=["顾客优惠券"])


def get_coupon_service(db: AsyncSession = Depends(get_db_session)) -> CouponService:
    return CouponService(CustomerCouponRepository(db), PromotionRepository(db))


@router.post("/claim")
async def claim_coupon(
    request: CouponClaimRequest,
    service: CouponService = Depends(get_coupon_service)
):
    """领取促销优惠券"""
    await service.claim_coupon(request.customer_id, request.promotion_id)
    return {"success": True, "message": "领取优惠券成功"}


@router.get("/available")
async def list_available_coupons(
    customer_id: int = Query(..., description="顾客ID"),
    service: CouponService = Depends(get_coupon_service)
):
    """获取顾客当前可用的优惠券"""
    return {"success": True, "coupons": await service.list_available_coupons(customer_id)}
