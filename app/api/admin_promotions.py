from typing import Optional

from fastapi import APIRouter, Depends

from app.api.coupons import get_coupon_service
from app.api.promotions import get_promotion_service
from app.models.coupon import CouponAssignRequest
from app.models.promotion import PromotionCreate, PromotionStatus, PromotionUpdate
from app.services.coupon_service import CouponService
from app.services.promotion_service import PromotionService

router = APIRouter(prefix="/api/admin", tags=["促销后台管理"])


@router.get("/promotions")
async def list_promotions(
    status: Optional[PromotionStatus] = None,
    service: PromotionService = Depends(get_promotion_service)
):
    """获取全部促销"""
    return {"success": True, "promotions": await service.list_promotions(status)}


@router.get("/promotions/{promotion_id}")
async def get_promotion(promotion_id: int, service: PromotionService = Depends(get_promotion_service)):
    return {"success": True, "promotion": await service.get_promotion(promotion_id)}


@router.post("/promotions", status_code=201)
async def create_promotion(
    promotion_data: PromotionCreate,
    service: PromotionService = Depends(get_promotion_service)
):
    """创建促销"""
    promotion = await service.create_promotion(promotion_data)
    return {"success": True, "promotion_id": promotion.promotion_id, "promotion": promotion}


@router.put("/promotions/{promotion_id}")
async def update_promotion(
    promotion_id: int,
    promotion_data: PromotionUpdate,
    service: PromotionService = Depends(get_promotion_service)
):
    """更新促销（部分字段）"""
    return {"success": True, "promotion": await service.update_promotion(promotion_id, promotion_data)}


@router.delete("/promotions/{promotion_id}")
async def delete_promotion(promotion_id: int, service: PromotionService = Depends(get_promotion_service)):
    await service.delete_promotion(promotion_id)
    return {"success": True}


@router.get("/promotions/{promotion_id}/stats")
async def get_promotion_stats(promotion_id: int, service: PromotionService = Depends(get_promotion_service)):
    """促销使用统计"""
    return {"success": True, "stats": await service.get_promotion_stats(promotion_id)}


@router.get("/customer-coupons")
async def list_customer_coupons(service: CouponService = Depends(get_coupon_service)):
    return {"success": True, "coupons": await service.list_all_coupons()}


@router.post("/assign-coupon")
async def assign_coupon(
    request: CouponAssignRequest,
    service: CouponService = Depends(get_coupon_service)
):
    """向顾客发放优惠券"""
    coupon = await service.assign_coupon(request.customer_id, request.promotion_id, request.expires_at)
    return {"success": True, "coupon_id": coupon.coupon_id}
