from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.api.exceptions import PromotionRejectedError
from app.core.database import get_db_session
from app.models.promotion import PromotionRedeemRequest, PromotionValidateRequest
from app.services.promotion_service import PromotionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/promotions", tags=["促销"])


def get_promotion_service(db: AsyncSession = Depends(get_db_session)) -> PromotionService:
    return PromotionService(db)


@router.get("/active")
async def list_active_promotions(service: PromotionService = Depends(get_promotion_service)):
    """获取当前有效的促销列表"""
    promotions = await service.list_active_promotions()
    return {"success": True, "promotions": promotions}


@router.post("/validate")
async def validate_promo_code(
    request: PromotionValidateRequest,
    service: PromotionService = Depends(get_promotion_service)
):
    """验证促销码并计算折扣"""
    validation = await service.validate_promo_code(
        promo_code=request.promo_code,
        customer_id=request.customer_id,
        order_amount=request.order_amount,
        cart_items=request.cart_items
    )
    if not validation.valid:
        raise PromotionRejectedError(validation)

    return {
        "valid": True,
        "promotion": validation.promotion,
        "discount": validation.discount,
        "message": validation.message
    }


@router.post("/redeem")
async def redeem_promotion(
    request: PromotionRedeemRequest,
    service: PromotionService = Depends(get_promotion_service)
):
    """下单完成时核销促销码并记录使用"""
    usage = await service.redeem_promotion(
        promo_code=request.promo_code,
        customer_id=request.customer_id,
        order_id=request.order_id,
        order_amount=request.order_amount,
        cart_items=request.cart_items
    )
    return {"success": True, "usage": usage}


@router.get("/usage/{customer_id}")
async def get_usage_history(
    customer_id: int,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    service: PromotionService = Depends(get_promotion_service)
):
    """获取顾客促销使用历史"""
    history = await service.get_customer_usage_history(customer_id, limit=limit, offset=offset)
    return {"success": True, "history": history}
