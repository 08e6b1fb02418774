"""
业务异常定义与全局异常处理器
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.models.promotion import PromotionValidation, ValidationErrorCode

logger = logging.getLogger(__name__)


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(self, message: str, status_code: int = 400, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code

    def to_content(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message, "error_code": self.error_code}


class MissingFieldsError(BusinessException):
    """请求缺少必填字段，在访问存储之前抛出"""

    def __init__(self, missing_fields):
        self.missing_fields = list(missing_fields)
        super().__init__(
            f"数据不完整，缺少字段: {', '.join(self.missing_fields)}",
            status_code=400,
            error_code=ValidationErrorCode.MISSING_FIELDS.value
        )

    def to_content(self) -> Dict[str, Any]:
        return {"error": self.message}


class PromotionRejectedError(BusinessException):
    """促销码未通过业务规则校验"""

    def __init__(self, validation: PromotionValidation):
        self.validation = validation
        super().__init__(
            validation.message,
            status_code=400,
            error_code=validation.error_code.value if validation.error_code else None
        )

    def to_content(self) -> Dict[str, Any]:
        return {"valid": False, "message": self.message, "error_code": self.error_code}


class PromotionNotFoundError(BusinessException):
    def __init__(self, promotion_id: int):
        super().__init__(f"促销不存在: {promotion_id}", status_code=404, error_code="PROMOTION_NOT_FOUND")


class DuplicatePromoCodeError(BusinessException):
    def __init__(self, promo_code: str):
        super().__init__(f"促销码已存在: {promo_code}", status_code=409, error_code="DUPLICATE_PROMO_CODE")


class PromotionInUseError(BusinessException):
    """已有使用记录的促销不能删除，只能停用"""

    def __init__(self, promotion_id: int):
        super().__init__(
            f"促销 {promotion_id} 已有使用记录，请改为停用",
            status_code=409,
            error_code="PROMOTION_IN_USE"
        )


class InvalidPromotionError(BusinessException):
    def __init__(self, message: str):
        super().__init__(message, status_code=400, error_code="INVALID_PROMOTION")


class CouponAlreadyClaimedError(BusinessException):
    def __init__(self):
        super().__init__("您已经领取过该优惠券", status_code=400, error_code="COUPON_ALREADY_CLAIMED")

    def to_content(self) -> Dict[str, Any]:
        return {"success": False, "message": self.message}


async def business_exception_handler(request: Request, exc: BusinessException) -> JSONResponse:
    """业务异常处理"""
    logger.info(f"业务异常 {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_content())


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """请求参数校验异常处理"""
    return JSONResponse(
        status_code=422,
        content={"error": "请求参数错误", "details": jsonable_encoder(exc.errors())}
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """HTTP异常处理"""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """数据库异常处理：存储层错误统一视为服务器内部错误"""
    logger.error(f"数据库异常 {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "服务器内部错误，请稍后重试"})


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """未捕获异常处理"""
    logger.exception(f"未处理异常 {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "服务器内部错误"})
