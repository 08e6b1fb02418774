"""
促销相关数据模型
"""

from decimal import Decimal
from datetime import datetime
from typing import Annotated, List, Optional
from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, model_validator
from enum import Enum


# 金额字段：内部使用Decimal，JSON输出为数字
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class PromotionType(str, Enum):
    """促销类型枚举"""
    PERCENTAGE = "percentage"  # 百分比折扣
    FIXED_AMOUNT = "fixed_amount"  # 固定金额减免
    BUY_X_GET_Y = "buy_x_get_y"  # 买X送Y（赠品，不产生金额折扣）
    FREE_SHIPPING = "free_shipping"  # 免运费
    CATEGORY_DISCOUNT = "category_discount"  # 分类折扣


class PromotionStatus(str, Enum):
    """促销状态枚举"""
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    DRAFT = "draft"


PERCENT_BASED_TYPES = (PromotionType.PERCENTAGE, PromotionType.CATEGORY_DISCOUNT)


class Promotion(BaseModel):
    """促销基础模型"""

    model_config = ConfigDict(from_attributes=True)

    promotion_id: int = Field(..., description="促销ID")
    name: str = Field(..., description="促销名称")
    description: Optional[str] = Field(None, description="促销描述")
    type: PromotionType = Field(..., description="促销类型")
    discount_value: Optional[Money] = Field(None, description="折扣值，百分比或固定金额")
    buy_quantity: Optional[int] = Field(None, description="买X数量")
    get_quantity: Optional[int] = Field(None, description="送Y数量")
    min_order_amount: Money = Field(default=Decimal("0"), description="最低订单金额")
    max_discount_amount: Optional[Money] = Field(None, description="最高折扣金额")
    usage_limit: Optional[int] = Field(None, description="总使用次数限制（仅统计展示）")
    usage_per_customer: Optional[int] = Field(1, description="单个顾客使用次数限制，空或0为不限")
    start_date: datetime = Field(..., description="开始时间")
    end_date: datetime = Field(..., description="结束时间")
    status: PromotionStatus = Field(default=PromotionStatus.DRAFT, description="促销状态")
    promo_code: Optional[str] = Field(None, description="促销码（区分大小写）")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_active_at(self, moment: datetime) -> bool:
        """状态为active且处于有效期内（含边界）"""
        return (
            self.status == PromotionStatus.ACTIVE and
            self.start_date <= moment <= self.end_date
        )


class PromotionCreate(BaseModel):
    """创建促销模型

    更新促销时，服务层会把现有数据与变更合并后再用本模型完整校验一次。
    """

    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    type: PromotionType = Field(...)
    discount_value: Optional[Decimal] = Field(None, ge=0)
    buy_quantity: Optional[int] = Field(None, ge=1)
    get_quantity: Optional[int] = Field(None, ge=1)
    min_order_amount: Decimal = Field(default=Decimal("0"), ge=0)
    max_discount_amount: Optional[Decimal] = Field(None, ge=0)
    usage_limit: Optional[int] = Field(None, ge=1)
    usage_per_customer: Optional[int] = Field(1, ge=0)
    start_date: datetime = Field(...)
    end_date: datetime = Field(...)
    status: PromotionStatus = Field(default=PromotionStatus.ACTIVE)
    promo_code: Optional[str] = Field(None, min_length=1, max_length=50)

    @model_validator(mode="after")
    def validate_rules(self):
        """校验有效期与各类型的必填字段"""
        if self.end_date <= self.start_date:
            raise ValueError("结束时间必须晚于开始时间")

        if self.type in PERCENT_BASED_TYPES:
            if self.discount_value is None or not (Decimal("0") < self.discount_value <= Decimal("100")):
                raise ValueError("百分比折扣值必须在0到100之间")
        elif self.type == PromotionType.FIXED_AMOUNT:
            if self.discount_value is None or self.discount_value <= 0:
                raise ValueError("固定金额折扣值必须大于0")
        elif self.type == PromotionType.BUY_X_GET_Y:
            if not self.buy_quantity or not self.get_quantity:
                raise ValueError("买X送Y促销必须填写购买数量和赠送数量")
        return self


class PromotionUpdate(BaseModel):
    """更新促销模型（部分更新）"""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    type: Optional[PromotionType] = None
    discount_value: Optional[Decimal] = Field(None, ge=0)
    buy_quantity: Optional[int] = Field(None, ge=1)
    get_quantity: Optional[int] = Field(None, ge=1)
    min_order_amount: Optional[Decimal] = Field(None, ge=0)
    max_discount_amount: Optional[Decimal] = Field(None, ge=0)
    usage_limit: Optional[int] = Field(None, ge=1)
    usage_per_customer: Optional[int] = Field(None, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[PromotionStatus] = None
    promo_code: Optional[str] = Field(None, min_length=1, max_length=50)


class CartItem(BaseModel):
    """购物车商品行"""

    product_id: int = Field(..., description="商品ID")
    quantity: int = Field(default=1, ge=1, description="数量")
    price: Money = Field(..., ge=0, description="单价")
    category_id: Optional[int] = Field(None, description="商品分类ID")


class DiscountResult(BaseModel):
    """折扣计算结果"""

    amount: Money = Field(..., description="折扣金额（保留两位小数）")
    type: PromotionType = Field(..., description="促销类型")
    description: Optional[str] = Field(None, description="促销描述")


class ValidationErrorCode(str, Enum):
    """促销码验证失败原因"""
    MISSING_FIELDS = "MISSING_FIELDS"
    INVALID_CODE = "INVALID_CODE"
    BELOW_MINIMUM = "BELOW_MINIMUM"
    USAGE_EXCEEDED = "USAGE_EXCEEDED"


class PromotionValidation(BaseModel):
    """促销码验证结果"""

    valid: bool = Field(..., description="是否可用")
    error_code: Optional[ValidationErrorCode] = Field(None, description="失败原因")
    message: str = Field(..., description="提示信息")
    promotion: Optional[Promotion] = Field(None, description="促销信息")
    discount: Optional[DiscountResult] = Field(None, description="折扣结果")
    min_order_required: Optional[Money] = Field(None, description="所需最低订单金额")
    used_count: Optional[int] = Field(None, exclude=True, description="校验时读到的顾客已使用次数")


class PromotionValidateRequest(BaseModel):
    """促销码验证请求，字段缺失由业务层统一报错"""

    promo_code: Optional[str] = None
    customer_id: Optional[int] = None
    order_amount: Optional[Decimal] = Field(None, ge=0)
    cart_items: List[CartItem] = Field(default_factory=list)


class PromotionRedeemRequest(BaseModel):
    """下单时核销促销码请求"""

    promo_code: str = Field(..., min_length=1)
    customer_id: int = Field(...)
    order_id: int = Field(...)
    order_amount: Decimal = Field(..., ge=0)
    cart_items: List[CartItem] = Field(default_factory=list)


class PromotionUsage(BaseModel):
    """促销使用记录"""

    model_config = ConfigDict(from_attributes=True)

    usage_id: int
    promotion_id: int
    customer_id: int
    order_id: int
    discount_amount: Money
    redemption_seq: int = Field(..., description="该顾客对该促销的第几次使用")
    used_at: Optional[datetime] = None


class PromotionStats(BaseModel):
    """促销使用统计"""

    promotion_id: int
    promo_code: Optional[str]
    status: PromotionStatus
    usage_limit: Optional[int]
    total_usage: int = 0
    total_discount: Money = Decimal("0")
    unique_customers: int = 0
