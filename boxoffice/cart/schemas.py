from pydantic import BaseModel, Field, validator
from typing import List, Optional, Dict, Any, Union
from datetime import datetime
from decimal import Decimal


class CartCreate(BaseModel):
    email: Optional[str] = None
    customer_first_name: Optional[str] = None
    customer_last_name: Optional[str] = None
    currency_code: str = "usd"


class LineItemCreate(BaseModel):
    """Line item as handed over by the commerce catalog"""
    title: str
    product_id: Optional[str] = None
    product_title: Optional[str] = None
    variant_id: Optional[str] = None
    variant_title: Optional[str] = None
    variant_options: Optional[Union[List[Dict[str, Any]], Dict[str, Any]]] = None
    unit_price: Decimal = Field(..., ge=0)
    quantity: int = Field(1, ge=1)
    metadata: Optional[Dict[str, Any]] = None

    @validator('metadata')
    def reject_fee_metadata(cls, v):
        if v and v.get("type") == "service_fee":
            raise ValueError('Service fee line items are managed by the cart')
        return v


class LineItemUpdate(BaseModel):
    quantity: Optional[int] = Field(None, ge=1)
    metadata: Optional[Dict[str, Any]] = None


class LineItem(BaseModel):
    id: str
    title: str
    product_id: Optional[str] = None
    product_title: Optional[str] = None
    variant_id: Optional[str] = None
    variant_title: Optional[str] = None
    unit_price: Decimal
    quantity: int
    metadata: Optional[Dict[str, Any]] = None
    is_service_fee: bool = False


class CartDetail(BaseModel):
    id: str
    email: Optional[str] = None
    currency_code: str
    completed_at: Optional[datetime] = None
    items: List[LineItem]
    subtotal: Decimal
    service_fee: Decimal
    total: Decimal


class ServiceFeeResult(BaseModel):
    cart_id: str
    action: str
    amount: Decimal
    line_item_id: Optional[str] = None
