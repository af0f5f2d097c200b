from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional, Union
from datetime import date, datetime
from decimal import Decimal

TICKET_PURCHASE_TYPE = "ticket_purchase"
ORDER_ITEM_TYPE = "order_item"
PAYLOAD_VERSION = 1


# QR payloads
class TicketQRPayload(BaseModel):
    """Door-scan payload, keyed by ticket id"""
    type: Literal["ticket_purchase"] = TICKET_PURCHASE_TYPE
    v: int = PAYLOAD_VERSION
    ticket_id: str
    order_id: str
    seat_label: str
    row_number: Optional[str] = None
    show_date: date
    venue: str
    product_title: str
    category: str
    validation_url: str
    text: str


class OrderItemQRPayload(BaseModel):
    """Proof-of-purchase payload, keyed by order and line item"""
    type: Literal["order_item"] = ORDER_ITEM_TYPE
    v: int = PAYLOAD_VERSION
    order_id: str
    item_id: str
    product_id: Optional[str] = None
    product_title: Optional[str] = None
    quantity: int
    unit_price: Decimal
    total: Optional[Decimal] = None
    email: Optional[str] = None


class QRCodeEntry(BaseModel):
    item_id: str
    qr_code: Optional[str] = Field(None, description="PNG image as a data URL; null when encoding failed")
    qr_data: Dict[str, Any]
    error: Optional[str] = None


class OrderQRCodes(BaseModel):
    order_id: str
    customer_email: Optional[str] = None
    qr_codes: List[QRCodeEntry]
    total_items: int


# Validation
class PayloadValidationRequest(BaseModel):
    qr_data: Union[str, Dict[str, Any]] = Field(..., description="Scanned QR content, raw JSON text or parsed object")


class TicketDetails(BaseModel):
    id: str
    seat: str
    row: Optional[str] = None
    category: str
    show_date: date
    status: str
    venue: str
    venue_address: Optional[str] = None
    product_title: str
    customer_name: str
    customer_email: Optional[str] = None
    order_id: str


class TicketValidationResponse(BaseModel):
    valid: bool
    ticket: TicketDetails
    message: str
    scanned_at: datetime


class OrderItemDetails(BaseModel):
    item_id: str
    order_id: str
    customer_email: Optional[str] = None
    product_title: Optional[str] = None
    variant_title: Optional[str] = None
    quantity: int
    unit_price: Decimal
    total: Decimal
    order_date: Optional[datetime] = None


class PayloadValidationResponse(BaseModel):
    valid: bool
    item_info: Optional[OrderItemDetails] = None
    message: str
    error: Optional[str] = None
    scanned_at: datetime
