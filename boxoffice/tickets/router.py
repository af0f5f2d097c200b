from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from boxoffice.config import EngineConfig, settings
from boxoffice.database import get_db
from boxoffice.dependencies import get_engine_config
from boxoffice.tickets.qr_service import TicketQRService
from boxoffice.tickets.schemas import (
    OrderQRCodes, PayloadValidationRequest, PayloadValidationResponse, TicketValidationResponse
)
from boxoffice.tickets.validation_service import TicketValidationService

router = APIRouter()

# Validation Endpoints
@router.get("/tickets/validate/{ticket_id}", response_model=TicketValidationResponse)
def validate_ticket(
    ticket_id: str,
    db: Session = Depends(get_db)
):
    """Door-scan validation against the stored ticket"""
    return TicketValidationService(db).validate_ticket(ticket_id)

@router.post("/qr-codes/validate", response_model=PayloadValidationResponse)
def validate_qr_code(
    request: PayloadValidationRequest,
    db: Session = Depends(get_db)
):
    """Proof-of-purchase validation of a scanned order item QR code"""
    return TicketValidationService(db).validate_payload(request.qr_data)

# QR Code Endpoints
@router.get("/orders/{order_id}/qr-codes", response_model=OrderQRCodes)
def get_order_ticket_qr_codes(
    order_id: str,
    db: Session = Depends(get_db),
    config: EngineConfig = Depends(get_engine_config)
):
    """QR codes for every ticket issued to an order"""
    return TicketQRService(db, config, width=settings.QR_CODE_WIDTH).order_ticket_qr_codes(order_id)

@router.get("/orders/{order_id}/item-qr-codes", response_model=OrderQRCodes)
def get_order_item_qr_codes(
    order_id: str,
    db: Session = Depends(get_db),
    config: EngineConfig = Depends(get_engine_config)
):
    """Proof-of-purchase QR codes for an order's line items"""
    return TicketQRService(db, config, width=settings.QR_CODE_WIDTH).order_item_qr_codes(order_id)
