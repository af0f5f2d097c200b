from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from boxoffice.config import EngineConfig
from boxoffice.database import get_db
from boxoffice.dependencies import get_engine_config
from boxoffice.cart.schemas import (
    CartCreate, CartDetail, LineItemCreate, LineItemUpdate, ServiceFeeResult
)
from boxoffice.cart.service import CartService
from boxoffice.cart.service_fee import ServiceFeeHook

router = APIRouter()

@router.post("", response_model=CartDetail, status_code=status.HTTP_201_CREATED)
def create_cart(
    request: CartCreate,
    db: Session = Depends(get_db),
    config: EngineConfig = Depends(get_engine_config)
):
    """Open a new cart"""
    service = CartService(db, config)
    return service.to_detail(service.create_cart(request))

@router.get("/{cart_id}", response_model=CartDetail)
def get_cart(
    cart_id: str,
    db: Session = Depends(get_db),
    config: EngineConfig = Depends(get_engine_config)
):
    """Get a cart with its totals"""
    service = CartService(db, config)
    return service.to_detail(service.get_cart(cart_id))

@router.post("/{cart_id}/line-items", response_model=CartDetail, status_code=status.HTTP_201_CREATED)
def add_line_item(
    cart_id: str,
    request: LineItemCreate,
    db: Session = Depends(get_db),
    config: EngineConfig = Depends(get_engine_config)
):
    """Add a line item; the service fee is recalculated afterwards"""
    service = CartService(db, config)
    return service.to_detail(service.add_line_item(cart_id, request))

@router.patch("/{cart_id}/line-items/{item_id}", response_model=CartDetail)
def update_line_item(
    cart_id: str,
    item_id: str,
    request: LineItemUpdate,
    db: Session = Depends(get_db),
    config: EngineConfig = Depends(get_engine_config)
):
    """Change a line item's quantity or metadata"""
    service = CartService(db, config)
    return service.to_detail(service.update_line_item(cart_id, item_id, request))

@router.delete("/{cart_id}/line-items/{item_id}", response_model=CartDetail)
def remove_line_item(
    cart_id: str,
    item_id: str,
    db: Session = Depends(get_db),
    config: EngineConfig = Depends(get_engine_config)
):
    """Remove a line item"""
    service = CartService(db, config)
    return service.to_detail(service.remove_line_item(cart_id, item_id))

@router.post("/{cart_id}/service-fee", response_model=ServiceFeeResult)
def recalculate_service_fee(
    cart_id: str,
    db: Session = Depends(get_db),
    config: EngineConfig = Depends(get_engine_config)
):
    """Recalculate the cart's service fee line item"""
    result = ServiceFeeHook(db, config).recalculate(cart_id)
    return ServiceFeeResult(
        cart_id=result.cart_id,
        action=result.action,
        amount=result.amount,
        line_item_id=result.line_item_id,
    )
