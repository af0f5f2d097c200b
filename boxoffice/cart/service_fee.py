from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from loguru import logger
from sqlalchemy.orm import Session, selectinload

from boxoffice.config import EngineConfig
from boxoffice.exceptions import NotFoundError
from boxoffice.models import SERVICE_FEE_TYPE, Cart, CartLineItem

SERVICE_FEE_TITLE = "Service Fee"


def is_service_fee(item) -> bool:
    return (item.item_metadata or {}).get("type") == SERVICE_FEE_TYPE


def calculate_service_fee(items: Iterable, fee_percentage: float) -> Decimal:
    """Fee over all billable items, rounded half-up to whole currency units"""
    subtotal = sum(
        (Decimal(item.unit_price or 0) * (item.quantity or 0) for item in items if not is_service_fee(item)),
        Decimal("0"),
    )
    fee = subtotal * Decimal(str(fee_percentage))
    return fee.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


@dataclass
class FeeRecalculation:
    cart_id: str
    action: str  # created | updated | removed | unchanged
    amount: Decimal
    line_item_id: Optional[str] = None


class ServiceFeeHook:
    """Keeps a cart's single service fee line item in step with its contents.

    Run after every cart mutation and before checkout. Recalculating an
    unchanged cart performs no writes.
    """

    def __init__(self, db: Session, config: EngineConfig):
        self.db = db
        self.fee_percentage = config.fee_percentage

    def recalculate(self, cart_id: str) -> FeeRecalculation:
        cart = self.db.query(Cart).options(selectinload(Cart.items)).filter(Cart.id == cart_id).first()
        if not cart:
            raise NotFoundError("Cart not found")

        fee_items = [item for item in cart.items if is_service_fee(item)]
        billable = [item for item in cart.items if not is_service_fee(item)]
        fee = calculate_service_fee(billable, self.fee_percentage) if billable else Decimal("0")
        existing = fee_items[0] if fee_items else None

        try:
            for duplicate in fee_items[1:]:
                cart.items.remove(duplicate)

            if fee <= 0:
                if existing is None:
                    return self._finish(cart, "unchanged", Decimal("0"), None, dirty=bool(fee_items[1:]))
                cart.items.remove(existing)
                return self._finish(cart, "removed", Decimal("0"), None, dirty=True)

            if existing is not None:
                if Decimal(existing.unit_price) == fee and existing.quantity == 1:
                    return self._finish(cart, "unchanged", fee, existing.id, dirty=bool(fee_items[1:]))
                existing.unit_price = fee
                existing.quantity = 1
                return self._finish(cart, "updated", fee, existing.id, dirty=True)

            fee_item = CartLineItem(
                title=SERVICE_FEE_TITLE,
                product_title=SERVICE_FEE_TITLE,
                unit_price=fee,
                quantity=1,
                position=max((item.position for item in cart.items), default=-1) + 1,
                item_metadata={
                    "type": SERVICE_FEE_TYPE,
                    "fee_percentage": round(self.fee_percentage * 100, 4),
                },
            )
            cart.items.append(fee_item)
            self.db.flush()
            return self._finish(cart, "created", fee, fee_item.id, dirty=True)
        except Exception:
            self.db.rollback()
            raise

    def _finish(self, cart: Cart, action: str, amount: Decimal, item_id, dirty: bool) -> FeeRecalculation:
        if dirty:
            self.db.commit()
            logger.info(f"Service fee {action} for cart {cart.id}: {amount}")
        return FeeRecalculation(cart_id=cart.id, action=action, amount=amount, line_item_id=item_id)
